"""
Unit tests for sudo detection, sequential command execution and the
shared handler workflow
"""

import io
from unittest.mock import MagicMock

import pytest

from superviz.core.context import Context
from superviz.core.exceptions import ErrorKind, PrivilegeError, RepositoryError, is_kind
from superviz.domain.repository.common import (
    SUDO_PROBE,
    WRITE_PROBES,
    CommandExecutor,
    SudoHelper,
    write_line,
)
from superviz.domain.repository.debian import DebianHandler


class TestSudoHelper:

    def test_sudo_missing_is_an_error(self, ctx: Context, make_client) -> None:
        client = make_client()
        with pytest.raises(PrivilegeError, match="sudo is not available"):
            SudoHelper(client).is_needed(ctx)

    def test_sudo_available(self, ctx: Context, make_client) -> None:
        client = make_client({SUDO_PROBE})
        assert SudoHelper(client).is_needed(ctx) is True

    def test_writable_location_needs_no_sudo(self, ctx: Context, make_client, executed) -> None:
        client = make_client({WRITE_PROBES[0]})
        assert SudoHelper(client).is_needed(ctx) is False
        assert SUDO_PROBE not in executed(client)

    def test_add_prefix_only_for_privileged_commands(self, make_client) -> None:
        helper = SudoHelper(make_client())
        commands = [
            "apt update",
            "echo hello",
            "cp /tmp/superviz.repo /etc/yum.repos.d/superviz.repo",
            "rm /tmp/superviz.repo",
            "pacman-key --lsign-key ABC",
        ]
        assert helper.add_prefix(commands, True) == [
            "sudo apt update",
            "echo hello",
            "sudo cp /tmp/superviz.repo /etc/yum.repos.d/superviz.repo",
            "rm /tmp/superviz.repo",
            "sudo pacman-key --lsign-key ABC",
        ]

    def test_tmp_staging_writes_stay_unprivileged(self, make_client) -> None:
        helper = SudoHelper(make_client())
        commands = [
            'echo "deb [signed-by=/usr/share/keyrings/superviz.gpg] https://repo/apt main" > /tmp/superviz.list',
            'echo "https://repo/alpine/v$(cut -d. -f1-2 /etc/alpine-release)/main" > /tmp/superviz-apk.list',
            "cat > /tmp/superviz.repo << 'EOF'\n[superviz]\nEOF",
        ]
        assert helper.add_prefix(commands, True) == commands

    def test_conditional_runs_whole_under_sudo(self, make_client) -> None:
        helper = SudoHelper(make_client())
        command = (
            "if command -v dnf >/dev/null 2>&1; then dnf clean all; "
            "elif command -v yum >/dev/null 2>&1; then yum clean all; fi"
        )
        assert helper.add_prefix([command], True) == [
            "sudo sh -c 'if command -v dnf >/dev/null 2>&1; then dnf clean all; "
            "elif command -v yum >/dev/null 2>&1; then yum clean all; fi'"
        ]

    def test_add_prefix_not_needed(self, make_client) -> None:
        commands = ["apt update", "echo hello"]
        assert SudoHelper(make_client()).add_prefix(commands, False) == commands


class TestCommandExecutor:

    def test_runs_in_order_with_progress(self, ctx: Context, make_client, executed) -> None:
        client = make_client({"a", "b", "c"})
        out = io.StringIO()

        CommandExecutor(client).run(ctx, ["a", "b", "c"], out)

        assert executed(client) == ["a", "b", "c"]
        assert out.getvalue().splitlines() == ["  [1/3] a", "  [2/3] b", "  [3/3] c"]

    def test_stops_at_first_failure(self, ctx: Context, make_client, executed) -> None:
        client = make_client({"a", "c"})
        out = io.StringIO()

        with pytest.raises(RepositoryError) as exc_info:
            CommandExecutor(client).run(ctx, ["a", "b", "c"], out)

        assert str(exc_info.value).startswith("command failed: b:")
        assert is_kind(exc_info.value, ErrorKind.COMMAND_FAILED)
        assert executed(client) == ["a", "b"]
        assert "[3/3]" not in out.getvalue()

    def test_write_failure(self) -> None:
        writer = MagicMock()
        writer.write.side_effect = OSError("broken pipe")
        with pytest.raises(RepositoryError, match="failed to write to output"):
            write_line(writer, "hello")


class TestBaseHandlerWorkflow:

    MARKER_PROBE = "test -f /etc/apt/sources.list.d/superviz.list"

    def test_skips_when_configured_and_not_forced(self, ctx: Context, make_client, executed) -> None:
        client = make_client({self.MARKER_PROBE})
        out = io.StringIO()

        DebianHandler(client, force=False).setup(ctx, out)

        assert executed(client) == [self.MARKER_PROBE]
        assert "Repository already configured, skipping" in out.getvalue()

    def test_force_ignores_marker(self, ctx: Context, make_client, executed) -> None:
        client = make_client(predicate=lambda c: not c.startswith("test -f"))
        out = io.StringIO()

        DebianHandler(client, force=True).setup(ctx, out)

        assert self.MARKER_PROBE not in executed(client)
        assert "apt update" in executed(client)

    def test_sudo_prefix_applied(self, ctx: Context, make_client, executed) -> None:
        client = make_client(predicate=lambda c: not c.startswith("test "))
        out = io.StringIO()

        DebianHandler(client).setup(ctx, out)

        text = out.getvalue()
        assert "Using sudo for system operations..." in text
        assert "  [1/10] sudo apt update" in text
        assert "sudo apt update" in executed(client)
        assert "gpg --dearmor < /tmp/superviz.gpg > /tmp/superviz.gpg.dearmored" in executed(client)

    def test_missing_sudo_stops_before_commands(self, ctx: Context, make_client, executed) -> None:
        client = make_client()
        with pytest.raises(PrivilegeError):
            DebianHandler(client).setup(ctx, io.StringIO())
        assert "apt update" not in executed(client)
