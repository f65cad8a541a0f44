"""
Shared fixtures

Remote hosts are simulated with a MagicMock client whose execute() succeeds
for selected commands and raises COMMAND_FAILED for everything else, the same
way a probe with a non-zero exit status surfaces from the real client.
"""

from typing import Callable, Iterable, Optional
from unittest.mock import MagicMock

import paramiko
import pytest

from superviz.core.context import Context
from superviz.core.exceptions import ErrorKind, SSHError
from superviz.core.interfaces import Client


def _command_failed(command: str) -> SSHError:
    return SSHError(ErrorKind.COMMAND_FAILED, "Process exited with status 1").with_context(
        "command", command
    )


def _make_client(
    succeeding: Iterable[str] = (),
    predicate: Optional[Callable[[str], bool]] = None,
) -> MagicMock:
    ok = set(succeeding)
    client = MagicMock(spec=Client)

    def execute(ctx, command):
        if command in ok or (predicate is not None and predicate(command)):
            return None
        raise _command_failed(command)

    client.execute.side_effect = execute
    return client


@pytest.fixture
def ctx() -> Context:
    """Context without deadline"""
    return Context.background()


@pytest.fixture
def make_client() -> Callable[..., MagicMock]:
    """
    Factory for mock remote clients.

    Returns:
        make_client(succeeding=(), predicate=None) -> MagicMock
    """
    return _make_client


@pytest.fixture
def executed() -> Callable[[MagicMock], list]:
    """Commands passed to a mock client's execute(), in order"""
    return lambda client: [c.args[1] for c in client.execute.call_args_list]


@pytest.fixture(scope="session")
def host_key() -> paramiko.PKey:
    """Real ECDSA key standing in for a server host key"""
    return paramiko.ECDSAKey.generate()


@pytest.fixture(scope="session")
def other_host_key() -> paramiko.PKey:
    """Second ECDSA key of the same type, for changed-key scenarios"""
    return paramiko.ECDSAKey.generate()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep ~/.ssh and ~/.config lookups inside a temporary home"""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "SVZ_SSH_KEY",
        "SVZ_SSH_PORT",
        "SVZ_TIMEOUT",
        "SVZ_KNOWN_HOSTS",
        "SVZ_SKIP_HOST_KEY_CHECK",
        "SVZ_ACCEPT_NEW_HOST_KEY",
        "SVZ_FORCE",
        "SVZ_PASSWORD_FALLBACK",
    ):
        monkeypatch.delenv(name, raising=False)
    return home
