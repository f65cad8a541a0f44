"""
Shared repository setup machinery: privilege detection, sequential command
execution and the base handler every distribution handler builds on
"""
import shlex
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from ...core.context import Context
from ...core.exceptions import ErrorKind, PrivilegeError, RepositoryError, SSHError, is_kind
from ...core.interfaces import Client
from ...core.logging import get_logger

logger = get_logger(__name__)

# Writable by the login user means no escalation is needed
WRITE_PROBES = (
    "test -w /etc/apt/sources.list.d/",  # Debian/Ubuntu
    "test -w /etc/apk/repositories",     # Alpine
    "test -w /etc/yum.repos.d/",         # RHEL/CentOS/Fedora
    "test -w /etc/pacman.conf",          # Arch
)

SUDO_PROBE = "command -v sudo >/dev/null 2>&1"

PRIVILEGED_COMMANDS = (
    "apt update",
    "apt install",
    "apt-get update",
    "apt-get install",
    "apk update",
    "apk add",
    "apk upgrade",
    "yum",
    "dnf",
    "rpm --import",
    "rpm -i",
    "pacman",
    "zypper install",
    "zypper update",
    "emerge",
)

SYSTEM_PATHS = (
    "/etc/",
    "/usr/",
)

# Staging writes whose only output is a file under /tmp
STAGING_HEREDOC = "cat > /tmp/"
STAGING_ECHO = ("echo ", " > /tmp/")

# Shell conditionals run as a whole under `sudo sh -c`
COMPOUND_PREFIX = "if "


def _succeeded(client: Client, ctx: Context, command: str) -> bool:
    """Exit-status probe; transport failures propagate"""
    try:
        client.execute(ctx, command)
    except SSHError as e:
        if is_kind(e, ErrorKind.COMMAND_FAILED):
            return False
        raise
    return True


def write_line(writer: TextIO, line: str) -> None:
    try:
        writer.write(f"{line}\n")
        writer.flush()
    except (OSError, ValueError) as e:
        raise RepositoryError(f"failed to write to output: {e}") from e


class SudoHelper:
    """Decides whether commands need sudo and prefixes only those that do"""

    def __init__(self, client: Client):
        self.client = client

    def is_needed(self, ctx: Context) -> bool:
        """
        Check whether privilege escalation is required.

        Returns:
            False if any package manager config location is writable,
            True if none is but sudo is available

        Raises:
            PrivilegeError: root privileges required but sudo is not available
        """
        for command in WRITE_PROBES:
            if _succeeded(self.client, ctx, command):
                return False

        if not _succeeded(self.client, ctx, SUDO_PROBE):
            raise PrivilegeError("root privileges required but sudo is not available")
        return True

    def add_prefix(self, commands: List[str], needed: bool) -> List[str]:
        if not needed:
            return commands
        return [self._prefix(cmd) if self.command_needs_sudo(cmd) else cmd for cmd in commands]

    def _prefix(self, command: str) -> str:
        if command.startswith(COMPOUND_PREFIX):
            return f"sudo sh -c {shlex.quote(command)}"
        return f"sudo {command}"

    def command_needs_sudo(self, command: str) -> bool:
        """Package manager subcommands and anything touching system paths"""
        if command.startswith(PRIVILEGED_COMMANDS):
            return True
        if self._is_staging(command):
            return False
        if command.startswith(COMPOUND_PREFIX):
            return any(f"then {name}" in command for name in PRIVILEGED_COMMANDS)
        return any(path in command for path in SYSTEM_PATHS)

    def _is_staging(self, command: str) -> bool:
        if command.startswith(STAGING_HEREDOC):
            return True
        prefix, target = STAGING_ECHO
        return command.startswith(prefix) and target in command


class CommandExecutor:
    """Runs commands in order, stopping at the first failure"""

    def __init__(self, client: Client):
        self.client = client

    def run(self, ctx: Context, commands: List[str], writer: TextIO) -> None:
        """
        Execute commands sequentially, reporting `[i/N] <command>` before each.

        No rollback is attempted: commands that already ran stay applied.

        Raises:
            RepositoryError: naming the failed command, chained to its cause
        """
        total = len(commands)
        for i, command in enumerate(commands, 1):
            write_line(writer, f"  [{i}/{total}] {command}")
            try:
                self.client.execute(ctx, command)
            except Exception as e:
                logger.error("Command %d/%d failed: %s", i, total, command)
                raise RepositoryError(f"command failed: {command}: {e}") from e


class BaseHandler(ABC):
    """
    Repository handler skeleton.

    Subclasses provide the ordered command list; `build_commands` runs before
    any remote command so validation failures never reach the host.
    """

    setup_message = "Setting up repository..."

    def __init__(self, client: Client, force: bool = True):
        self.client = client
        self.force = force
        self.sudo = SudoHelper(client)

    @abstractmethod
    def build_commands(self) -> List[str]:
        pass

    def setup(self, ctx: Context, writer: TextIO) -> None:
        commands = self.build_commands()
        self.execute_setup(ctx, writer, self.setup_message, commands)

    def configured_probe(self) -> Optional[str]:
        """Command that succeeds when the repository is already configured"""
        return None

    def is_configured(self, ctx: Context) -> bool:
        probe = self.configured_probe()
        if not probe:
            return False
        return _succeeded(self.client, ctx, probe)

    def execute_setup(self, ctx: Context, writer: TextIO, message: str, commands: List[str]) -> None:
        write_line(writer, message)

        if not self.force and self.is_configured(ctx):
            logger.info("Repository already configured, skipping setup")
            write_line(writer, "Repository already configured, skipping (use --force to reconfigure)")
            return

        try:
            needed = self.sudo.is_needed(ctx)
        except PrivilegeError:
            raise
        except Exception as e:
            raise RepositoryError(f"failed to detect sudo requirement: {e}") from e

        if needed:
            write_line(writer, "Using sudo for system operations...")

        commands = self.sudo.add_prefix(commands, needed)
        CommandExecutor(self.client).run(ctx, commands, writer)
