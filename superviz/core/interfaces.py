"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, List, TextIO

import paramiko

if TYPE_CHECKING:
    from .context import Context
    from ..infrastructure.ssh.auth import AuthMethod
    from ..infrastructure.ssh.config import ClientConfig, ConnectionConfig


# Called with (hostname, remote key); raises to refuse the key
HostKeyCallback = Callable[[str, paramiko.PKey], None]


# ============================================================
# Transport
# ============================================================

class Session(ABC):
    """Single command channel on an established connection"""

    @abstractmethod
    def run(self, command: str) -> None:
        """Run command to completion; raise on non-zero exit"""
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class Connection(ABC):
    """Authenticated transport connection"""

    @abstractmethod
    def new_session(self) -> Session:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class Dialer(ABC):
    """Opens a transport connection and performs the handshake"""

    @abstractmethod
    def dial(self, ctx: "Context", address: str, config: "ClientConfig") -> Connection:
        pass


class Authenticator(ABC):
    """Resolves credentials into authentication methods"""

    @abstractmethod
    def get_auth_methods(self, ctx: "Context", config: "ConnectionConfig") -> List["AuthMethod"]:
        pass


class HostKeyManager(ABC):
    """Decides whether a remote host key is trusted"""

    @abstractmethod
    def get_host_key_callback(self, ctx: "Context", config: "ConnectionConfig") -> HostKeyCallback:
        pass


class HostKeyStore(ABC):
    """Persistent store of trusted host keys"""

    @abstractmethod
    def is_known(self, hostname: str, key: paramiko.PKey) -> bool:
        pass

    @abstractmethod
    def add(self, hostname: str, key: paramiko.PKey) -> None:
        pass

    def is_changed(self, hostname: str, key: paramiko.PKey) -> bool:
        """True if hostname is pinned to a different key of the same type"""
        return False


class PasswordReader(ABC):
    """Reads a password without echo"""

    @abstractmethod
    def read_password(self, prompt: str) -> str:
        pass


class KeyLoader(ABC):
    """Loads a private key from disk"""

    @abstractmethod
    def load_key(self, path: str) -> paramiko.PKey:
        pass


class UserPrompter(ABC):
    """Asks the user a yes/no question"""

    @abstractmethod
    def prompt_yes_no(self, message: str) -> bool:
        pass


class RateLimiter(ABC):
    """Guards connection attempts per host"""

    @abstractmethod
    def allow(self, ctx: "Context", host: str) -> bool:
        """
        Record an attempt for host if the window permits it.

        Returns False when rate limited; raises only for invalid input or a
        finished context.
        """
        pass


class Client(ABC):
    """SSH operations used by everything above the transport"""

    @abstractmethod
    def connect(self, ctx: "Context", config: "ConnectionConfig") -> None:
        pass

    @abstractmethod
    def execute(self, ctx: "Context", command: str) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


# ============================================================
# Services
# ============================================================

class DistroDetector(ABC):
    """Identifies the remote OS family"""

    @abstractmethod
    def detect(self, ctx: "Context") -> str:
        pass


class RepositorySetup(ABC):
    """Configures the package repository for a distribution"""

    @abstractmethod
    def setup(self, ctx: "Context", distro: str, writer: TextIO) -> None:
        pass
