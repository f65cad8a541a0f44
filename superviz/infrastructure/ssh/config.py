"""
SSH connection configuration
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from ...core.exceptions import ErrorKind, SSHError

if TYPE_CHECKING:
    from ...core.interfaces import HostKeyCallback
    from .auth import AuthMethod


@dataclass
class ConnectionConfig:
    """Parameters for a single SSH connection"""
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    key_path: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT
    skip_host_key_check: bool = False
    accept_new_host_key: bool = False
    _address: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    def validate(self) -> None:
        """
        Validate the configuration and cache the network address.

        Raises:
            SSHError: INVALID_CONFIG describing the first problem found
        """
        if not self.host:
            raise SSHError(ErrorKind.INVALID_CONFIG, "host cannot be empty")
        if not self.user:
            raise SSHError(ErrorKind.INVALID_CONFIG, "user cannot be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise SSHError(ErrorKind.INVALID_CONFIG, "port must be between 1 and 65535").with_context(
                "port", self.port
            )
        if self.timeout is None or self.timeout <= 0:
            raise SSHError(ErrorKind.INVALID_CONFIG, "timeout must be positive")

        self._address = f"{self.host}:{self.port}"

    @property
    def address(self) -> str:
        """host:port, computed once"""
        if self._address is None:
            self._address = f"{self.host}:{self.port}"
        return self._address


@dataclass
class ClientConfig:
    """Handshake parameters handed to the dialer"""
    user: str
    auth_methods: List["AuthMethod"]
    host_key_callback: "HostKeyCallback"
    timeout: float = DEFAULT_SSH_TIMEOUT


def split_address(address: str) -> tuple[str, int]:
    """Split host:port; IPv6 literals may be bracketed"""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise SSHError(ErrorKind.INVALID_CONFIG, "address must be host:port").with_context(
            "address", address
        )
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)
