"""
Install domain models
"""
from dataclasses import dataclass
from typing import Optional

from ...core.constants import DEFAULT_INSTALL_TIMEOUT, DEFAULT_SSH_PORT
from ...core.exceptions import InvalidTargetError


@dataclass
class InstallConfig:
    """Options for one install run, as populated by the CLI/config layer"""
    target: str = ""
    user: str = ""
    host: str = ""
    port: int = DEFAULT_SSH_PORT
    key_path: Optional[str] = None
    timeout: float = DEFAULT_INSTALL_TIMEOUT
    force: bool = False
    skip_host_key_check: bool = False
    accept_new_host_key: bool = False
    known_hosts_path: Optional[str] = None
    password_fallback: bool = False


@dataclass(frozen=True)
class InstallTarget:
    """user@host split at the first '@'"""
    user: str
    host: str

    @classmethod
    def parse(cls, target: str) -> "InstallTarget":
        """
        Parse a user@host token.

        Raises:
            InvalidTargetError: if either side of the first '@' is empty
        """
        user, sep, host = (target or "").partition("@")
        if not sep or not user or not host:
            raise InvalidTargetError(target)
        return cls(user=user, host=host)

    def __str__(self) -> str:
        return f"{self.user}@{self.host}"

