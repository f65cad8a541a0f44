"""
Unified exception definitions

Transport failures are surfaced as SSHError carrying an ErrorKind drawn from a
fixed set, so callers never need to string-match raw paramiko/socket errors.
"""
import socket
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Type, Union

import paramiko

__all__ = [
    "RemoteError",
    "ConfigError",
    "ContextError",
    "Cancelled",
    "DeadlineExceeded",
    "ErrorKind",
    "SSHError",
    "ERROR_PATTERNS",
    "error_is",
    "is_kind",
    "is_auth_error",
    "is_connection_error",
    "is_timeout_error",
    "is_host_key_error",
    "classify_error",
    "InvalidTargetError",
    "MissingConfigError",
    "MissingWriterError",
    "InstallError",
    "DetectionError",
    "RepositoryError",
    "PrivilegeError",
    "RepositoryConfigError",
    "UnsupportedDistributionError",
]


class RemoteError(Exception):
    """Base exception class"""
    pass


class ConfigError(RemoteError):
    """Configuration error"""
    pass


# ============================================================
# Context errors
# ============================================================

class ContextError(RemoteError):
    """Context finished before the operation completed"""
    pass


class Cancelled(ContextError):
    """Context was cancelled"""

    def __init__(self, message: str = "context cancelled"):
        super().__init__(message)


class DeadlineExceeded(ContextError):
    """Context deadline passed"""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


# ============================================================
# SSH error taxonomy
# ============================================================

class ErrorKind(str, Enum):
    """Classification of SSH transport failures"""
    INVALID_CONFIG = "invalid_config"
    NOT_CONNECTED = "not_connected"
    SESSION_CREATION = "session_creation_failed"
    COMMAND_FAILED = "command_failed"
    COMMAND_TIMEOUT = "command_timeout"
    HOST_KEY_REJECTED = "host_key_rejected"
    AUTH_FAILED = "auth_failed"
    CONNECTION_FAILED = "connection_failed"


MatchTarget = Union[ErrorKind, Type[BaseException], BaseException]


class SSHError(RemoteError):
    """
    SSH error with a fixed kind, optional wrapped cause and context.

    The kind cannot change after construction; context entries can only be added.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self.message = message
        self.cause = cause
        self.context: Dict[str, Any] = dict(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @classmethod
    def wrap(cls, kind: ErrorKind, cause: BaseException) -> "SSHError":
        """Wrap an arbitrary exception, reusing its text as the message"""
        return cls(kind, str(cause) or type(cause).__name__, cause=cause)

    def with_context(self, key: str, value: Any) -> "SSHError":
        """Attach a context entry (chainable)"""
        self.context[key] = value
        return self

    def matches(self, target: MatchTarget) -> bool:
        """True if this error's kind or its wrapped cause matches target"""
        if isinstance(target, ErrorKind):
            if self._kind is target:
                return True
        elif _matches_exception(self, target):
            return True
        if self.cause is None:
            return False
        return error_is(self.cause, target)

    def __str__(self) -> str:
        if self.context:
            return f"{self._kind.value}: {self.message} (context: {self.context})"
        return f"{self._kind.value}: {self.message}"


def _matches_exception(err: BaseException, target: Union[Type[BaseException], BaseException]) -> bool:
    if isinstance(target, type):
        return isinstance(err, target)
    return err is target


def _iter_chain(err: Optional[BaseException]) -> Iterator[BaseException]:
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = getattr(err, "cause", None) or err.__cause__


def error_is(err: Optional[BaseException], target: MatchTarget) -> bool:
    """
    Chain-aware comparison.

    Walks the wrapped `cause` attribute and Python's `__cause__` chain, so an
    SSHError re-raised with `raise ... from err` is still recognised.
    """
    for current in _iter_chain(err):
        if isinstance(current, SSHError):
            if isinstance(target, ErrorKind) and current.kind is target:
                return True
        if not isinstance(target, ErrorKind) and _matches_exception(current, target):
            return True
    return False


def is_kind(err: Optional[BaseException], kind: ErrorKind) -> bool:
    return error_is(err, kind)


def is_auth_error(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.AUTH_FAILED)


def is_connection_error(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.CONNECTION_FAILED)


def is_timeout_error(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.COMMAND_TIMEOUT)


def is_host_key_error(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.HOST_KEY_REJECTED)


# ============================================================
# Transport error classification
# ============================================================

# Best-effort: the transport does not expose structured error codes, so these
# lowercase substrings are matched against the error text in order.
ERROR_PATTERNS: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    (ErrorKind.AUTH_FAILED, ("permission denied", "unable to authenticate")),
    (ErrorKind.CONNECTION_FAILED, ("connection refused", "no route to host", "host is unreachable")),
    (ErrorKind.HOST_KEY_REJECTED, ("host key",)),
)


def classify_error(err: BaseException, address: str) -> SSHError:
    """
    Classify a low-level dial/handshake failure.

    Priority: context cancellation/deadline, network timeout, authentication,
    network failure, host key, then a generic connection failure.
    """
    if isinstance(err, SSHError):
        if "address" not in err.context:
            err.with_context("address", address)
        return err

    if isinstance(err, Cancelled):
        return SSHError(ErrorKind.CONNECTION_FAILED, "connection cancelled", cause=err).with_context(
            "address", address
        )
    if isinstance(err, DeadlineExceeded):
        return SSHError(ErrorKind.CONNECTION_FAILED, "connection timeout", cause=err).with_context(
            "address", address
        )

    if isinstance(err, (socket.timeout, TimeoutError)):
        return SSHError(ErrorKind.CONNECTION_FAILED, "connection timeout", cause=err).with_context(
            "address", address
        )

    if isinstance(err, paramiko.AuthenticationException):
        return SSHError.wrap(ErrorKind.AUTH_FAILED, err).with_context("address", address)

    text = str(err).lower()
    for kind, patterns in ERROR_PATTERNS:
        if any(pattern in text for pattern in patterns):
            return SSHError.wrap(kind, err).with_context("address", address)

    return SSHError.wrap(ErrorKind.CONNECTION_FAILED, err).with_context("address", address)


# ============================================================
# Install / repository errors
# ============================================================

class InvalidTargetError(ConfigError):
    """Target is not in user@host form"""

    def __init__(self, target: str = ""):
        message = "invalid target format, expected user@host"
        if target:
            message = f"{message}: {target}"
        super().__init__(message)
        self.target = target


class MissingConfigError(ConfigError):
    """No install configuration was provided"""

    def __init__(self, message: str = "config cannot be None"):
        super().__init__(message)


class MissingWriterError(ConfigError):
    """No output writer was provided"""

    def __init__(self, message: str = "writer cannot be None"):
        super().__init__(message)


class InstallError(RemoteError):
    """Install workflow error"""
    pass


class DetectionError(RemoteError):
    """Remote distribution could not be identified"""

    def __init__(self, message: str = "unable to detect distribution", distro: str = "unknown"):
        super().__init__(message)
        self.distro = distro


class RepositoryError(RemoteError):
    """Repository setup error"""
    pass


class PrivilegeError(RepositoryError):
    """Root privileges are required but cannot be obtained"""
    pass


class RepositoryConfigError(RepositoryError):
    """Repository descriptor failed validation"""
    pass


class UnsupportedDistributionError(RepositoryError):
    """No repository handler for this distribution"""

    def __init__(self, distro: str):
        super().__init__(f"unsupported distribution: {distro}")
        self.distro = distro
