"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .context import Context
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import (
    Authenticator,
    Client,
    Connection,
    Dialer,
    DistroDetector,
    HostKeyCallback,
    HostKeyManager,
    HostKeyStore,
    KeyLoader,
    PasswordReader,
    RateLimiter,
    RepositorySetup,
    Session,
    UserPrompter,
)
from .providers import InstallInfo, InstallProvider, VersionInfo, VersionProvider
from .telemetry import Telemetry, get_telemetry

__all__ = [
    "Context",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "Authenticator",
    "Client",
    "Connection",
    "Dialer",
    "DistroDetector",
    "HostKeyCallback",
    "HostKeyManager",
    "HostKeyStore",
    "KeyLoader",
    "PasswordReader",
    "RateLimiter",
    "RepositorySetup",
    "Session",
    "UserPrompter",
    "InstallInfo",
    "InstallProvider",
    "VersionInfo",
    "VersionProvider",
    "Telemetry",
    "get_telemetry",
]
