"""
SSH transport: configuration, rate limiting, authentication, host key
verification, dialing and the client that composes them
"""
from .auth import AuthMethod, DefaultAuthenticator, FileKeyLoader, PasswordAuth, PublicKeyAuth
from .client import RemoteClient, new_client
from .config import ClientConfig, ConnectionConfig
from .dialer import ParamikoConnection, ParamikoDialer, ParamikoSession, RemoteCommandError
from .hostkey import (
    DefaultHostKeyManager,
    FileHostKeyStore,
    HostKeyStatus,
    fingerprint_sha256,
    key_type_display,
    known_hosts_name,
)
from .ratelimit import NoOpRateLimiter, TokenBucketRateLimiter, default_rate_limiter
from .terminal import TerminalPasswordReader, TerminalPrompter

__all__ = [
    "AuthMethod",
    "DefaultAuthenticator",
    "FileKeyLoader",
    "PasswordAuth",
    "PublicKeyAuth",
    "RemoteClient",
    "new_client",
    "ClientConfig",
    "ConnectionConfig",
    "ParamikoConnection",
    "ParamikoDialer",
    "ParamikoSession",
    "RemoteCommandError",
    "DefaultHostKeyManager",
    "FileHostKeyStore",
    "HostKeyStatus",
    "fingerprint_sha256",
    "key_type_display",
    "known_hosts_name",
    "NoOpRateLimiter",
    "TokenBucketRateLimiter",
    "default_rate_limiter",
    "TerminalPasswordReader",
    "TerminalPrompter",
]
