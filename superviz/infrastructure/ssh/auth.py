"""
SSH authentication

Resolution order:
1. A configured key path: cached key if loaded before, otherwise load, parse
   and cache it. A key that cannot be read or parsed is an AUTH_FAILED error;
   the authenticator only falls back to a password prompt when the caller
   opted in with `password_fallback=True`.
2. No key path: prompt for a password.
"""
import io
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import paramiko

from ...core.context import Context
from ...core.exceptions import ErrorKind, SSHError
from ...core.interfaces import Authenticator, KeyLoader, PasswordReader
from ...core.logging import get_logger
from .config import ConnectionConfig
from .terminal import TerminalPasswordReader

logger = get_logger(__name__)

# Tried in order; paramiko 3+ dropped DSA
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


# ============================================================
# Auth methods
# ============================================================

class AuthMethod(ABC):
    """One way of authenticating an established transport"""

    @abstractmethod
    def authenticate(self, transport: paramiko.Transport, user: str) -> None:
        pass


@dataclass(frozen=True)
class PublicKeyAuth(AuthMethod):
    key: paramiko.PKey

    def authenticate(self, transport: paramiko.Transport, user: str) -> None:
        transport.auth_publickey(user, self.key)


@dataclass(frozen=True)
class PasswordAuth(AuthMethod):
    password: str = field(repr=False)

    def authenticate(self, transport: paramiko.Transport, user: str) -> None:
        transport.auth_password(user, self.password)


# ============================================================
# Key loading
# ============================================================

def _zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


class FileKeyLoader(KeyLoader):
    """Loads an unencrypted OpenSSH/PEM private key"""

    def load_key(self, path: str) -> paramiko.PKey:
        key_path = Path(path).expanduser()
        try:
            key_data = bytearray(key_path.read_bytes())
        except OSError as e:
            raise ValueError(f"unable to read private key: {e}") from e

        try:
            return self._parse(key_data)
        finally:
            _zero(key_data)

    def _parse(self, key_data: bytearray) -> paramiko.PKey:
        try:
            text = key_data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError("unable to parse private key: not a text key file") from e

        last_error: Optional[Exception] = None
        for key_class in KEY_CLASSES:
            try:
                return key_class.from_private_key(io.StringIO(text))
            except paramiko.PasswordRequiredException as e:
                raise ValueError("unable to parse private key: key is passphrase protected") from e
            except (paramiko.SSHException, ValueError) as e:
                last_error = e
        raise ValueError(f"unable to parse private key: {last_error}") from last_error


# ============================================================
# Authenticator
# ============================================================

class DefaultAuthenticator(Authenticator):
    """
    Key-or-password authenticator with a per-path key cache.

    The cache is shared by concurrent install runs; each key path gets its own
    lock so loading one key never blocks another.
    """

    def __init__(
        self,
        password_reader: Optional[PasswordReader] = None,
        key_loader: Optional[KeyLoader] = None,
        password_fallback: bool = False,
    ):
        self.password_reader = password_reader or TerminalPasswordReader()
        self.key_loader = key_loader or FileKeyLoader()
        self.password_fallback = password_fallback
        self._key_cache: Dict[str, paramiko.PKey] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get_auth_methods(self, ctx: Context, config: ConnectionConfig) -> List[AuthMethod]:
        if config.key_path:
            try:
                return [PublicKeyAuth(self._get_key(config.key_path))]
            except SSHError:
                if not self.password_fallback:
                    raise
                logger.warning("Key %s could not be loaded, falling back to password", config.key_path)

        return [self._read_password(config)]

    def _get_key(self, key_path: str) -> paramiko.PKey:
        cached = self._key_cache.get(key_path)
        if cached is not None:
            return cached

        with self._lock_for(key_path):
            cached = self._key_cache.get(key_path)
            if cached is not None:
                return cached
            try:
                key = self.key_loader.load_key(key_path)
            except Exception as e:
                raise SSHError(ErrorKind.AUTH_FAILED, str(e), cause=e).with_context("key_path", key_path)
            self._key_cache[key_path] = key
            logger.debug("Loaded %s private key from %s", key.get_name(), key_path)
            return key

    def _lock_for(self, key_path: str) -> threading.Lock:
        lock = self._key_locks.get(key_path)
        if lock is not None:
            return lock
        with self._locks_guard:
            return self._key_locks.setdefault(key_path, threading.Lock())

    def _read_password(self, config: ConnectionConfig) -> PasswordAuth:
        try:
            password = self.password_reader.read_password(f"Password for {config.user}@{config.host}: ")
        except (OSError, EOFError) as e:
            raise SSHError.wrap(ErrorKind.AUTH_FAILED, e)
        return PasswordAuth(password)
