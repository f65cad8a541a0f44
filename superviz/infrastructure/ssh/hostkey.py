"""
Host key verification (trust on first use)

A key already pinned in known_hosts for the host is accepted silently. An
unseen key is shown to the user with its SHA256 fingerprint and either
auto-accepted (when configured) or confirmed interactively; accepted keys are
appended to known_hosts. A pinned host presenting a different key of the same
type is refused outright.
"""
import base64
import hashlib
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Optional

import paramiko
from paramiko.hostkeys import HostKeyEntry
from rich.console import Console
from rich.markup import escape

from ...core.constants import DEFAULT_SSH_PORT, KNOWN_HOSTS_MODE, KNOWN_HOSTS_PATH, SSH_DIR_MODE
from ...core.context import Context
from ...core.exceptions import ErrorKind, SSHError
from ...core.interfaces import HostKeyCallback, HostKeyManager, HostKeyStore, UserPrompter
from ...core.logging import get_logger, get_stderr_console
from .config import ConnectionConfig
from .terminal import TerminalPrompter

logger = get_logger(__name__)

KEY_TYPE_NAMES = {
    "ssh-ed25519": "ED25519",
    "ssh-rsa": "RSA",
    "rsa-sha2-256": "RSA",
    "rsa-sha2-512": "RSA",
    "ecdsa-sha2-nistp256": "ECDSA",
    "ecdsa-sha2-nistp384": "ECDSA",
    "ecdsa-sha2-nistp521": "ECDSA",
    "ssh-dss": "DSA",
}


class HostKeyStatus(str, Enum):
    VERIFIED = "verified"
    UNKNOWN = "unknown"
    CHANGED = "changed"


def key_type_display(key_type: str) -> str:
    """Human-friendly key type, e.g. ssh-ed25519 -> ED25519"""
    return KEY_TYPE_NAMES.get(key_type, key_type.upper())


def fingerprint_sha256(key: paramiko.PKey) -> str:
    """OpenSSH-style SHA256 fingerprint"""
    digest = hashlib.sha256(key.asbytes()).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def known_hosts_name(hostname: str) -> str:
    """
    Normalise host or host:port the way OpenSSH writes known_hosts.

    Port 22 is dropped, other ports become [host]:port.
    """
    if hostname.startswith("["):
        host, _, port = hostname[1:].partition("]:")
        if not port:
            return hostname
    else:
        host, sep, port = hostname.rpartition(":")
        if not sep or not port.isdigit() or ":" in host:
            return hostname
    if int(port) == DEFAULT_SSH_PORT:
        return host
    return f"[{host}]:{port}"


# ============================================================
# Known hosts store
# ============================================================

class FileHostKeyStore(HostKeyStore):
    """
    known_hosts file store.

    Append-only: entries are added on acceptance, never rewritten.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or KNOWN_HOSTS_PATH).expanduser()
        self._host_keys: Optional[paramiko.HostKeys] = None
        self._lock = threading.Lock()

    def _load(self) -> paramiko.HostKeys:
        with self._lock:
            if self._host_keys is None:
                host_keys = paramiko.HostKeys()
                if self.path.exists():
                    try:
                        host_keys.load(str(self.path))
                    except (OSError, paramiko.SSHException) as e:
                        logger.warning("Failed to load known_hosts file %s: %s", self.path, e)
                self._host_keys = host_keys
            return self._host_keys

    def check(self, hostname: str, key: paramiko.PKey) -> HostKeyStatus:
        entry = self._load().lookup(known_hosts_name(hostname))
        if entry is None:
            return HostKeyStatus.UNKNOWN
        stored = entry.get(key.get_name())
        if stored is None:
            return HostKeyStatus.UNKNOWN
        if stored.asbytes() == key.asbytes():
            return HostKeyStatus.VERIFIED
        return HostKeyStatus.CHANGED

    def is_known(self, hostname: str, key: paramiko.PKey) -> bool:
        return self.check(hostname, key) is HostKeyStatus.VERIFIED

    def is_changed(self, hostname: str, key: paramiko.PKey) -> bool:
        return self.check(hostname, key) is HostKeyStatus.CHANGED

    def add(self, hostname: str, key: paramiko.PKey) -> None:
        name = known_hosts_name(hostname)
        line = HostKeyEntry([name], key).to_line()

        with self._lock:
            try:
                self.path.parent.mkdir(mode=SSH_DIR_MODE, parents=True, exist_ok=True)
                fd = os.open(self.path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, KNOWN_HOSTS_MODE)
                with os.fdopen(fd, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise SSHError(ErrorKind.HOST_KEY_REJECTED, f"failed to write host key: {e}", cause=e).with_context(
                    "known_hosts", str(self.path)
                )
            # Re-read on next lookup
            self._host_keys = None

        logger.info("Added %s key for %s to %s", key.get_name(), name, self.path)


# ============================================================
# Host key manager
# ============================================================

def _insecure_callback(hostname: str, key: paramiko.PKey) -> None:
    return None


class DefaultHostKeyManager(HostKeyManager):
    """TOFU host key manager backed by a known_hosts store"""

    def __init__(
        self,
        store: Optional[HostKeyStore] = None,
        prompter: Optional[UserPrompter] = None,
        console: Optional[Console] = None,
    ):
        self.store = store or FileHostKeyStore()
        self.prompter = prompter or TerminalPrompter()
        self.console = console or get_stderr_console()

    def get_host_key_callback(self, ctx: Context, config: ConnectionConfig) -> HostKeyCallback:
        if config.skip_host_key_check:
            logger.warning("Host key verification disabled for %s", config.address)
            self.console.print("[bold yellow]WARNING:[/bold yellow] Host key verification disabled")
            return _insecure_callback
        return _InteractiveVerifier(self, config)

    def handle_unknown_key(self, config: ConnectionConfig, hostname: str, key: paramiko.PKey) -> None:
        key_type = key_type_display(key.get_name())
        fingerprint = fingerprint_sha256(key)
        name = escape(known_hosts_name(hostname))

        self.console.print(f"The authenticity of host '{name}' can't be established.")
        self.console.print(f"{key_type} key fingerprint is {fingerprint}.")

        if config.accept_new_host_key:
            self.store.add(hostname, key)
            logger.warning("Auto-accepted %s key %s for %s", key_type, fingerprint, hostname)
            self.console.print(f"Warning: Permanently added '{name}' to known hosts.")
            return

        if not self.prompter.prompt_yes_no("Continue connecting (yes/no)?"):
            logger.warning("User rejected %s key %s for %s", key_type, fingerprint, hostname)
            raise SSHError(ErrorKind.HOST_KEY_REJECTED, "user rejected host key").with_context("host", hostname)

        self.store.add(hostname, key)
        logger.info("User accepted %s key %s for %s", key_type, fingerprint, hostname)
        self.console.print(f"Warning: Permanently added '{name}' to known hosts.")


class _InteractiveVerifier:
    """
    Host key callback for one connection attempt.

    The unknown-key decision is made at most once; repeated invocations
    replay the first outcome.
    """

    def __init__(self, manager: DefaultHostKeyManager, config: ConnectionConfig):
        self._manager = manager
        self._config = config
        self._lock = threading.Lock()
        self._decided = False
        self._error: Optional[BaseException] = None

    def __call__(self, hostname: str, key: paramiko.PKey) -> None:
        store = self._manager.store
        if store.is_known(hostname, key):
            logger.debug("Host key for %s verified", hostname)
            return
        if store.is_changed(hostname, key):
            logger.error("Host key for %s does not match known_hosts", hostname)
            raise SSHError(
                ErrorKind.HOST_KEY_REJECTED,
                "remote host identification has changed; refusing to connect",
            ).with_context("host", hostname).with_context("fingerprint", fingerprint_sha256(key))

        with self._lock:
            if not self._decided:
                try:
                    self._manager.handle_unknown_key(self._config, hostname, key)
                except Exception as e:
                    self._error = e
                self._decided = True
        if self._error is not None:
            raise self._error
