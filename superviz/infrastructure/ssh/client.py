"""
SSH client

Composes the authenticator, host key manager, dialer and rate limiter behind
connect / execute / close.

Execute runs the remote command on a worker thread and races it against the
caller's context. When the context finishes first the session is closed and
COMMAND_TIMEOUT is raised; SSH gives no guarantee the remote process was
terminated, so it may keep running on the host.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Optional

from ...core.context import Context
from ...core.exceptions import DeadlineExceeded, ErrorKind, SSHError
from ...core.interfaces import (
    Authenticator,
    Client,
    Connection,
    Dialer,
    HostKeyManager,
    RateLimiter,
)
from ...core.logging import get_logger
from .auth import DefaultAuthenticator
from .config import ClientConfig, ConnectionConfig
from .dialer import ParamikoDialer
from .hostkey import DefaultHostKeyManager
from .ratelimit import default_rate_limiter

logger = get_logger(__name__)


class RemoteClient(Client):
    """
    SSH client with injectable collaborators.

    Any collaborator left as None gets its default implementation; the rate
    limiter defaults to the process-wide shared instance.
    """

    def __init__(
        self,
        authenticator: Optional[Authenticator] = None,
        host_key_manager: Optional[HostKeyManager] = None,
        dialer: Optional[Dialer] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.authenticator = authenticator or DefaultAuthenticator()
        self.host_key_manager = host_key_manager or DefaultHostKeyManager()
        self.dialer = dialer or ParamikoDialer()
        self.rate_limiter = rate_limiter or default_rate_limiter()
        self.config: Optional[ConnectionConfig] = None
        self._conn: Optional[Connection] = None
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # --------------------
    # Connection management
    # --------------------
    def connect(self, ctx: Context, config: ConnectionConfig) -> None:
        """
        Validate config, resolve host key policy and credentials, then dial.

        Raises:
            SSHError: INVALID_CONFIG, HOST_KEY_REJECTED, AUTH_FAILED or
                CONNECTION_FAILED
        """
        config.validate()
        self.config = config

        try:
            allowed = self.rate_limiter.allow(ctx, config.host)
        except Exception as e:
            raise SSHError.wrap(ErrorKind.CONNECTION_FAILED, e).with_context("address", config.address)
        if not allowed:
            raise SSHError(
                ErrorKind.CONNECTION_FAILED, "too many connection attempts, try again later"
            ).with_context("address", config.address)

        try:
            host_key_callback = self.host_key_manager.get_host_key_callback(ctx, config)
        except SSHError:
            raise
        except Exception as e:
            raise SSHError.wrap(ErrorKind.HOST_KEY_REJECTED, e)

        try:
            auth_methods = self.authenticator.get_auth_methods(ctx, config)
        except SSHError:
            raise
        except Exception as e:
            raise SSHError.wrap(ErrorKind.AUTH_FAILED, e)

        client_config = ClientConfig(
            user=config.user,
            auth_methods=auth_methods,
            host_key_callback=host_key_callback,
            timeout=config.timeout,
        )
        conn = self.dialer.dial(ctx, config.address, client_config)

        with self._lock:
            previous, self._conn = self._conn, conn
        if previous is not None:
            self._close_quietly(previous)
        logger.info("Connected to %s@%s", config.user, config.address)

    # --------------------
    # Command execution
    # --------------------
    def execute(self, ctx: Context, command: str) -> None:
        """
        Run command remotely, honouring ctx cancellation and deadline.

        Raises:
            SSHError: NOT_CONNECTED, SESSION_CREATION, COMMAND_FAILED or
                COMMAND_TIMEOUT
        """
        conn = self._conn
        if conn is None:
            raise SSHError(ErrorKind.NOT_CONNECTED, "client is not connected")

        try:
            session = conn.new_session()
        except SSHError:
            raise
        except Exception as e:
            raise SSHError.wrap(ErrorKind.SESSION_CREATION, e)

        try:
            future = self._start(session, command)

            finished = threading.Event()
            future.add_done_callback(lambda _: finished.set())
            unregister = ctx.on_done(finished.set)
            try:
                finished.wait(ctx.remaining())
            finally:
                unregister()

            if not future.done():
                logger.warning("Command timed out, it may still be running remotely: %s", command)
                raise SSHError.wrap(
                    ErrorKind.COMMAND_TIMEOUT, ctx.error() or DeadlineExceeded()
                ).with_context("command", command)

            error = future.exception()
            if error is not None:
                raise SSHError.wrap(ErrorKind.COMMAND_FAILED, error).with_context("command", command)
            logger.debug("Command succeeded: %s", command)
        finally:
            try:
                session.close()
            except Exception as e:
                logger.warning("Failed to close SSH session: %s", e)

    def _start(self, session, command: str) -> Future:
        """Run session.run(command) on a daemon worker; only its future is observed"""
        future: Future = Future()

        def worker() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                session.run(command)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(None)

        threading.Thread(target=worker, name="ssh-exec", daemon=True).start()
        return future

    def close(self) -> None:
        """Close the connection; a no-op when not connected"""
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            logger.debug("Connection closed")

    def _close_quietly(self, conn: Connection) -> None:
        try:
            conn.close()
        except Exception as e:
            logger.warning("Failed to close previous connection: %s", e)

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def new_client(
    authenticator: Optional[Authenticator] = None,
    host_key_manager: Optional[HostKeyManager] = None,
    dialer: Optional[Dialer] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> RemoteClient:
    """Factory with default collaborators"""
    return RemoteClient(
        authenticator=authenticator,
        host_key_manager=host_key_manager,
        dialer=dialer,
        rate_limiter=rate_limiter,
    )
