"""
Transport dialer

Opens the TCP socket, runs the SSH handshake, verifies the host key through
the configured callback and authenticates. Every failure leaves this module
as a classified SSHError carrying the attempted address.
"""
import socket
from typing import Optional

import paramiko

from ...core.constants import DEFAULT_KEEPALIVE, DEFAULT_SSH_TIMEOUT
from ...core.context import Context
from ...core.exceptions import ErrorKind, RemoteError, SSHError, classify_error
from ...core.interfaces import Connection, Dialer, Session
from ...core.logging import get_logger
from .config import ClientConfig, split_address

logger = get_logger(__name__)


class RemoteCommandError(RemoteError):
    """Remote command exited with a non-zero status"""

    def __init__(self, command: str, exit_status: int, stderr: str = ""):
        message = f"Process exited with status {exit_status}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr


class ParamikoSession(Session):
    """Single exec channel"""

    def __init__(self, channel: paramiko.Channel):
        self.channel = channel

    def run(self, command: str) -> None:
        self.channel.exec_command(command)
        # Drain both streams so the remote side never blocks on a full window
        stdout = self.channel.makefile("rb")
        stderr = self.channel.makefile_stderr("rb")
        stdout.read()
        err = stderr.read().decode("utf-8", errors="replace")
        exit_status = self.channel.recv_exit_status()
        if exit_status != 0:
            raise RemoteCommandError(command, exit_status, err)

    def close(self) -> None:
        self.channel.close()


class ParamikoConnection(Connection):
    """Authenticated paramiko transport"""

    def __init__(self, transport: paramiko.Transport):
        self.transport = transport

    def new_session(self) -> Session:
        try:
            channel = self.transport.open_session()
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise SSHError.wrap(ErrorKind.SESSION_CREATION, e)
        return ParamikoSession(channel)

    def close(self) -> None:
        self.transport.close()


class ParamikoDialer(Dialer):
    """Dialer built on socket + paramiko.Transport"""

    def __init__(self, timeout: float = DEFAULT_SSH_TIMEOUT, keepalive: int = DEFAULT_KEEPALIVE):
        self.timeout = timeout
        self.keepalive = keepalive

    def dial(self, ctx: Context, address: str, config: ClientConfig) -> Connection:
        sock: Optional[socket.socket] = None
        transport: Optional[paramiko.Transport] = None

        def abort() -> None:
            # Unblocks a handshake or auth in progress when ctx is cancelled
            if transport is not None:
                transport.close()
            elif sock is not None:
                sock.close()

        unregister = ctx.on_done(abort)
        try:
            ctx.check()
            host, port = split_address(address)
            timeout = self._timeout(ctx, config)

            sock = socket.create_connection((host, port), timeout=timeout)
            ctx.check()

            transport = paramiko.Transport(sock)
            transport.banner_timeout = timeout
            transport.auth_timeout = timeout
            transport.start_client(timeout=timeout)
            ctx.check()

            config.host_key_callback(address, transport.get_remote_server_key())
            self._authenticate(ctx, transport, config)
            ctx.check()

            if self.keepalive:
                transport.set_keepalive(self.keepalive)
            logger.debug("SSH connection established to %s as %s", address, config.user)
            return ParamikoConnection(transport)
        except BaseException as e:
            if transport is not None:
                transport.close()
            elif sock is not None:
                sock.close()
            if not isinstance(e, Exception):
                raise
            # A finished context surfaces as its own error, not as the socket error it caused
            classified = classify_error(ctx.error() or e, address)
            if classified is e:
                raise
            raise classified from e
        finally:
            unregister()

    def _timeout(self, ctx: Context, config: ClientConfig) -> float:
        timeout = config.timeout or self.timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        return timeout

    def _authenticate(self, ctx: Context, transport: paramiko.Transport, config: ClientConfig) -> None:
        last_error: Optional[Exception] = None
        for method in config.auth_methods:
            ctx.check()
            try:
                method.authenticate(transport, config.user)
            except paramiko.AuthenticationException as e:
                last_error = e
                continue
            if transport.is_authenticated():
                return

        message = "unable to authenticate"
        if last_error is not None:
            message = f"{message}: {last_error}"
        raise paramiko.AuthenticationException(message)
