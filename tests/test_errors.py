"""
Unit tests for the error taxonomy and transport error classification
"""

import socket

import paramiko
import pytest

from superviz.core.exceptions import (
    Cancelled,
    DeadlineExceeded,
    ErrorKind,
    InstallError,
    SSHError,
    classify_error,
    error_is,
    is_auth_error,
    is_connection_error,
    is_host_key_error,
    is_kind,
    is_timeout_error,
)


class TestSSHError:
    """SSHError construction, context and matching"""

    def test_kind_is_read_only(self) -> None:
        err = SSHError(ErrorKind.AUTH_FAILED, "denied")
        with pytest.raises(AttributeError):
            err.kind = ErrorKind.CONNECTION_FAILED
        assert err.kind is ErrorKind.AUTH_FAILED

    def test_with_context_is_additive_and_chainable(self) -> None:
        err = SSHError(ErrorKind.COMMAND_FAILED, "exit 1")
        returned = err.with_context("command", "ls").with_context("host", "h")
        assert returned is err
        assert err.context == {"command": "ls", "host": "h"}

    def test_str_includes_kind_message_and_context(self) -> None:
        err = SSHError(ErrorKind.INVALID_CONFIG, "port must be between 1 and 65535")
        assert str(err) == "invalid_config: port must be between 1 and 65535"
        err.with_context("port", 0)
        assert str(err) == "invalid_config: port must be between 1 and 65535 (context: {'port': 0})"

    def test_wrap_keeps_cause(self) -> None:
        cause = OSError("broken pipe")
        err = SSHError.wrap(ErrorKind.SESSION_CREATION, cause)
        assert err.cause is cause
        assert err.__cause__ is cause
        assert err.message == "broken pipe"

    def test_matches_kind_and_cause(self) -> None:
        cause = TimeoutError("slow")
        err = SSHError.wrap(ErrorKind.COMMAND_TIMEOUT, cause)
        assert err.matches(ErrorKind.COMMAND_TIMEOUT)
        assert not err.matches(ErrorKind.AUTH_FAILED)
        assert err.matches(TimeoutError)
        assert err.matches(cause)

    def test_nested_cause_kind_matches(self) -> None:
        inner = SSHError(ErrorKind.AUTH_FAILED, "denied")
        outer = SSHError.wrap(ErrorKind.CONNECTION_FAILED, inner)
        assert outer.matches(ErrorKind.AUTH_FAILED)
        assert is_kind(outer, ErrorKind.AUTH_FAILED)


class TestChainHelpers:
    """Kind checks survive orchestration-level wrapping"""

    def test_kind_survives_raise_from(self) -> None:
        with pytest.raises(InstallError) as exc_info:
            try:
                raise SSHError(ErrorKind.AUTH_FAILED, "unable to authenticate")
            except SSHError as e:
                raise InstallError("authentication failed for u@h") from e
        assert is_auth_error(exc_info.value)
        assert not is_connection_error(exc_info.value)

    def test_predicates(self) -> None:
        assert is_timeout_error(SSHError(ErrorKind.COMMAND_TIMEOUT, "t"))
        assert is_host_key_error(SSHError(ErrorKind.HOST_KEY_REJECTED, "h"))
        assert is_connection_error(SSHError(ErrorKind.CONNECTION_FAILED, "c"))

    def test_none_matches_nothing(self) -> None:
        assert not error_is(None, ErrorKind.AUTH_FAILED)
        assert not is_auth_error(None)

    def test_plain_exception_target(self) -> None:
        err = SSHError.wrap(ErrorKind.CONNECTION_FAILED, ConnectionRefusedError())
        assert error_is(err, ConnectionRefusedError)
        assert not error_is(err, PermissionError)


class TestClassifyError:
    """Dial failure classification table"""

    ADDRESS = "host.example.com:22"

    def test_existing_ssh_error_is_not_reclassified(self) -> None:
        err = SSHError(ErrorKind.HOST_KEY_REJECTED, "user rejected host key")
        classified = classify_error(err, self.ADDRESS)
        assert classified is err
        assert classified.kind is ErrorKind.HOST_KEY_REJECTED
        assert classified.context["address"] == self.ADDRESS

    def test_cancelled_context(self) -> None:
        classified = classify_error(Cancelled(), self.ADDRESS)
        assert classified.kind is ErrorKind.CONNECTION_FAILED
        assert classified.message == "connection cancelled"
        assert classified.context["address"] == self.ADDRESS

    def test_deadline_exceeded(self) -> None:
        classified = classify_error(DeadlineExceeded(), self.ADDRESS)
        assert classified.kind is ErrorKind.CONNECTION_FAILED
        assert classified.message == "connection timeout"
        assert classified.context["address"] == self.ADDRESS

    def test_socket_timeout(self) -> None:
        classified = classify_error(socket.timeout("timed out"), self.ADDRESS)
        assert classified.kind is ErrorKind.CONNECTION_FAILED
        assert classified.message == "connection timeout"
        assert classified.context["address"] == self.ADDRESS

    def test_paramiko_authentication_exception(self) -> None:
        classified = classify_error(paramiko.AuthenticationException("Authentication failed."), self.ADDRESS)
        assert classified.kind is ErrorKind.AUTH_FAILED

    @pytest.mark.parametrize(
        "err,kind",
        [
            (Exception("Permission denied (publickey)"), ErrorKind.AUTH_FAILED),
            (ConnectionRefusedError(111, "Connection refused"), ErrorKind.CONNECTION_FAILED),
            (OSError(113, "No route to host"), ErrorKind.CONNECTION_FAILED),
            (Exception("Host key verification failed"), ErrorKind.HOST_KEY_REJECTED),
            (Exception("something else entirely"), ErrorKind.CONNECTION_FAILED),
        ],
    )
    def test_text_patterns(self, err: Exception, kind: ErrorKind) -> None:
        classified = classify_error(err, self.ADDRESS)
        assert classified.kind is kind
        assert classified.cause is err
        assert classified.context["address"] == self.ADDRESS
