"""
Unit tests for key loading and the authenticator

Key files are real ECDSA keys written to tmp_path so paramiko parses them
exactly as it would a user's key.
"""

from pathlib import Path
from unittest.mock import MagicMock

import paramiko
import pytest

from superviz.core.context import Context
from superviz.core.exceptions import ErrorKind, SSHError
from superviz.core.interfaces import KeyLoader, PasswordReader
from superviz.infrastructure.ssh.auth import (
    DefaultAuthenticator,
    FileKeyLoader,
    PasswordAuth,
    PublicKeyAuth,
)
from superviz.infrastructure.ssh.config import ConnectionConfig


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="module")
def client_key() -> paramiko.ECDSAKey:
    return paramiko.ECDSAKey.generate()


@pytest.fixture
def key_file(tmp_path: Path, client_key: paramiko.ECDSAKey) -> Path:
    """Unencrypted PEM private key"""
    path = tmp_path / "id_ecdsa"
    client_key.write_private_key_file(str(path))
    return path


@pytest.fixture
def password_reader() -> MagicMock:
    reader = MagicMock(spec=PasswordReader)
    reader.read_password.return_value = "s3cret"
    return reader


def _config(key_path=None) -> ConnectionConfig:
    return ConnectionConfig(host="test.example.com", user="testuser", key_path=key_path)


# =============================================================================
# FileKeyLoader
# =============================================================================


class TestFileKeyLoader:

    def test_loads_pem_key(self, key_file: Path, client_key: paramiko.ECDSAKey) -> None:
        key = FileKeyLoader().load_key(str(key_file))
        assert isinstance(key, paramiko.ECDSAKey)
        assert key.asbytes() == client_key.asbytes()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="unable to read private key"):
            FileKeyLoader().load_key(str(tmp_path / "absent"))

    def test_garbage_file(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage"
        path.write_text("this is not a private key\n")
        with pytest.raises(ValueError, match="unable to parse private key"):
            FileKeyLoader().load_key(str(path))

    def test_passphrase_protected_key(self, tmp_path: Path, client_key: paramiko.ECDSAKey) -> None:
        path = tmp_path / "id_encrypted"
        client_key.write_private_key_file(str(path), password="hunter2")
        with pytest.raises(ValueError, match="passphrase"):
            FileKeyLoader().load_key(str(path))


# =============================================================================
# DefaultAuthenticator
# =============================================================================


class TestDefaultAuthenticator:

    def test_key_path_yields_public_key_auth(
        self, ctx: Context, key_file: Path, password_reader: MagicMock
    ) -> None:
        auth = DefaultAuthenticator(password_reader=password_reader)
        methods = auth.get_auth_methods(ctx, _config(str(key_file)))
        assert len(methods) == 1
        assert isinstance(methods[0], PublicKeyAuth)
        password_reader.read_password.assert_not_called()

    def test_key_is_cached_per_path(self, ctx: Context, client_key: paramiko.ECDSAKey) -> None:
        loader = MagicMock(spec=KeyLoader)
        loader.load_key.return_value = client_key
        auth = DefaultAuthenticator(key_loader=loader)

        first = auth.get_auth_methods(ctx, _config("~/.ssh/id_ecdsa"))
        second = auth.get_auth_methods(ctx, _config("~/.ssh/id_ecdsa"))

        assert first == second
        loader.load_key.assert_called_once_with("~/.ssh/id_ecdsa")

    def test_bad_key_fails_without_password_prompt(
        self, ctx: Context, tmp_path: Path, password_reader: MagicMock
    ) -> None:
        auth = DefaultAuthenticator(password_reader=password_reader)
        with pytest.raises(SSHError) as exc_info:
            auth.get_auth_methods(ctx, _config(str(tmp_path / "absent")))
        assert exc_info.value.kind is ErrorKind.AUTH_FAILED
        assert exc_info.value.context["key_path"] == str(tmp_path / "absent")
        password_reader.read_password.assert_not_called()

    def test_bad_key_falls_back_when_enabled(
        self, ctx: Context, tmp_path: Path, password_reader: MagicMock
    ) -> None:
        auth = DefaultAuthenticator(password_reader=password_reader, password_fallback=True)
        methods = auth.get_auth_methods(ctx, _config(str(tmp_path / "absent")))
        assert methods == [PasswordAuth("s3cret")]

    def test_no_key_prompts_for_password(self, ctx: Context, password_reader: MagicMock) -> None:
        auth = DefaultAuthenticator(password_reader=password_reader)
        methods = auth.get_auth_methods(ctx, _config())
        assert methods == [PasswordAuth("s3cret")]
        password_reader.read_password.assert_called_once_with("Password for testuser@test.example.com: ")

    def test_password_read_failure(self, ctx: Context, password_reader: MagicMock) -> None:
        password_reader.read_password.side_effect = EOFError()
        auth = DefaultAuthenticator(password_reader=password_reader)
        with pytest.raises(SSHError) as exc_info:
            auth.get_auth_methods(ctx, _config())
        assert exc_info.value.kind is ErrorKind.AUTH_FAILED

    def test_password_not_in_repr(self) -> None:
        assert "s3cret" not in repr(PasswordAuth("s3cret"))


class TestAuthMethods:

    def test_public_key_auth(self, client_key: paramiko.ECDSAKey) -> None:
        transport = MagicMock()
        PublicKeyAuth(client_key).authenticate(transport, "testuser")
        transport.auth_publickey.assert_called_once_with("testuser", client_key)

    def test_password_auth(self) -> None:
        transport = MagicMock()
        PasswordAuth("pw").authenticate(transport, "testuser")
        transport.auth_password.assert_called_once_with("testuser", "pw")
