"""
Install service - main business logic

Connects to the target, detects its distribution, configures the superviz
package repository and prints the native install command.
"""
import time
from pathlib import Path
from typing import Dict, Optional, Sequence, TextIO

from ...core.context import Context
from ...core.exceptions import (
    InstallError,
    InvalidTargetError,
    MissingConfigError,
    MissingWriterError,
    is_auth_error,
)
from ...core.interfaces import Client, DistroDetector, RepositorySetup
from ...core.logging import get_logger
from ...core.providers import InstallInfo, InstallProvider
from ...core.telemetry import get_telemetry
from ...infrastructure.ssh import (
    ConnectionConfig,
    DefaultAuthenticator,
    DefaultHostKeyManager,
    FileHostKeyStore,
    RemoteClient,
)
from ..repository import RepositorySetupService
from .detector import Detector
from .models import InstallConfig, InstallTarget

logger = get_logger(__name__)

INSTALL_COMMANDS: Dict[str, str] = {
    "ubuntu": "  sudo apt update && sudo apt install superviz",
    "debian": "  sudo apt update && sudo apt install superviz",
    "alpine": "  sudo apk update && sudo apk add superviz",
    "centos": "  sudo yum install superviz  # or dnf install superviz",
    "rhel": "  sudo yum install superviz  # or dnf install superviz",
    "fedora": "  sudo dnf install superviz",
    "arch": "  sudo pacman -S superviz",
    "suse": "  sudo zypper install superviz",
    "gentoo": "  sudo emerge superviz",
}

DEFAULT_INSTALL_COMMAND = "  Please check your package manager documentation"

# Telemetry event names
EVENT_STARTED = "install.started"
EVENT_SUCCEEDED = "install.succeeded"
EVENT_FAILED = "install.failed"
EVENT_VALIDATION_ERROR = "install.validation_error"
METRIC_DURATION = "install.duration_seconds"


def get_install_command(distro: str) -> str:
    return INSTALL_COMMANDS.get(distro.lower(), DEFAULT_INSTALL_COMMAND)


def build_client(config: InstallConfig) -> RemoteClient:
    """Default client wired from the install options"""
    store = FileHostKeyStore(Path(config.known_hosts_path) if config.known_hosts_path else None)
    return RemoteClient(
        authenticator=DefaultAuthenticator(password_fallback=config.password_fallback),
        host_key_manager=DefaultHostKeyManager(store=store),
    )


class InstallService:
    """
    Install service - orchestration only.

    Collaborators left as None are created per run from the install config,
    so `force` and the known-hosts location follow the options of that run.
    """

    def __init__(
        self,
        provider: Optional[InstallProvider] = None,
        client: Optional[Client] = None,
        detector: Optional[DistroDetector] = None,
        repo_setup: Optional[RepositorySetup] = None,
    ):
        """
        Initialize install service.

        Args:
            provider: Repository metadata (optional, default superviz repository)
            client: SSH client (optional, built from the install config if None)
            detector: Distribution detector (optional, probes over the client if None)
            repo_setup: Repository setup (optional, dispatches to handlers if None)
        """
        self.provider = provider or InstallProvider()
        self.client = client
        self.detector = detector
        self.repo_setup = repo_setup
        self.telemetry = get_telemetry()

    def validate_and_prepare_config(self, config: Optional[InstallConfig], args: Sequence[str]) -> None:
        """
        Fill user, host and target from the single user@host argument.

        The config is left untouched when the target is invalid.

        Raises:
            MissingConfigError: config is None
            InvalidTargetError: no argument, or not in user@host form
        """
        if config is None:
            raise MissingConfigError()
        if not args:
            self.telemetry.record_event(EVENT_VALIDATION_ERROR)
            raise InvalidTargetError()

        try:
            target = InstallTarget.parse(args[0])
        except InvalidTargetError:
            self.telemetry.record_event(EVENT_VALIDATION_ERROR, {"target": args[0]})
            raise

        config.user = target.user
        config.host = target.host
        config.target = args[0]

    def install(self, ctx: Context, writer: Optional[TextIO], config: Optional[InstallConfig]) -> None:
        """
        Configure the superviz repository on the target host.

        Progress is written to writer line by line as each step completes.

        Args:
            ctx: Cancellation and deadline for the whole run
            writer: Progress sink
            config: Prepared install configuration

        Raises:
            MissingWriterError: writer is None
            MissingConfigError: config is None
            InvalidTargetError: config does not name a user@host target
            InstallError: any step failed; the underlying error is chained
        """
        if writer is None:
            raise MissingWriterError()
        if config is None:
            raise MissingConfigError()

        target = InstallTarget.parse(config.target or f"{config.user}@{config.host}")
        self.telemetry.record_event(EVENT_STARTED, {"target": str(target)})
        start = time.monotonic()
        try:
            self._install(ctx, writer, config, target)
        except Exception as e:
            self._record_duration(target, start, "failed")
            self.telemetry.record_event(EVENT_FAILED, {"target": str(target), "error": str(e)})
            logger.error("Install on %s failed: %s", target, e)
            raise
        self._record_duration(target, start, "succeeded")
        self.telemetry.record_event(EVENT_SUCCEEDED, {"target": str(target)})

    def _record_duration(self, target: InstallTarget, start: float, status: str) -> None:
        self.telemetry.record_metric(
            METRIC_DURATION, time.monotonic() - start, {"target": str(target), "status": status}
        )

    def _install(self, ctx: Context, writer: TextIO, config: InstallConfig, target: InstallTarget) -> None:
        client = self.client or build_client(config)

        self._write(writer, f"Starting repository setup on {target}")

        try:
            try:
                client.connect(ctx, self._connection_config(config, target))
            except Exception as e:
                if is_auth_error(e):
                    raise InstallError(f"authentication failed for {target}: {e}") from e
                raise InstallError(f"failed to connect to {target}: {e}") from e

            self._write(writer, f"Connected to {target}")

            detector = self.detector or Detector(client)
            try:
                distro = detector.detect(ctx)
            except Exception as e:
                raise InstallError(f"failed to detect distribution: {e}") from e
            self._write(writer, f"Detected distribution: {distro}")

            repo_setup = self.repo_setup or RepositorySetupService(
                client, provider=self.provider, force=config.force
            )
            try:
                repo_setup.setup(ctx, distro, writer)
            except Exception as e:
                raise InstallError(f"failed to setup repository: {e}") from e

            self._write(writer, f"Repository setup completed successfully on {target}")
            self._write(writer, "You can now install superviz.io with:")
            self._write(writer, get_install_command(distro))
        finally:
            self._close(client, writer)

    def _connection_config(self, config: InstallConfig, target: InstallTarget) -> ConnectionConfig:
        return ConnectionConfig(
            host=target.host,
            user=target.user,
            port=config.port,
            key_path=config.key_path,
            timeout=config.timeout,
            skip_host_key_check=config.skip_host_key_check,
            accept_new_host_key=config.accept_new_host_key,
        )

    def _close(self, client: Client, writer: TextIO) -> None:
        try:
            client.close()
        except Exception as e:
            logger.warning("Failed to close connection: %s", e)
            try:
                self._write(writer, f"Warning: failed to close connection: {e}")
            except InstallError:
                pass

    def _write(self, writer: TextIO, line: str) -> None:
        try:
            writer.write(f"{line}\n")
            writer.flush()
        except (OSError, ValueError) as e:
            raise InstallError(f"failed to write output: {e}") from e

    def get_install_info(self) -> InstallInfo:
        return self.provider.get_install_info()
