"""
superviz - remote repository installer

Configures the superviz.io package repository on Linux hosts over SSH:
- SSH client with trust-on-first-use host key verification
- Key and password authentication, per-host connection rate limiting
- Distribution detection (Debian/Ubuntu, Alpine, RHEL family, Arch)
- Repository setup with sudo escalation only where it is needed
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    Context,
    InstallInfo,
    InstallProvider,
    VersionInfo,
    VersionProvider,
)
from .core.exceptions import (
    ErrorKind,
    SSHError,
    is_kind,
)

# Export transport
from .infrastructure.ssh import (
    ConnectionConfig,
    RemoteClient,
    new_client,
)

# Export domain services
from .domain.install import (
    InstallConfig,
    InstallService,
    InstallTarget,
    VersionService,
)
from .domain.repository import RepositorySetupService

__all__ = [
    # Version
    "__version__",
    # Core
    "Context",
    "ErrorKind",
    "SSHError",
    "is_kind",
    # Providers
    "InstallInfo",
    "InstallProvider",
    "VersionInfo",
    "VersionProvider",
    # Client
    "ConnectionConfig",
    "RemoteClient",
    "new_client",
    # Install
    "InstallConfig",
    "InstallService",
    "InstallTarget",
    "VersionService",
    "RepositorySetupService",
]
