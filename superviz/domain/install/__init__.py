"""
Remote install: target parsing, distribution detection and orchestration
"""
from .detector import DISTRO_PROBES, PACKAGE_MANAGER_PROBES, Detector
from .models import InstallConfig, InstallTarget
from .service import INSTALL_COMMANDS, InstallService, build_client, get_install_command
from .version import VersionService

__all__ = [
    "DISTRO_PROBES",
    "PACKAGE_MANAGER_PROBES",
    "Detector",
    "InstallConfig",
    "InstallTarget",
    "INSTALL_COMMANDS",
    "InstallService",
    "build_client",
    "get_install_command",
    "VersionService",
]
