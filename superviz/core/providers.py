"""
Install and version metadata providers

Constructed once at process start and passed down explicitly.
"""
import platform
from dataclasses import dataclass
from typing import Optional

from .constants import GPG_KEY_ID, PACKAGE_NAME, REPOSITORY_URL


@dataclass(frozen=True)
class InstallInfo:
    """Repository metadata for the installable package"""
    repository_url: str
    package_name: str
    gpg_key_id: str
    version: str = "latest"


@dataclass(frozen=True)
class VersionInfo:
    """Build metadata"""
    version: str
    commit: str = "none"
    built_at: str = "unknown"
    built_by: str = "unknown"
    python_version: str = ""
    os_arch: str = ""

    def format(self) -> str:
        return (
            f"Version:       {self.version}\n"
            f"Commit:        {self.commit}\n"
            f"Built at:      {self.built_at}\n"
            f"Built by:      {self.built_by}\n"
            f"Python:        {self.python_version}\n"
            f"OS/Arch:       {self.os_arch}\n"
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "commit": self.commit,
            "built_at": self.built_at,
            "built_by": self.built_by,
            "python_version": self.python_version,
            "os_arch": self.os_arch,
        }


class InstallProvider:
    """Source of repository metadata used by handlers and the CLI"""

    def __init__(self, info: Optional[InstallInfo] = None):
        self._info = info or InstallInfo(
            repository_url=REPOSITORY_URL,
            package_name=PACKAGE_NAME,
            gpg_key_id=GPG_KEY_ID,
        )

    def get_install_info(self) -> InstallInfo:
        return self._info

    @property
    def repository_url(self) -> str:
        return self._info.repository_url.rstrip("/")

    @property
    def package_name(self) -> str:
        return self._info.package_name

    @property
    def gpg_key_id(self) -> str:
        return self._info.gpg_key_id


class VersionProvider:
    """Build metadata; fields not stamped at build time keep their placeholders"""

    def __init__(
        self,
        version: Optional[str] = None,
        commit: str = "none",
        built_at: str = "unknown",
        built_by: str = "unknown",
    ):
        if version is None:
            from .. import __version__
            version = __version__
        self._info = VersionInfo(
            version=version,
            commit=commit,
            built_at=built_at,
            built_by=built_by,
            python_version=platform.python_version(),
            os_arch=f"{platform.system().lower()}/{platform.machine().lower()}",
        )

    def get_version_info(self) -> VersionInfo:
        return self._info
