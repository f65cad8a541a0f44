"""
Version service
"""
import json
from typing import Optional

from ...core.providers import VersionInfo, VersionProvider

FORMATS = ("default", "json", "short")


class VersionService:
    """Renders build metadata for the version command"""

    def __init__(self, provider: Optional[VersionProvider] = None):
        self.provider = provider or VersionProvider()

    def get_version_info(self) -> VersionInfo:
        return self.provider.get_version_info()

    def format(self, output_format: str = "default") -> str:
        """
        Render version information.

        Args:
            output_format: One of "default", "json" or "short"

        Raises:
            ValueError: unknown format
        """
        info = self.get_version_info()
        if output_format == "default":
            return info.format().rstrip("\n")
        if output_format == "json":
            return json.dumps(info.to_dict(), indent=2)
        if output_format == "short":
            return info.version
        raise ValueError(f"unsupported format: {output_format} (expected one of {', '.join(FORMATS)})")
