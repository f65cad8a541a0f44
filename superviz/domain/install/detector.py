"""
Remote distribution detection

Probes are read-only commands whose exit status, not output, is the signal.
"""
from typing import Dict, Tuple

from ...core.constants import OS_RELEASE_PATH, UNKNOWN_DISTRO
from ...core.context import Context
from ...core.exceptions import DetectionError, ErrorKind, SSHError, is_kind
from ...core.interfaces import Client, DistroDetector
from ...core.logging import get_logger

logger = get_logger(__name__)

OS_RELEASE_PROBE = f"test -f {OS_RELEASE_PATH}"

# Callers may rely only on "some probe matched", not on which wins a tie
DISTRO_PROBES: Dict[str, str] = {
    "ubuntu": f"grep -q 'ID=ubuntu' {OS_RELEASE_PATH}",
    "debian": f"grep -q 'ID=debian' {OS_RELEASE_PATH}",
    "alpine": f"grep -q 'ID=alpine' {OS_RELEASE_PATH}",
    "centos": f"grep -q '^ID=\"\\?centos' {OS_RELEASE_PATH}",
    "rhel": f"grep -q '^ID=\"\\?rhel' {OS_RELEASE_PATH}",
    "fedora": f"grep -q 'ID=fedora' {OS_RELEASE_PATH}",
    "arch": f"grep -q 'ID=arch' {OS_RELEASE_PATH}",
}

# Most likely first
PACKAGE_MANAGER_PROBES: Tuple[Tuple[str, str], ...] = (
    ("debian", "command -v apt >/dev/null 2>&1"),
    ("alpine", "command -v apk >/dev/null 2>&1"),
    ("centos", "command -v yum >/dev/null 2>&1"),
    ("arch", "command -v pacman >/dev/null 2>&1"),
)


class Detector(DistroDetector):
    """Detects the remote OS family over a connected client"""

    def __init__(self, client: Client):
        self.client = client

    def detect(self, ctx: Context) -> str:
        """
        Identify the remote distribution.

        Returns:
            Distribution ID such as "ubuntu" or "arch"

        Raises:
            DetectionError: nothing matched (distro == "unknown")
            SSHError: the connection itself failed while probing
        """
        if self._probe(ctx, OS_RELEASE_PROBE):
            for distro, command in DISTRO_PROBES.items():
                if self._probe(ctx, command):
                    logger.info("Detected %s from %s", distro, OS_RELEASE_PATH)
                    return distro

        for distro, command in PACKAGE_MANAGER_PROBES:
            if self._probe(ctx, command):
                logger.info("Detected %s from package manager probe", distro)
                return distro

        raise DetectionError("unable to detect distribution", distro=UNKNOWN_DISTRO)

    def _probe(self, ctx: Context, command: str) -> bool:
        try:
            self.client.execute(ctx, command)
        except SSHError as e:
            # Only a failed probe is a "no"; transport failures propagate
            if is_kind(e, ErrorKind.COMMAND_FAILED):
                return False
            raise
        return True
