"""
APT repository setup for Debian and Ubuntu
"""
from typing import List, Optional

from ...core.providers import InstallProvider
from .common import BaseHandler

KEYRING_PATH = "/usr/share/keyrings/superviz.gpg"
SOURCES_PATH = "/etc/apt/sources.list.d/superviz.list"


class DebianHandler(BaseHandler):
    setup_message = "Setting up APT repository..."

    def __init__(self, client, provider: Optional[InstallProvider] = None, force: bool = True):
        super().__init__(client, force=force)
        self.provider = provider or InstallProvider()

    def configured_probe(self) -> Optional[str]:
        return f"test -f {SOURCES_PATH}"

    def build_commands(self) -> List[str]:
        base = self.provider.repository_url
        return [
            "apt update",
            "apt install -y curl gnupg lsb-release",
            f"curl -fsSL {base}/gpg -o /tmp/superviz.gpg",
            "gpg --dearmor < /tmp/superviz.gpg > /tmp/superviz.gpg.dearmored",
            f"cp /tmp/superviz.gpg.dearmored {KEYRING_PATH}",
            "rm /tmp/superviz.gpg /tmp/superviz.gpg.dearmored",
            # Staged in /tmp so the privileged step is the copy, not a shell redirect
            f'echo "deb [signed-by={KEYRING_PATH}] {base}/apt $(lsb_release -cs) main" > /tmp/superviz.list',
            f"cp /tmp/superviz.list {SOURCES_PATH}",
            "rm /tmp/superviz.list",
            "apt update",
        ]
