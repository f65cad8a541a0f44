"""
Pacman repository setup for Arch Linux
"""
from typing import List, Optional

from ...core.providers import InstallProvider
from .common import BaseHandler

PACMAN_CONF = "/etc/pacman.conf"


class ArchHandler(BaseHandler):
    setup_message = "Setting up Pacman repository..."

    def __init__(self, client, provider: Optional[InstallProvider] = None, force: bool = True):
        super().__init__(client, force=force)
        self.provider = provider or InstallProvider()

    def configured_probe(self) -> Optional[str]:
        return f"grep -q '^\\[superviz\\]' {PACMAN_CONF}"

    def build_commands(self) -> List[str]:
        base = self.provider.repository_url
        key_id = self.provider.gpg_key_id
        return [
            "cat > /tmp/superviz-pacman.conf << 'EOF'\n"
            "\n"
            "[superviz]\n"
            f"Server = {base}/arch/$arch\n"
            "EOF",
            f"tee -a {PACMAN_CONF} < /tmp/superviz-pacman.conf > /dev/null",
            "rm /tmp/superviz-pacman.conf",
            f"pacman-key --recv-keys {key_id}",
            f"pacman-key --lsign-key {key_id}",
            "pacman -Sy",
        ]
