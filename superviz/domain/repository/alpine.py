"""
APK repository setup for Alpine
"""
from typing import List, Optional

from ...core.providers import InstallProvider
from .common import BaseHandler

REPOSITORIES_PATH = "/etc/apk/repositories"
KEY_PATH = "/etc/apk/keys/superviz.rsa.pub"
RELEASE_PATH = "/etc/alpine-release"
STAGING_PATH = "/tmp/superviz-apk.list"


class AlpineHandler(BaseHandler):
    setup_message = "Setting up APK repository..."

    def __init__(self, client, provider: Optional[InstallProvider] = None, force: bool = True):
        super().__init__(client, force=force)
        self.provider = provider or InstallProvider()

    def configured_probe(self) -> Optional[str]:
        return f"test -f {KEY_PATH}"

    def build_commands(self) -> List[str]:
        base = self.provider.repository_url
        return [
            f"echo \"{base}/alpine/v$(cut -d. -f1-2 {RELEASE_PATH})/main\" > {STAGING_PATH}",
            # tee runs elevated; a plain >> redirect would not
            f"tee -a {REPOSITORIES_PATH} < {STAGING_PATH} > /dev/null",
            f"rm {STAGING_PATH}",
            f"wget -O /tmp/superviz.rsa.pub {base}/alpine/superviz.rsa.pub",
            f"cp /tmp/superviz.rsa.pub {KEY_PATH}",
            "rm /tmp/superviz.rsa.pub",
            "apk update",
        ]
