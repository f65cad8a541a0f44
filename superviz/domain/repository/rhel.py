"""
YUM/DNF repository setup for RHEL, CentOS and Fedora

The .repo file is rendered from a validated descriptor. Validation happens
before any remote command so an insecure descriptor never touches the host.
"""
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from jinja2 import Template

from ...core.exceptions import RepositoryConfigError
from ...core.providers import InstallProvider
from .common import BaseHandler

REPO_FILE_PATH = "/etc/yum.repos.d/superviz.repo"

REPO_TEMPLATE = Template(
    "[superviz]\n"
    "name={{ name }}\n"
    "baseurl={{ base_url }}\n"
    "enabled={{ 1 if enabled else 0 }}\n"
    "gpgcheck={{ 1 if gpg_check else 0 }}\n"
    "gpgkey={{ gpg_key_url }}"
)


@dataclass
class RepositoryDescriptor:
    """Contents of the superviz .repo file"""
    name: str
    base_url: str
    gpg_key_url: str
    enabled: bool = True
    gpg_check: bool = True

    def validate(self) -> None:
        """
        Raises:
            RepositoryConfigError: empty name, or a URL that is not https with a host
        """
        if not self.name:
            raise RepositoryConfigError("repository name cannot be empty")
        _require_https("baseurl", self.base_url)
        _require_https("gpgkey", self.gpg_key_url)

    def render(self) -> str:
        return REPO_TEMPLATE.render(
            name=self.name,
            base_url=self.base_url,
            gpg_key_url=self.gpg_key_url,
            enabled=self.enabled,
            gpg_check=self.gpg_check,
        )


def _require_https(field: str, url: str) -> None:
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise RepositoryConfigError(f"invalid {field} URL: {e}") from e
    if parsed.scheme != "https":
        raise RepositoryConfigError(f"{field} must use https: {url}")
    if not parsed.hostname:
        raise RepositoryConfigError(f"{field} has no host: {url}")


def default_descriptor(provider: Optional[InstallProvider] = None) -> RepositoryDescriptor:
    provider = provider or InstallProvider()
    base = provider.repository_url
    return RepositoryDescriptor(
        name="Superviz.io Repository",
        base_url=f"{base}/rpm/",
        gpg_key_url=f"{base}/rpm/RPM-GPG-KEY-superviz",
    )


class RhelHandler(BaseHandler):
    setup_message = "Setting up YUM/DNF repository..."

    def __init__(
        self,
        client,
        provider: Optional[InstallProvider] = None,
        descriptor: Optional[RepositoryDescriptor] = None,
        force: bool = True,
    ):
        super().__init__(client, force=force)
        self.descriptor = descriptor or default_descriptor(provider)

    def configured_probe(self) -> Optional[str]:
        return f"test -f {REPO_FILE_PATH}"

    def build_commands(self) -> List[str]:
        self.descriptor.validate()
        content = self.descriptor.render()
        return [
            f"cat > /tmp/superviz.repo << 'EOF'\n{content}\nEOF",
            f"cp /tmp/superviz.repo {REPO_FILE_PATH}",
            "rm /tmp/superviz.repo",
            f"rpm --import {self.descriptor.gpg_key_url}",
            "if command -v dnf >/dev/null 2>&1; then dnf clean all; "
            "elif command -v yum >/dev/null 2>&1; then yum clean all; fi",
        ]
