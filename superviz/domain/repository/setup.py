"""
Repository setup dispatch by distribution family
"""
from typing import Callable, Dict, Optional, TextIO

from ...core.context import Context
from ...core.exceptions import UnsupportedDistributionError
from ...core.interfaces import Client, RepositorySetup
from ...core.logging import get_logger
from ...core.providers import InstallProvider
from .alpine import AlpineHandler
from .arch import ArchHandler
from .common import BaseHandler
from .debian import DebianHandler
from .rhel import RhelHandler

logger = get_logger(__name__)

HandlerFactory = Callable[[Client, InstallProvider, bool], BaseHandler]

HANDLERS: Dict[str, HandlerFactory] = {
    "ubuntu": lambda c, p, f: DebianHandler(c, provider=p, force=f),
    "debian": lambda c, p, f: DebianHandler(c, provider=p, force=f),
    "alpine": lambda c, p, f: AlpineHandler(c, provider=p, force=f),
    "centos": lambda c, p, f: RhelHandler(c, provider=p, force=f),
    "rhel": lambda c, p, f: RhelHandler(c, provider=p, force=f),
    "fedora": lambda c, p, f: RhelHandler(c, provider=p, force=f),
    "arch": lambda c, p, f: ArchHandler(c, provider=p, force=f),
}


class RepositorySetupService(RepositorySetup):
    """Picks the handler for a distribution and runs it"""

    def __init__(self, client: Client, provider: Optional[InstallProvider] = None, force: bool = True):
        self.client = client
        self.provider = provider or InstallProvider()
        self.force = force

    def handler_for(self, distro: str) -> BaseHandler:
        """
        Raises:
            UnsupportedDistributionError: no handler for distro
        """
        factory = HANDLERS.get(distro)
        if factory is None:
            raise UnsupportedDistributionError(distro)
        return factory(self.client, self.provider, self.force)

    def setup(self, ctx: Context, distro: str, writer: TextIO) -> None:
        handler = self.handler_for(distro)
        logger.info("Configuring repository for %s with %s", distro, type(handler).__name__)
        handler.setup(ctx, writer)
