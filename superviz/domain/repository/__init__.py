"""
Package repository configuration on the remote host
"""
from .alpine import AlpineHandler
from .arch import ArchHandler
from .common import BaseHandler, CommandExecutor, SudoHelper, write_line
from .debian import DebianHandler
from .rhel import RepositoryDescriptor, RhelHandler, default_descriptor
from .setup import HANDLERS, RepositorySetupService

__all__ = [
    "AlpineHandler",
    "ArchHandler",
    "BaseHandler",
    "CommandExecutor",
    "DebianHandler",
    "HANDLERS",
    "RepositoryDescriptor",
    "RepositorySetupService",
    "RhelHandler",
    "SudoHelper",
    "default_descriptor",
    "write_line",
]
