"""
Layered configuration
"""
from .loader import ConfigLoader

__all__ = ["ConfigLoader"]
