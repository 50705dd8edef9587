"""
mwcontainers - MediaWiki container stack deployment tool
"""

__version__ = "0.1.0"

from .core import MediaWikiContainers
from .errors import DeployError

__all__ = ["MediaWikiContainers", "DeployError"]
