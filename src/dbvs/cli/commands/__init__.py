"""CLI commands package"""

from .collect import collect
from .scan import scan
from .match import match
from .export import export
from .config import config_cmd
from .version import version

__all__ = ['collect', 'scan', 'match', 'export', 'config_cmd', 'version']
