"""sentitrade.core

Core primitives.

If a module needs to exist, it should probably depend only on this package.
"""

from .activity import ActivityEntry, ActivityLog
from .assets import Asset, AssetRegistry, parse_symbol
from .config import Config
from .exceptions import SentitradeError
from .time import utc_now

__all__ = [
    "ActivityEntry",
    "ActivityLog",
    "Asset",
    "AssetRegistry",
    "Config",
    "SentitradeError",
    "parse_symbol",
    "utc_now",
]
