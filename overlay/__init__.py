"""
opencode overlay maintenance tools
"""

from .config import LogConfig, OverlayConfig
from .console import Console
from .ebuild_tester import EbuildTester, VerificationReport
from .ebuild_updater import EbuildUpdater, UpdateResult
from .versions import Version, is_live, newest_version, parse_version

__version__ = "1.0.0"

__all__ = [
    "Console",
    "EbuildTester",
    "EbuildUpdater",
    "LogConfig",
    "OverlayConfig",
    "VerificationReport",
    "UpdateResult",
    "Version",
    "is_live",
    "newest_version",
    "parse_version",
]
