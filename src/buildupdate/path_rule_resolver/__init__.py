"""
Path rule resolution.

This package handles:
1. Validating path rule source patterns
2. Expanding wildcard sources against the remote artifact listing
3. Applying include/exclude overrides
4. Computing local destinations for downloads and archive extraction
"""

from .resolver import (
    Download,
    ExtractArchive,
    PathRuleResolver,
    RemoteListingProvider,
    ResolvedRule,
    STAGING_DIRECTORY,
    TransferOperation,
    join_path,
)

__all__ = [
    "Download",
    "ExtractArchive",
    "PathRuleResolver",
    "RemoteListingProvider",
    "ResolvedRule",
    "STAGING_DIRECTORY",
    "TransferOperation",
    "join_path",
]
