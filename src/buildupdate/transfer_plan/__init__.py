"""
Transfer plan aggregation.

This package handles:
1. Clean directives for dependencies that clean their destination
2. Provenance comments for the build and each dependency
3. Merging resolved operations into directory, download and extraction lists
"""

from .plan import (
    BuildMetadataProvider,
    TransferPlan,
    TransferPlanBuilder,
    VcsRootProvider,
)

__all__ = [
    "BuildMetadataProvider",
    "TransferPlan",
    "TransferPlanBuilder",
    "VcsRootProvider",
]
