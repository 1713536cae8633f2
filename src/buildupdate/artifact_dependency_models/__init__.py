"""
Artifact dependency models.

This package provides Pydantic data models for the TeamCity records the
resolver works with: artifact dependencies and their path rules, build types,
VCS roots and concrete builds.
"""

from .artifact_dependency import (
    ArtifactDependency,
    ExclusionOp,
    parse_path_rules,
)
from .build_type import (
    Build,
    BuildDependency,
    BuildType,
    NamedEntity,
    VcsRoot,
)

__all__ = [
    # Artifact Dependencies
    "ArtifactDependency",
    "ExclusionOp",
    "parse_path_rules",
    # Build Types
    "Build",
    "BuildDependency",
    "BuildType",
    "NamedEntity",
    "VcsRoot",
]
