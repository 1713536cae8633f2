"""
Pydantic data model for one TeamCity artifact dependency.

An artifact dependency tells which build type to take artifacts from, which
build instance (revision) of it, and the path rules describing which files go
where. The path rules arrive as a single multi-line property value:

    lib/*.dll => bin
    artifacts/** => out
    -:*.pdb
    +:debug/*.pdb=>symbols
"""

import logging
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from buildupdate.buildupdate_logger import BuildUpdateLogger

DEFAULT_REVISION_NAME = "latest"
DEFAULT_REVISION_VALUE = "latest.lastSuccessful"


class ExclusionOp(str, Enum):
    """Operation of an exclusion rule line (``+:pattern`` or ``-:pattern``)."""

    INCLUDE = "+"
    EXCLUDE = "-"


def parse_path_rules(
    text: str,
) -> Tuple[Dict[str, str], Dict[str, ExclusionOp]]:
    """
    Split a ``pathRules`` property value into path rules and exclusion rules.

    Args:
        text: The raw property value, one rule per line

    Returns:
        Tuple of (path rules mapping source to destination, exclusion rules
        mapping pattern to operation), both in declaration order
    """
    path_rules: Dict[str, str] = {}
    exclusion_rules: Dict[str, ExclusionOp] = {}

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line[:2] in ("+:", "-:"):
            op, pattern = line.split(":", 1)
            exclusion_rules[pattern.strip()] = ExclusionOp(op)
            continue
        src, sep, dst = line.partition("=>")
        # A rule without a destination lands in the root directory
        path_rules[src.strip()] = dst.strip() if sep else ""

    return path_rules, exclusion_rules


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "yes", "1")


class ArtifactDependency(BaseModel):
    """
    One declared artifact dependency of a build type.

    Instances are immutable; use with_tagged_build() to derive a pinned copy.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_build_type: str = Field(..., alias="sourceBuildType")
    revision_name: str = Field(DEFAULT_REVISION_NAME, alias="revisionName")
    revision_value: str = Field(DEFAULT_REVISION_VALUE, alias="revisionValue")
    clean_destination_directory: bool = Field(
        False, alias="cleanDestinationDirectory"
    )
    path_rules: Dict[str, str] = Field(default_factory=dict, alias="pathRules")
    exclusion_rules: Dict[str, ExclusionOp] = Field(
        default_factory=dict, alias="exclusionRules"
    )

    @classmethod
    def from_properties(
        cls,
        properties: Iterable[Tuple[str, str]],
        source_build_type: Optional[str] = None,
        logger: Optional[BuildUpdateLogger] = None,
    ) -> "ArtifactDependency":
        """
        Build a dependency from the name/value properties of a TeamCity declaration.

        Args:
            properties: (name, value) pairs from the ``<properties>`` element
            source_build_type: Id from the ``source-buildType`` element; wins over
                the legacy ``source_buildTypeId`` property
            logger: Receives notes about unrecognized properties

        Returns:
            The parsed ArtifactDependency
        """
        fields: Dict[str, object] = {}
        for name, value in properties:
            if name == "cleanDestinationDirectory":
                fields["clean_destination_directory"] = _to_bool(value)
            elif name == "pathRules":
                path_rules, exclusion_rules = parse_path_rules(value)
                fields["path_rules"] = path_rules
                fields["exclusion_rules"] = exclusion_rules
            elif name == "revisionName":
                fields["revision_name"] = value
            elif name == "revisionValue":
                fields["revision_value"] = value
            elif name == "source_buildTypeId":
                fields["source_build_type"] = value
            elif logger is not None:
                logger.log(
                    f"Ignoring artifact dependency property {name}={value}",
                    logging.DEBUG,
                )

        if source_build_type:
            fields["source_build_type"] = source_build_type

        return cls(**fields)

    def with_tagged_build(self, build_id: str) -> "ArtifactDependency":
        """
        Return a copy pinned to the given build id instead of the declared revision.
        """
        return self.model_copy(
            update={
                "revision_name": "tcbuildid",
                "revision_value": f"{build_id}.tcbuildid",
            }
        )

    def path_rules_text(self) -> str:
        """Path rules as a readable one-line string."""
        return ", ".join(f"{src} => {dst}" for src, dst in self.path_rules.items())

    def exclusion_rules_text(self) -> str:
        """Exclusion rules as a readable one-line string."""
        return ", ".join(
            f"{op.value}:{pattern}" for pattern, op in self.exclusion_rules.items()
        )
