"""
Pydantic data models for the TeamCity entities around an artifact dependency:
projects, build types, VCS roots and concrete builds.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

_PARAMETER_REFERENCE = re.compile(r"%([^%]+)%")


class NamedEntity(BaseModel):
    """A project or build type as listed by the server: id and display name."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class BuildType(BaseModel):
    """
    Metadata of one build type (build configuration).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    build_name: str = Field(..., alias="name")
    project_name: str = Field(..., alias="projectName")
    url: str = Field("", alias="webUrl")
    vcs_root_id: Optional[str] = Field(None, alias="vcsRootId")
    parameters: Dict[str, str] = Field(default_factory=dict)
    settings: Dict[str, str] = Field(default_factory=dict)

    def resolve(self, text: Optional[str]) -> Optional[str]:
        """
        Substitute ``%name%`` references with the build type's parameters.

        References without a matching parameter are left as they are.
        """
        if text is None:
            return None
        return _PARAMETER_REFERENCE.sub(
            lambda m: self.parameters.get(m.group(1), m.group(0)), text
        )


class VcsRoot(BaseModel):
    """Repository location and branch of a VCS root."""

    model_config = ConfigDict(frozen=True)

    repository_path: Optional[str] = None
    branch_name: Optional[str] = None


class BuildDependency(BaseModel):
    """A build whose artifacts another build consumed."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    build_type: str


class Build(BaseModel):
    """A concrete build and the builds its artifact dependencies came from."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    dependencies: List[BuildDependency] = Field(default_factory=list)

    def dependency_for(self, build_type: str) -> Optional[BuildDependency]:
        for dependency in self.dependencies:
            if dependency.build_type == build_type:
                return dependency
        return None
