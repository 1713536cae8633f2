"""
Shared fixtures and fakes for buildupdate tests.
"""

from typing import Dict, List, Optional, Tuple

import pytest

from buildupdate.artifact_dependency_models import (
    ArtifactDependency,
    Build,
    BuildType,
    NamedEntity,
    VcsRoot,
)
from buildupdate.buildupdate_logger import BuildUpdateLogger

SERVER = "build.example.org"
REPOSITORY_URL = f"http://{SERVER}/guestAuth/repository"


class FakeTeamCity:
    """
    In-memory stand-in for TeamCityClient.
    """

    def __init__(self, server: str = SERVER, logger: Optional[BuildUpdateLogger] = None):
        self.server = server
        self.logger = logger
        self.repository_url = f"http://{server}/guestAuth/repository"
        self.projects: List[NamedEntity] = []
        self.project_build_types: Dict[str, List[NamedEntity]] = {}
        self.dependencies: Dict[str, List[ArtifactDependency]] = {}
        self.build_types: Dict[str, BuildType] = {}
        self.vcs_roots: Dict[str, VcsRoot] = {}
        self.listings: Dict[Tuple[str, str], List[str]] = {}
        self.tagged_builds: Dict[Tuple[str, str], Build] = {}
        self.listing_calls: List[Tuple[str, str]] = []
        self.closed = False

    def __enter__(self) -> "FakeTeamCity":
        return self

    def __exit__(self, *exc_info) -> None:
        self.closed = True

    def get_projects(self) -> List[NamedEntity]:
        return self.projects

    def get_project_build_types(self, project_id: str) -> List[NamedEntity]:
        return self.project_build_types.get(project_id, [])

    def get_artifact_dependencies(self, build_type: str) -> List[ArtifactDependency]:
        return self.dependencies.get(build_type, [])

    def get_build_type(self, build_type: str) -> BuildType:
        return self.build_types[build_type]

    def get_vcs_root(self, vcs_root_id: str) -> Optional[VcsRoot]:
        return self.vcs_roots.get(vcs_root_id)

    def list_files(self, build_type: str, revision: str) -> List[str]:
        self.listing_calls.append((build_type, revision))
        return list(self.listings.get((build_type, revision), []))

    def find_tagged_build(self, build_type: str, tag: str) -> Optional[Build]:
        return self.tagged_builds.get((build_type, tag))


@pytest.fixture
def fake_teamcity_cls():
    """The FakeTeamCity class, for tests that build their own fake."""
    return FakeTeamCity


@pytest.fixture
def logger():
    """Logger shared by the components under test."""
    logger = BuildUpdateLogger()
    logger.set_verbose(True)
    return logger


@pytest.fixture
def teamcity():
    """A fake TeamCity with one application build type depending on one library."""
    fake = FakeTeamCity()
    fake.projects = [
        NamedEntity(id="project1", name="Application"),
        NamedEntity(id="project2", name="Library"),
    ]
    fake.project_build_types = {
        "project1": [
            NamedEntity(id="bt1", name="Nightly"),
            NamedEntity(id="bt3", name="Release"),
        ],
    }
    fake.build_types = {
        "bt1": BuildType(
            id="bt1",
            build_name="Nightly",
            project_name="Application",
            url=f"http://{SERVER}/viewType.html?buildTypeId=bt1",
            vcs_root_id="vcs1",
            parameters={"branch": "develop"},
        ),
        "bt2": BuildType(
            id="bt2",
            build_name="Library Build",
            project_name="Library",
            url=f"http://{SERVER}/viewType.html?buildTypeId=bt2",
        ),
    }
    fake.vcs_roots = {
        "vcs1": VcsRoot(repository_path="https://github.com/example/app", branch_name="%branch%"),
    }
    fake.dependencies = {
        "bt1": [
            ArtifactDependency(
                source_build_type="bt2",
                path_rules={"lib/*.dll": "bin", "docs.zip!**": "docs"},
                exclusion_rules={},
            ),
        ],
    }
    fake.listings = {
        ("bt2", "latest.lastSuccessful"): ["lib/a.dll", "lib/b.dll", "docs/readme.txt"],
    }
    return fake
