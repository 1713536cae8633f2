"""
TeamCity REST client.

Uses guest authentication against REST API 7.0 for metadata and the artifact
repository for ivy manifests. Every request is blocking and there are no retries:
a failed request aborts the run with a RemoteFetchError.
"""

import logging
from typing import Dict, List, Optional

import httpx

from buildupdate.artifact_dependency_models import (
    ArtifactDependency,
    Build,
    BuildType,
    NamedEntity,
    VcsRoot,
)
from buildupdate.buildupdate_exceptions import RemoteFetchError
from buildupdate.buildupdate_logger import BuildUpdateLogger
from buildupdate.teamcity import xml_mapping


class TeamCityClient:
    """
    Fetches TeamCity records for one run.

    Build type metadata is memoized for the lifetime of the client.
    """

    def __init__(
        self,
        server: str,
        logger: BuildUpdateLogger,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            server: TeamCity host name, optionally with a port
            logger: Logger for requests and tolerated failures
            client: Preconfigured httpx client, mainly for tests
            timeout: Request timeout in seconds when the client is created here
        """
        self.server = server
        self.logger = logger
        self.rest_url = f"http://{server}/guestAuth/app/rest/7.0"
        self.repository_url = f"http://{server}/guestAuth/repository"
        self._client = client or httpx.Client(follow_redirects=True, timeout=timeout)
        self._build_types: Dict[str, BuildType] = {}

    def __enter__(self) -> "TeamCityClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> bytes:
        self.logger.log(f"GET {url} {params or ''}", logging.DEBUG)
        try:
            response = self._client.get(
                url, params=params, headers={"Accept": "application/xml"}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Failed to fetch {url}: {e}") from e
        return response.content

    def get_projects(self) -> List[NamedEntity]:
        return xml_mapping.parse_projects(self._get(f"{self.rest_url}/projects"))

    def get_project_build_types(self, project_id: str) -> List[NamedEntity]:
        xml = self._get(f"{self.rest_url}/projects/id:{project_id}/buildTypes")
        return xml_mapping.parse_build_types(xml)

    def get_artifact_dependencies(self, build_type: str) -> List[ArtifactDependency]:
        xml = self._get(f"{self.rest_url}/buildTypes/id:{build_type}/artifact-dependencies")
        return xml_mapping.parse_artifact_dependencies(xml, self.logger)

    def get_build_type(self, build_type: str) -> BuildType:
        if build_type not in self._build_types:
            xml = self._get(f"{self.rest_url}/buildTypes/id:{build_type}")
            self._build_types[build_type] = xml_mapping.parse_build_type(xml)
        return self._build_types[build_type]

    def get_vcs_root(self, vcs_root_id: str) -> Optional[VcsRoot]:
        """
        Fetch a VCS root; it only decorates the script comments, so a failure is
        logged and None is returned.
        """
        try:
            xml = self._get(f"{self.rest_url}/vcs-roots/id:{vcs_root_id}")
            return xml_mapping.parse_vcs_root(xml)
        except RemoteFetchError as e:
            self.logger.log(f"Skipping VCS root {vcs_root_id}: {e.message}", logging.WARNING)
            return None

    def list_files(self, build_type: str, revision: str) -> List[str]:
        """
        Artifact paths published by the given build type revision.
        """
        xml = self._get(
            f"{self.repository_url}/download/{build_type}/{revision}/teamcity-ivy.xml"
        )
        artifacts = xml_mapping.parse_ivy_artifacts(xml)
        self.logger.log(
            f"Listed {len(artifacts)} artifacts for {build_type}/{revision}", logging.DEBUG
        )
        return artifacts

    def find_tagged_build(self, build_type: str, tag: str) -> Optional[Build]:
        """
        The most recent build of a build type carrying the given tag, or None.
        """
        xml = self._get(
            f"{self.rest_url}/builds/",
            params={"locator": f"buildType:{build_type},tag:{tag}"},
        )
        build_ids = xml_mapping.parse_build_ids(xml)
        if not build_ids:
            return None
        return xml_mapping.parse_build(self._get(f"{self.rest_url}/builds/id:{build_ids[0]}"))
