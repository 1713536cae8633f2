"""
Maps TeamCity REST and repository XML responses to buildupdate records.
"""

import functools
from typing import List, Optional, Tuple, Union

from lxml import etree
from pydantic import ValidationError

from buildupdate.artifact_dependency_models import (
    ArtifactDependency,
    Build,
    BuildDependency,
    BuildType,
    NamedEntity,
    VcsRoot,
)
from buildupdate.buildupdate_exceptions import RemoteFetchError
from buildupdate.buildupdate_logger import BuildUpdateLogger

XmlDocument = Union[str, bytes]


def _parse(xml: XmlDocument, expected_tag: str):
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    try:
        root = etree.fromstring(xml)
    except etree.XMLSyntaxError as e:
        raise RemoteFetchError(f"Invalid XML in <{expected_tag}> response: {e}") from e

    tag = etree.QName(root).localname
    if tag != expected_tag:
        raise RemoteFetchError(f"Expected <{expected_tag}> response but got <{tag}>")
    return root


def _properties(container) -> List[Tuple[str, str]]:
    if container is None:
        return []
    return [
        (p.get("name"), p.get("value", ""))
        for p in container.findall("property")
        if p.get("name") is not None
    ]


def _records(parser):
    """Report records the server sent without required attributes as fetch errors."""

    @functools.wraps(parser)
    def wrapper(*args, **kwargs):
        try:
            return parser(*args, **kwargs)
        except ValidationError as e:
            raise RemoteFetchError(
                f"Incomplete record in {parser.__name__} response: {e}"
            ) from e

    return wrapper


@_records
def parse_named_entities(xml: XmlDocument, container_tag: str, item_tag: str) -> List[NamedEntity]:
    """Parse a ``<projects>`` or ``<buildTypes>`` listing."""
    root = _parse(xml, container_tag)
    return [
        NamedEntity(id=item.get("id"), name=item.get("name"))
        for item in root.findall(item_tag)
    ]


def parse_projects(xml: XmlDocument) -> List[NamedEntity]:
    return parse_named_entities(xml, "projects", "project")


def parse_build_types(xml: XmlDocument) -> List[NamedEntity]:
    return parse_named_entities(xml, "buildTypes", "buildType")


@_records
def parse_artifact_dependencies(
    xml: XmlDocument, logger: Optional[BuildUpdateLogger] = None
) -> List[ArtifactDependency]:
    """
    Parse ``/buildTypes/id:<bt>/artifact-dependencies``.

    Raises:
        RemoteFetchError: If a dependency does not name its source build type
    """
    root = _parse(xml, "artifact-dependencies")
    dependencies = []
    for element in root.findall("artifact-dependency"):
        source = element.find("source-buildType")
        source_build_type = source.get("id") if source is not None else None
        properties = _properties(element.find("properties"))
        if not source_build_type and "source_buildTypeId" not in dict(properties):
            raise RemoteFetchError(
                f"Artifact dependency {element.get('id')} has no source build type"
            )
        dependencies.append(
            ArtifactDependency.from_properties(properties, source_build_type, logger)
        )
    return dependencies


@_records
def parse_build_type(xml: XmlDocument) -> BuildType:
    """Parse ``/buildTypes/id:<bt>``."""
    root = _parse(xml, "buildType")
    project = root.find("project")
    entry = root.find("vcs-root-entries/vcs-root-entry")
    return BuildType(
        id=root.get("id"),
        build_name=root.get("name", ""),
        project_name=project.get("name", "") if project is not None else "",
        url=root.get("webUrl", ""),
        vcs_root_id=entry.get("id") if entry is not None else None,
        parameters=dict(_properties(root.find("parameters"))),
        settings=dict(_properties(root.find("settings"))),
    )


@_records
def parse_vcs_root(xml: XmlDocument) -> VcsRoot:
    """Parse ``/vcs-roots/id:<id>``; only the repository and branch are kept."""
    root = _parse(xml, "vcs-root")
    repository_path = None
    branch_name = None
    for name, value in _properties(root.find("properties")):
        if name in ("url", "repositoryPath"):
            repository_path = value
        elif name in ("branch", "branchName"):
            branch_name = value
        else:
            # other VCS settings are not shown in the script
            continue
    return VcsRoot(repository_path=repository_path, branch_name=branch_name)


def parse_ivy_artifacts(xml: XmlDocument) -> List[str]:
    """Parse ``teamcity-ivy.xml`` into artifact paths relative to the build."""
    root = _parse(xml, "ivy-module")
    artifacts = []
    for artifact in root.findall("publications/artifact"):
        name = artifact.get("name", "")
        ext = artifact.get("ext")
        artifacts.append(f"{name}.{ext}" if ext else name)
    return artifacts


def parse_build_ids(xml: XmlDocument) -> List[str]:
    """Parse a ``<builds>`` listing into build ids, newest first as served."""
    root = _parse(xml, "builds")
    return [build.get("id") for build in root.findall("build") if build.get("id")]


@_records
def parse_build(xml: XmlDocument) -> Build:
    """Parse ``/builds/id:<id>`` including the builds it took artifacts from."""
    root = _parse(xml, "build")
    dependencies = [
        BuildDependency(build_id=b.get("id"), build_type=b.get("buildTypeId"))
        for b in root.findall("artifact-dependencies/build")
    ]
    return Build(build_id=root.get("id"), dependencies=dependencies)
