"""
Regenerates a build update script for one TeamCity build type.
"""

import logging
from typing import List

from buildupdate.artifact_dependency_models import ArtifactDependency, NamedEntity
from buildupdate.buildupdate_config import ScriptConfig
from buildupdate.buildupdate_exceptions import ConfigurationError
from buildupdate.buildupdate_logger import BuildUpdateLogger
from buildupdate.path_rule_resolver import PathRuleResolver
from buildupdate.script_document import ScriptDocument
from buildupdate.teamcity import TeamCityClient
from buildupdate.transfer_plan import TransferPlan, TransferPlanBuilder


def _find_by_name(entities: List[NamedEntity], name: str):
    for entity in entities:
        if entity.name == name:
            return entity
    return None


def _possible_names(entities: List[NamedEntity]) -> str:
    return "\n  ".join(entity.name for entity in entities)


class BuildUpdater:
    """
    Runs one regeneration: resolves the build type, fetches and resolves its
    artifact dependencies and rewrites the script.

    Nothing is written unless every step before the write succeeds.
    """

    def __init__(
        self,
        config: ScriptConfig,
        client: TeamCityClient,
        logger: BuildUpdateLogger,
    ):
        self.config = config
        self.client = client
        self.logger = logger

    def resolve_build_type(self) -> str:
        """
        The configured build type id, or the one named by project and build.

        Raises:
            ConfigurationError: If neither form is given or a name is unknown
        """
        build_type = self.config.effective("build_type")
        if build_type:
            self.logger.log(f"Config: build_type={build_type}", logging.DEBUG)
            return build_type

        projects = self.client.get_projects()
        project_name = self.config.effective("project")
        if not project_name:
            raise ConfigurationError(
                f"You need to specify project!\nPossible Names:\n  {_possible_names(projects)}"
            )
        project = _find_by_name(projects, project_name)
        if project is None:
            raise ConfigurationError(
                f"Project '{project_name}' not Found!\nPossible Names:\n  {_possible_names(projects)}"
            )

        builds = self.client.get_project_build_types(project.id)
        build_name = self.config.effective("build")
        if not build_name:
            raise ConfigurationError(
                f"You need to specify build!\nPossible Names:\n  {_possible_names(builds)}"
            )
        build = _find_by_name(builds, build_name)
        if build is None:
            raise ConfigurationError(
                f"Build '{build_name}' not Found!\nPossible Names:\n  {_possible_names(builds)}"
            )

        self.logger.log(
            f"Selected: project={project_name}, build_name={build_name} => build_type={build.id}",
            logging.DEBUG,
        )
        return build.id

    def fetch_dependencies(self, build_type: str) -> List[ArtifactDependency]:
        """
        Artifact dependencies of the build type, pinned to the tagged build if a
        build tag is configured.
        """
        dependencies = self.client.get_artifact_dependencies(build_type)
        if not dependencies:
            self.logger.log(f"{build_type} has no artifact dependencies", logging.WARNING)

        build_tag = self.config.effective("build_tag")
        if build_tag:
            dependencies = self._pin_to_tagged_build(build_type, build_tag, dependencies)
        return dependencies

    def _pin_to_tagged_build(
        self, build_type: str, build_tag: str, dependencies: List[ArtifactDependency]
    ) -> List[ArtifactDependency]:
        build = self.client.find_tagged_build(build_type, build_tag)
        if build is None:
            raise ConfigurationError(f"No build of {build_type} is tagged '{build_tag}'")

        pinned = []
        for dependency in dependencies:
            source = build.dependency_for(dependency.source_build_type)
            if source is None:
                self.logger.log(
                    f"Build {build.build_id} has no artifacts from "
                    f"{dependency.source_build_type}; using {dependency.revision_value}",
                    logging.WARNING,
                )
                pinned.append(dependency)
                continue
            pinned.append(dependency.with_tagged_build(source.build_id))
        return pinned

    def update(self, document: ScriptDocument) -> TransferPlan:
        """
        Resolve the plan and rewrite the script document.

        Raises:
            BuildUpdateException: Any failure; the document is left untouched
        """
        build_type = self.resolve_build_type()
        dependencies = self.fetch_dependencies(build_type)

        resolver = PathRuleResolver(self.client.repository_url, self.client, self.logger)
        builder = TransferPlanBuilder(resolver, self.client, self.client, self.logger)
        plan = builder.build(build_type, dependencies)

        body = plan.render(document.backend, self.config.effective("root_dir"))
        document.write(self.config, body)
        return plan
