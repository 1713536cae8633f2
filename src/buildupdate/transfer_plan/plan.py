"""
Transfer plan aggregation.

Collects the resolved operations of every artifact dependency of a build type
into one plan, together with the comments that document where each file comes
from, and renders it into script statements.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from buildupdate.artifact_dependency_models import ArtifactDependency, BuildType, VcsRoot
from buildupdate.buildupdate_logger import BuildUpdateLogger
from buildupdate.path_rule_resolver import (
    Download,
    ExtractArchive,
    PathRuleResolver,
    join_path,
)
from buildupdate.script_backends import ScriptBackend


class BuildMetadataProvider(Protocol):
    def get_build_type(self, build_type: str) -> BuildType:
        ...


class VcsRootProvider(Protocol):
    def get_vcs_root(self, vcs_root_id: str) -> Optional[VcsRoot]:
        ...


@dataclass
class TransferPlan:
    """
    Everything the generated script does, in dialect-neutral form.

    Local paths are relative to the script root directory.
    """

    clean_directories: List[str] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)
    directories: List[str] = field(default_factory=list)
    downloads: List[Download] = field(default_factory=list)
    extractions: List[ExtractArchive] = field(default_factory=list)

    def render(self, backend: ScriptBackend, root_dir: str) -> List[str]:
        """
        Render the plan body: clean, provenance comments, mkdir, download, extract.
        """
        lines: List[str] = []
        if self.clean_directories:
            lines.append(backend.comment("clean destination directories"))
            lines.extend(
                backend.rmdir(join_path(root_dir, d) or ".") for d in self.clean_directories
            )

        lines.append("")
        lines.extend(backend.comment(comment) for comment in self.comments)

        lines.append("")
        lines.append(backend.comment("make sure output directories exist"))
        lines.extend(backend.mkdir(join_path(root_dir, d) or ".") for d in self.directories)

        lines.append("")
        lines.append(backend.comment("download artifact dependencies"))
        lines.extend(
            backend.download(d.remote_url, join_path(root_dir, d.local_path))
            for d in self.downloads
        )

        if self.extractions:
            lines.append(backend.comment("extract downloaded zip files"))
            lines.extend(
                backend.unzip(
                    join_path(root_dir, e.local_archive_path),
                    join_path(root_dir, e.dest_dir) or ".",
                )
                for e in self.extractions
            )
        return lines


class TransferPlanBuilder:
    """
    Builds the TransferPlan of a build type from its artifact dependencies.
    """

    def __init__(
        self,
        resolver: PathRuleResolver,
        metadata_provider: BuildMetadataProvider,
        vcs_provider: VcsRootProvider,
        logger: BuildUpdateLogger,
    ):
        self.resolver = resolver
        self.metadata_provider = metadata_provider
        self.vcs_provider = vcs_provider
        self.logger = logger

    def build(
        self, build_type: str, dependencies: Sequence[ArtifactDependency]
    ) -> TransferPlan:
        """
        Create the plan for a build type.

        Args:
            build_type: Id of the build type the script is generated for
            dependencies: Its artifact dependencies, in declaration order

        Returns:
            The aggregated TransferPlan

        Raises:
            ConfigurationError: If a path rule is unsupported
            RemoteFetchError: If metadata or a listing cannot be fetched
        """
        plan = TransferPlan()

        for dependency in dependencies:
            if not dependency.clean_destination_directory:
                continue
            for dst in dependency.path_rules.values():
                plan.clean_directories.append(dst.replace("\\", "/"))

        plan.comments.extend(self._results_comments(build_type))
        plan.comments.append("dependencies:")
        for index, dependency in enumerate(dependencies):
            plan.comments.extend(self._dependency_comments(index, dependency))

        directories = set()
        for dependency in dependencies:
            resolved = self.resolver.resolve_all(dependency)
            for operation in resolved.operations:
                if isinstance(operation, ExtractArchive):
                    plan.extractions.append(operation)
                else:
                    plan.downloads.append(operation)
            directories.update(resolved.directories)
        plan.directories = sorted(directories)

        self.logger.log(
            f"Plan for {build_type}: {len(plan.directories)} directories, "
            f"{len(plan.downloads)} downloads, {len(plan.extractions)} extractions",
            logging.INFO,
        )
        return plan

    def _results_comments(self, build_type: str) -> List[str]:
        build = self.metadata_provider.get_build_type(build_type)
        comments = [
            "*** Results ***",
            f"build: {build.build_name} ({build_type})",
            f"project: {build.project_name}",
            f"URL: {build.url}",
        ]
        vcs = self._vcs_comment(build)
        if vcs:
            comments.append(vcs)
        return comments

    def _dependency_comments(self, index: int, dependency: ArtifactDependency) -> List[str]:
        build = self.metadata_provider.get_build_type(dependency.source_build_type)
        comments = [
            f"[{index}] build: {build.build_name} ({dependency.source_build_type})",
            f"    project: {build.project_name}",
            f"    URL: {build.url}",
            f"    clean: {str(dependency.clean_destination_directory).lower()}",
            f"    revision: {dependency.revision_value}",
            f"    paths: {dependency.path_rules_text()}",
        ]
        if dependency.exclusion_rules:
            comments.append(f"    exclusions: {dependency.exclusion_rules_text()}")
        vcs = self._vcs_comment(build, indent="    ")
        if vcs:
            comments.append(vcs)
        return comments

    def _vcs_comment(self, build: BuildType, indent: str = "") -> Optional[str]:
        if not build.vcs_root_id:
            return None
        vcs = self.vcs_provider.get_vcs_root(build.vcs_root_id)
        if vcs is None:
            return None
        return f"{indent}VCS: {vcs.repository_path} [{build.resolve(vcs.branch_name)}]"
