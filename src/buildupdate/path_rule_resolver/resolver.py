"""
Path rule resolution.

Turns one artifact dependency path rule (``src => dst``) into the concrete
downloads and archive extractions needed to honour it, using the remote
artifact listing for wildcard sources and the dependency's exclusion rules to
drop or redirect individual files.

All local paths produced here are relative to the script root directory.
"""

import logging
import posixpath
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Dict, List, Mapping, Optional, Protocol, Set, Tuple, Union
from urllib.parse import quote

from buildupdate.artifact_dependency_models import ArtifactDependency, ExclusionOp
from buildupdate.buildupdate_exceptions import ConfigurationError
from buildupdate.buildupdate_logger import BuildUpdateLogger

STAGING_DIRECTORY = "Downloads"
ARCHIVE_MARKER = "zip!"
ARCHIVE_SUFFIX = "zip!**"
RECURSIVE_MARKER = "**"
REMAP_SEPARATOR = "=>"

_WILDCARD = re.compile(r"[*?]")


@dataclass(frozen=True)
class Download:
    """Fetch one remote artifact to a local path."""

    remote_url: str
    local_path: str


@dataclass(frozen=True)
class ExtractArchive:
    """Extract a downloaded archive into a local directory."""

    local_archive_path: str
    dest_dir: str


TransferOperation = Union[Download, ExtractArchive]


@dataclass
class ResolvedRule:
    """Operations for one path rule and the directories they write into."""

    operations: List[TransferOperation] = field(default_factory=list)
    directories: Set[str] = field(default_factory=set)


class RemoteListingProvider(Protocol):
    def list_files(self, build_type: str, revision: str) -> List[str]:
        ...


def join_path(*parts: str) -> str:
    """
    Join path segments with ``/``, skipping empty segments.
    """
    parts = tuple(p for p in parts if p)
    if not parts:
        return ""
    path = parts[0]
    for part in parts[1:]:
        path = f"{path.rstrip('/')}/{part.lstrip('/')}"
    return path


def is_glob(pattern: str) -> bool:
    return _WILDCARD.search(pattern) is not None


def wildcard_index(pattern: str) -> int:
    """Index of the first ``*`` or ``?`` in the pattern, -1 if there is none."""
    match = _WILDCARD.search(pattern)
    return match.start() if match else -1


def strip_remap(pattern: str) -> str:
    return pattern.split(REMAP_SEPARATOR, 1)[0].strip()


def validate_source_pattern(src: str) -> None:
    """
    Reject source patterns the resolver cannot express.

    Raises:
        ConfigurationError: For an archive marker other than a trailing ``zip!**``
            or a ``**`` that is not the last path component
    """
    if ARCHIVE_MARKER in src and not src.endswith(ARCHIVE_SUFFIX):
        raise ConfigurationError(f"Only supporting zip!** pattern for now!: src={src}")
    if RECURSIVE_MARKER in src:
        trailing = src.endswith("/" + RECURSIVE_MARKER) or src.endswith(ARCHIVE_SUFFIX)
        if src.count(RECURSIVE_MARKER) != 1 or not trailing:
            raise ConfigurationError(
                f"Can't handle recursive match that isn't at the end: {src}"
            )


def select_exclusion_rule(
    candidate: str, exclusion_rules: Mapping[str, ExclusionOp]
) -> Optional[Tuple[str, ExclusionOp]]:
    """
    Pick the exclusion rule that decides the fate of a candidate file.

    Among the rules whose pattern matches, the one whose first wildcard comes
    earliest wins; rules without wildcards sort first. Ties keep declaration order.

    Returns:
        (pattern, op) of the selected rule, or None when no rule matches
    """
    matches = [
        (pattern, op)
        for pattern, op in exclusion_rules.items()
        if fnmatchcase(candidate, strip_remap(pattern).replace("\\", "/"))
    ]
    if not matches:
        return None
    return sorted(matches, key=lambda m: wildcard_index(strip_remap(m[0])))[0]


class PathRuleResolver:
    """
    Resolves path rules of artifact dependencies into transfer operations.

    Remote listings are fetched only for wildcard sources and at most once per
    (build type, revision) for the lifetime of the resolver.
    """

    def __init__(
        self,
        repository_url: str,
        listing_provider: RemoteListingProvider,
        logger: BuildUpdateLogger,
    ):
        """
        Args:
            repository_url: Base URL of the artifact repository
            listing_provider: Source of remote artifact listings
            logger: Logger for resolution details
        """
        self.repository_url = repository_url.rstrip("/")
        self.listing_provider = listing_provider
        self.logger = logger
        self._listings: Dict[Tuple[str, str], List[str]] = {}

    def resolve(self, dependency: ArtifactDependency, src: str, dst: str) -> ResolvedRule:
        """
        Resolve one path rule of a dependency.

        Args:
            dependency: The dependency the rule belongs to
            src: Source pattern of the rule
            dst: Destination directory of the rule

        Returns:
            ResolvedRule with operations in candidate order

        Raises:
            ConfigurationError: If the source pattern is unsupported
            RemoteFetchError: If the remote listing cannot be fetched
        """
        src = src.replace("\\", "/")
        dst = dst.replace("\\", "/")
        validate_source_pattern(src)

        result = ResolvedRule()
        for candidate in self._candidates(dependency, src, dst):
            target = dst
            selected = select_exclusion_rule(candidate, dependency.exclusion_rules)
            if selected is not None:
                pattern, op = selected
                if op == ExclusionOp.EXCLUDE:
                    self.logger.log(f"Excluded {candidate} by -:{pattern}", logging.DEBUG)
                    continue
                _, sep, remap = pattern.partition(REMAP_SEPARATOR)
                if sep:
                    target = remap.strip().replace("\\", "/")
            self._add_candidate(result, dependency, src, candidate, target)
        return result

    def resolve_all(self, dependency: ArtifactDependency) -> ResolvedRule:
        """Resolve every path rule of a dependency, in declaration order."""
        result = ResolvedRule()
        for src, dst in dependency.path_rules.items():
            resolved = self.resolve(dependency, src, dst)
            result.operations.extend(resolved.operations)
            result.directories.update(resolved.directories)
        return result

    def _candidates(self, dependency: ArtifactDependency, src: str, dst: str) -> List[str]:
        if ARCHIVE_MARKER in src or not is_glob(src):
            return [src]

        listing = self._list_files(dependency)
        matches = [f for f in listing if fnmatchcase(f, src)]
        self.logger.log(
            f"glob: src={src}, dst={dst} matched {len(matches)} of {len(listing)} artifacts",
            logging.DEBUG,
        )
        return matches

    def _list_files(self, dependency: ArtifactDependency) -> List[str]:
        key = (dependency.source_build_type, dependency.revision_value)
        if key not in self._listings:
            self._listings[key] = list(self.listing_provider.list_files(*key))
        return self._listings[key]

    def _download_url(self, dependency: ArtifactDependency, remote_path: str) -> str:
        return (
            f"{self.repository_url}/download/{dependency.source_build_type}"
            f"/{dependency.revision_value}/{quote(remote_path, safe='/!')}"
        )

    def _add_candidate(
        self,
        result: ResolvedRule,
        dependency: ArtifactDependency,
        src: str,
        candidate: str,
        dst: str,
    ) -> None:
        if src.endswith(ARCHIVE_SUFFIX):
            remote_path = candidate.split("!")[0]
            # archives are staged, then extracted into the rule destination
            staged_path = join_path(STAGING_DIRECTORY, posixpath.basename(remote_path))
            result.operations.append(
                Download(self._download_url(dependency, remote_path), staged_path)
            )
            result.operations.append(ExtractArchive(staged_path, dst))
            result.directories.add(STAGING_DIRECTORY)
            result.directories.add(dst)
            self.logger.log(f"zip_file: {remote_path} => {staged_path} => {dst}", logging.DEBUG)
            return

        if src.endswith("/" + RECURSIVE_MARKER):
            # e.g. f = foo/bar/baz.dll and src = foo/** => bar/baz.dll
            prefix = src[: -len(RECURSIVE_MARKER)]
            if candidate.startswith(prefix):
                relative = candidate[len(prefix):]
            else:
                relative = candidate.replace(prefix, "", 1)
            dst_file = join_path(dst, relative)
            dst_dir = posixpath.dirname(dst_file)
        else:
            dst_file = join_path(dst, posixpath.basename(candidate))
            dst_dir = dst

        result.directories.add(dst_dir)
        result.operations.append(Download(self._download_url(dependency, candidate), dst_file))
        self.logger.log(f"Added: {candidate} => {dst_file}", logging.DEBUG)
