"""
Configuration parameters for buildupdate.

A run is configured from three layers, highest precedence first:

1. explicit command line arguments
2. the variables persisted in the header of the previously generated script,
   where ``name.<platform>`` entries (e.g. ``project.windows``) beat ``name``
3. built-in defaults

The result is one frozen ScriptConfig that is also what gets persisted into the
header of the next generated script.
"""

import logging
import re
import sys
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from buildupdate.buildupdate_exceptions import ConfigurationError
from buildupdate.buildupdate_logger import BuildUpdateLogger

DEFAULT_SERVER = "build.palaso.org"
DEFAULT_ROOT_DIR = "."
DEFAULT_SCRIPT_FILE = "buildupdate.sh"

CONFIG_KEYS = (
    "server",
    "project",
    "build",
    "build_type",
    "root_dir",
    "download_app",
    "build_tag",
)


class DownloadApp(str, Enum):
    """
    Tool the generated script uses to fetch artifacts.
    """

    AUTO = "auto"
    CURL = "curl"
    WGET = "wget"


class Platform(str, Enum):
    """
    Host platforms that persisted variables can be specialized for.
    """

    WINDOWS = "windows"
    OSX = "osx"
    LINUX = "linux"
    UNIX = "unix"

    @classmethod
    def current(cls, host_os: Optional[str] = None) -> "Platform":
        """
        Detect the platform from ``sys.platform`` (or the given host string).

        Only the CLI entry point calls this; everything else receives the platform
        as a parameter.
        """
        host_os = sys.platform if host_os is None else host_os
        if re.search(r"win32|cygwin|msys|mingw", host_os):
            return cls.WINDOWS
        if host_os.startswith("darwin"):
            return cls.OSX
        if host_os.startswith("linux"):
            return cls.LINUX
        if re.search(r"bsd|sunos|solaris|aix", host_os):
            return cls.UNIX
        raise ConfigurationError(f"unknown os: {host_os!r}")


class ScriptConfig(BaseModel):
    """
    Effective configuration of one run.
    """

    model_config = ConfigDict(frozen=True)

    server: str = DEFAULT_SERVER
    project: Optional[str] = None
    build: Optional[str] = None
    build_type: Optional[str] = None
    root_dir: str = DEFAULT_ROOT_DIR
    download_app: DownloadApp = DownloadApp.AUTO
    build_tag: Optional[str] = None
    platform: Platform = Platform.LINUX
    platform_overrides: Dict[str, str] = Field(default_factory=dict)

    def effective(self, name: str) -> Optional[str]:
        """
        Value of a configuration key for the configured platform.
        """
        override = self.platform_overrides.get(f"{name}.{self.platform.value}")
        if override is not None:
            return override
        value = getattr(self, name)
        if isinstance(value, Enum):
            return value.value
        return value

    def header_variables(self) -> List[Tuple[str, str]]:
        """
        Variables persisted in the generated script header, in file order.

        The build is selected either by project and build name or by build type id,
        so only one of the two forms is written.
        """
        variables = [("server", self.server)]
        if self.project:
            variables.append(("project", self.project))
            if self.build:
                variables.append(("build", self.build))
        elif self.build_type:
            variables.append(("build_type", self.build_type))
        variables.append(("root_dir", self.root_dir))
        if self.download_app != DownloadApp.AUTO:
            variables.append(("download_app", self.download_app.value))
        if self.build_tag:
            variables.append(("build_tag", self.build_tag))
        for key in sorted(self.platform_overrides):
            variables.append((key, self.platform_overrides[key]))
        return variables


def _validate_download_app(value: str) -> DownloadApp:
    try:
        return DownloadApp(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid download app: {value}.  Should be curl or wget"
        )


def resolve_script_config(
    persisted: Mapping[str, str],
    cli: Mapping[str, Optional[str]],
    platform: Platform,
    logger: Optional[BuildUpdateLogger] = None,
) -> ScriptConfig:
    """
    Merge persisted header variables and command line arguments into a ScriptConfig.

    Args:
        persisted: Variables read from the previous script header
        cli: Values given on the command line, None meaning "not given"
        platform: Platform used to pick ``name.<platform>`` overrides
        logger: Receives notes about ignored header variables

    Returns:
        The frozen effective configuration

    Raises:
        ConfigurationError: If the download app is not one of auto, curl or wget
    """
    platforms = {p.value for p in Platform}
    values: Dict[str, str] = {}
    overrides: Dict[str, str] = {}

    for key, value in persisted.items():
        name, _, suffix = key.partition(".")
        if name not in CONFIG_KEYS or (suffix and suffix not in platforms):
            if logger is not None:
                logger.log(f"Ignoring unknown header variable {key}={value}", logging.WARNING)
            continue
        if suffix:
            overrides[key] = value
        else:
            values[name] = value

    given = {name: value for name, value in cli.items() if value is not None}
    unknown = set(given) - set(CONFIG_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

    # project/build and build_type are alternative ways of naming the build
    if "build_type" in given:
        values.pop("project", None)
        values.pop("build", None)
    elif "project" in given or "build" in given:
        values.pop("build_type", None)

    for name, value in given.items():
        values[name] = value
        overrides.pop(f"{name}.{platform.value}", None)

    if "download_app" in values:
        values["download_app"] = _validate_download_app(values["download_app"])
    for key, value in overrides.items():
        if key.startswith("download_app."):
            _validate_download_app(value)

    return ScriptConfig(platform=platform, platform_overrides=overrides, **values)
