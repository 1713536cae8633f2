"""
Script dialects.

The set of dialects is closed: each one is a plain class providing the
ScriptBackend capabilities, registered by name here. A new dialect is added by
writing another class and registering it.
"""

import os
from typing import Dict, Type, Union

from buildupdate.buildupdate_config import DownloadApp
from buildupdate.buildupdate_exceptions import ConfigurationError

from .bash_backend import BashScriptBackend
from .cmd_backend import CmdScriptBackend
from .script_backend import ScriptBackend

SCRIPT_BACKENDS: Dict[str, Type] = {
    BashScriptBackend.name: BashScriptBackend,
    CmdScriptBackend.name: CmdScriptBackend,
}

SCRIPT_EXTENSIONS: Dict[str, str] = {
    ".sh": BashScriptBackend.name,
    ".bat": CmdScriptBackend.name,
    ".cmd": CmdScriptBackend.name,
}


def create_script_backend(
    name: str, download_app: Union[DownloadApp, str] = DownloadApp.AUTO
) -> ScriptBackend:
    """
    Create the backend registered under the given dialect name.

    Raises:
        ConfigurationError: If the dialect is unknown
    """
    backend_class = SCRIPT_BACKENDS.get(name)
    if backend_class is None:
        raise ConfigurationError(
            f"Bad script file type: {name}.  Should be one of {sorted(SCRIPT_BACKENDS)}"
        )
    return backend_class(DownloadApp(download_app))


def script_backend_for_path(
    path: str, download_app: Union[DownloadApp, str] = DownloadApp.AUTO
) -> ScriptBackend:
    """
    Create the backend matching the extension of the script file.

    Raises:
        ConfigurationError: If the extension does not map to a dialect
    """
    extension = os.path.splitext(path)[1].lower()
    name = SCRIPT_EXTENSIONS.get(extension)
    if name is None:
        raise ConfigurationError(
            f"Bad script file type: {path}.  Should end with one of {sorted(SCRIPT_EXTENSIONS)}"
        )
    return create_script_backend(name, download_app)


__all__ = [
    "BashScriptBackend",
    "CmdScriptBackend",
    "ScriptBackend",
    "SCRIPT_BACKENDS",
    "create_script_backend",
    "script_backend_for_path",
]
