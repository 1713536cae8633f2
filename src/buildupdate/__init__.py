"""
buildupdate resolves the artifact dependencies of a TeamCity build type into a
re-runnable bash or batch script that downloads them.
"""

from buildupdate.build_update import BuildUpdater
from buildupdate.buildupdate_config import ScriptConfig, resolve_script_config
from buildupdate.script_document import ScriptDocument

__all__ = [
    "BuildUpdater",
    "ScriptConfig",
    "ScriptDocument",
    "resolve_script_config",
]
