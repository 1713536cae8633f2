"""
The generated script file.

A script starts with the dialect header line, followed by one comment line per
persisted configuration variable, a blank line, and the generated body. Only
the variables survive a regeneration; the body is always rebuilt.
"""

import logging
import os
import tempfile
from typing import Dict, List

from buildupdate.buildupdate_config import ScriptConfig
from buildupdate.buildupdate_exceptions import HeaderMismatchError
from buildupdate.buildupdate_logger import BuildUpdateLogger
from buildupdate.script_backends import ScriptBackend


class ScriptDocument:
    """
    Reads the persisted header of a script and rewrites the whole script.
    """

    def __init__(self, path: str, backend: ScriptBackend, logger: BuildUpdateLogger):
        """
        Args:
            path: Location of the script file
            backend: Dialect the script is written in
            logger: Logger for load and write messages
        """
        self.path = path
        self.backend = backend
        self.logger = logger

    def load(self) -> Dict[str, str]:
        """
        Read the variables persisted in the header of an existing script.

        Returns:
            Mapping of variable name to value; empty when the file does not exist

        Raises:
            HeaderMismatchError: If the file exists but is not a script of this dialect
        """
        if not os.path.exists(self.path):
            self.logger.log(f"{self.path} does not exist yet", logging.INFO)
            return {}

        with open(self.path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()

        header = self.backend.file_header()
        if not lines or lines[0].rstrip() != header:
            raise HeaderMismatchError(
                f"{self.path} does not start with '{header}'; refusing to overwrite it"
            )

        persisted: Dict[str, str] = {}
        for line in lines[1:]:
            variable = self.backend.parse_variable(line)
            if variable is None:
                break
            name, value = variable
            persisted[name] = value

        self.logger.log(f"Loaded {persisted} from {self.path}", logging.DEBUG)
        return persisted

    def render(self, config: ScriptConfig, body: List[str]) -> List[str]:
        """
        Compose the full script: header, persisted variables, prologue, body, epilogue.
        """
        lines = [self.backend.file_header()]
        lines.extend(self.backend.variable(name, value) for name, value in config.header_variables())
        lines.append("")
        lines.extend(self.backend.begin_lines())
        lines.extend(body)
        lines.extend(self.backend.end_lines())
        return lines

    def write(self, config: ScriptConfig, body: List[str]) -> None:
        """
        Replace the script file with the rendered content in a single step.
        """
        newline = self.backend.newline
        content = newline.join(self.render(config, body)) + newline

        directory = os.path.dirname(os.path.abspath(self.path))
        fd, temp_path = tempfile.mkstemp(prefix=".buildupdate-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.chmod(temp_path, 0o755 if self.backend.name == "sh" else 0o644)
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

        self.logger.log(f"Wrote {self.path}", logging.INFO)
