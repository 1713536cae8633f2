"""
Capabilities every script dialect provides, and the command fragments shared by
all of them.
"""

import re
from typing import List, Optional, Protocol, Tuple

from buildupdate.buildupdate_config import DownloadApp


class ScriptBackend(Protocol):
    """
    Renders plan statements in one shell dialect.
    """

    name: str
    newline: str
    download_app: DownloadApp

    def file_header(self) -> str:
        """First line of every script of this dialect."""
        ...

    def begin_lines(self) -> List[str]:
        """Prologue: working directory, -f/-c flag parsing and copy helpers."""
        ...

    def end_lines(self) -> List[str]:
        """Epilogue ending with an end-of-script comment."""
        ...

    def comment(self, text: str) -> str:
        ...

    def variable(self, name: str, value: str) -> str:
        """A comment line persisting ``name=value``."""
        ...

    def parse_variable(self, line: str) -> Optional[Tuple[str, str]]:
        """Inverse of variable(); None when the line is not a variable line."""
        ...

    def mkdir(self, directory: str) -> str:
        ...

    def rmdir(self, directory: str) -> str:
        ...

    def rm(self, file: str) -> str:
        ...

    def download(self, url: str, dst: str) -> str:
        ...

    def unzip(self, archive: str, dst: str) -> str:
        ...


def quote_if_spaced(path: str) -> str:
    if re.search(r"\s", path):
        return f'"{path}"'
    return path


def comment_line(prefix: str, text: str) -> str:
    return f"{prefix} {text}" if text else prefix


def variable_line(prefix: str, name: str, value: str) -> str:
    return f"{prefix} {name}={value}"


def parse_variable_line(prefix: str, line: str) -> Optional[Tuple[str, str]]:
    match = re.match(rf"^{re.escape(prefix)}\s*([\w.]+)\s*=(.*)$", line.rstrip("\r\n"))
    if match is None:
        return None
    return match.group(1), match.group(2).strip()


def curl_update(src: str, dst: str) -> str:
    return f"curl -# -L -z {dst} -o {dst} {src}"


def curl_replace(src: str, dst: str) -> str:
    return f"curl -# -L -o {dst} {src}"


def wget_update(src: str) -> str:
    return f"wget -q -L -N {src}"


def unzip_command(archive: str, dst: str) -> str:
    return f"unzip -uqo {archive} -d {dst}"
