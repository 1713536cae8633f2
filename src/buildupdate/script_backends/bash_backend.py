"""
POSIX shell (bash) dialect.
"""

from typing import List, Optional, Tuple

from buildupdate.buildupdate_config import DownloadApp
from buildupdate.script_backends.script_backend import (
    comment_line,
    curl_replace,
    curl_update,
    parse_variable_line,
    quote_if_spaced,
    unzip_command,
    variable_line,
    wget_update,
)

COMMENT_PREFIX = "#"


class BashScriptBackend:
    """
    Renders statements for ``#!/bin/bash`` scripts.
    """

    name = "sh"
    newline = "\n"

    def __init__(self, download_app: DownloadApp = DownloadApp.AUTO):
        self.download_app = download_app

    def file_header(self) -> str:
        return "#!/bin/bash"

    def begin_lines(self) -> List[str]:
        return [
            'cd "$(dirname "$0")"',
            "",
            self.comment("*** Functions ***"),
            *self._functions(),
        ]

    def end_lines(self) -> List[str]:
        return [self.comment("End of script")]

    def _functions(self) -> List[str]:
        return [
            "force=0",
            "clean=0",
            "",
            "while getopts fc opt; do",
            "case $opt in",
            "f) force=1 ;;",
            "c) clean=1 ;;",
            "esac",
            "done",
            "",
            "shift $((OPTIND - 1))",
            "",
            "clean_file() {",
            'echo "cleaning $1"',
            'rm -f "$1"',
            "}",
            "",
            "copy_auto() {",
            'if [ "$clean" == "1" ]',
            "then",
            'clean_file "$2"',
            "else",
            "where_curl=$(type -P curl)",
            "where_wget=$(type -P wget)",
            'if [ "$where_curl" != "" ]',
            "then",
            'copy_curl "$1" "$2"',
            'elif [ "$where_wget" != "" ]',
            "then",
            'copy_wget "$1" "$2"',
            "else",
            'echo "Missing curl or wget"',
            "exit 1",
            "fi",
            "fi",
            "}",
            "",
            "copy_curl() {",
            'if [ "$clean" == "1" ]',
            "then",
            'clean_file "$2"',
            "return",
            "fi",
            'echo "curl: $2 <= $1"',
            'if [ -e "$2" ] && [ "$force" != "1" ]',
            "then",
            curl_update('"$1"', '"$2"'),
            "else",
            curl_replace('"$1"', '"$2"'),
            "fi",
            "}",
            "",
            "copy_wget() {",
            'if [ "$clean" == "1" ]',
            "then",
            'clean_file "$2"',
            "return",
            "fi",
            'echo "wget: $2 <= $1"',
            'if [ "$force" == "1" ]',
            "then",
            'rm -f "$2"',
            "fi",
            '(cd "$(dirname "$2")" && ' + wget_update('"$1"') + ")",
            "}",
        ]

    def comment(self, text: str) -> str:
        return comment_line(COMMENT_PREFIX, text)

    def variable(self, name: str, value: str) -> str:
        return variable_line(COMMENT_PREFIX, name, value)

    def parse_variable(self, line: str) -> Optional[Tuple[str, str]]:
        return parse_variable_line(COMMENT_PREFIX, line)

    @staticmethod
    def unix_path(path: str) -> str:
        return quote_if_spaced(path.replace("\\", "/"))

    def mkdir(self, directory: str) -> str:
        return f"mkdir -p {self.unix_path(directory)}"

    def rmdir(self, directory: str) -> str:
        return f"rm -rf {self.unix_path(directory)}"

    def rm(self, file: str) -> str:
        return f"rm -f {self.unix_path(file)}"

    def download(self, url: str, dst: str) -> str:
        return f"copy_{self.download_app.value} {quote_if_spaced(url)} {self.unix_path(dst)}"

    def unzip(self, archive: str, dst: str) -> str:
        command = unzip_command(self.unix_path(archive), self.unix_path(dst))
        return f'[ "$clean" == "1" ] || {command}'
