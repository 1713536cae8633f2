"""
Windows batch (cmd.exe) dialect.
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

COMMENT_PREFIX = "::"


class CmdScriptBackend:
    """
    Renders statements for ``@echo off`` batch files.

    Batch labels are only reachable after the main body, so the copy helpers are
    emitted in the epilogue behind ``goto:eof``.
    """

    name = "bat"
    newline = "\r\n"

    def __init__(self, download_app: DownloadApp = DownloadApp.AUTO):
        self.download_app = download_app

    def file_header(self) -> str:
        return "@echo off"

    def begin_lines(self) -> List[str]:
        return [
            "setlocal EnableDelayedExpansion",
            'pushd "%~dp0"',
            ":getopts",
            'if "%~1" == "-f" SET FORCE_DOWNLOAD=1',
            'if "%~1" == "-c" SET CLEAN_DOWNLOAD=1',
            "shift",
            'if not "%~1" == "" goto getopts',
        ]

    def end_lines(self) -> List[str]:
        return [
            "endlocal",
            "popd",
            "goto:eof",
            "",
            *self._functions(),
            self.comment("End of Script"),
        ]

    def _functions(self) -> List[str]:
        return [
            ":clean_file",
            "echo. cleaning %1",
            "if exist %1 DEL /F /Q %1",
            "goto:eof",
            "",
            ":copy_auto",
            'if "!CLEAN_DOWNLOAD!" == "1" (',
            "call :clean_file %2",
            "goto:eof",
            ")",
            'if "!USE_CURL!!USE_WGET!" == "" (',
            "curl --help >nul 2>&1",
            "if !errorlevel! == 0 (",
            "SET USE_CURL=1",
            ") ELSE (",
            "wget --help >nul 2>&1",
            "if !errorlevel! == 0 (",
            "SET USE_WGET=1",
            ") ELSE (",
            "echo. curl and wget are missing!",
            "exit /b 1",
            ")",
            ")",
            ")",
            'if "!USE_CURL!" == "1" (',
            "call :copy_curl %1 %2",
            ") ELSE (",
            "call :copy_wget %1 %2",
            ")",
            "goto:eof",
            "",
            ":copy_curl",
            'if "!CLEAN_DOWNLOAD!" == "1" (',
            "call :clean_file %2",
            "goto:eof",
            ")",
            "echo. curl: %~2 ^<= %~1",
            "SET COPY_UPDATE=",
            'if exist %2 if "!FORCE_DOWNLOAD!" == "" SET COPY_UPDATE=1',
            'if "!COPY_UPDATE!" == "1" (',
            curl_update('"%~1"', '"%~2"'),
            ") ELSE (",
            curl_replace('"%~1"', '"%~2"'),
            ")",
            "goto:eof",
            "",
            ":copy_wget",
            'if "!CLEAN_DOWNLOAD!" == "1" (',
            "call :clean_file %2",
            "goto:eof",
            ")",
            "echo. wget: %~2 ^<= %~1",
            'if "!FORCE_DOWNLOAD!" == "1" if exist %2 DEL /F /Q %2',
            'pushd "%~dp2"',
            wget_update('"%~1"'),
            "popd",
            "goto:eof",
            "",
        ]

    def comment(self, text: str) -> str:
        return comment_line(COMMENT_PREFIX, text)

    def variable(self, name: str, value: str) -> str:
        return variable_line(COMMENT_PREFIX, name, value)

    def parse_variable(self, line: str) -> Optional[Tuple[str, str]]:
        return parse_variable_line(COMMENT_PREFIX, line)

    @staticmethod
    def windows_path(path: str) -> str:
        return quote_if_spaced(path.replace("/", "\\"))

    def _exists(self, directory: str) -> str:
        return self.windows_path(directory.rstrip("/\\") + "/nul")

    def mkdir(self, directory: str) -> str:
        return f"if not exist {self._exists(directory)} mkdir {self.windows_path(directory)}"

    def rmdir(self, directory: str) -> str:
        return f"if exist {self._exists(directory)} rmdir /s /q {self.windows_path(directory)}"

    def rm(self, file: str) -> str:
        path = self.windows_path(file)
        return f"if exist {path} del /f /q {path}"

    def download(self, url: str, dst: str) -> str:
        return f"call :copy_{self.download_app.value} {quote_if_spaced(url)} {self.windows_path(dst)}"

    def unzip(self, archive: str, dst: str) -> str:
        command = unzip_command(self.windows_path(archive), self.windows_path(dst))
        return f'if not "!CLEAN_DOWNLOAD!" == "1" {command}'
