"""
Logger used across buildupdate.

Every message is emitted as one JSON line carrying the caller's file, function
and line so that verbose runs can be traced back to the rule that produced them.
"""

import inspect
import logging

from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the buildupdate log
    """

    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class BuildUpdateLogger:
    """
    Logger class
    """

    def __init__(self, name: str = "buildupdate") -> None:
        self.logger = logging.getLogger(name)

    def set_verbose(self, verbose: bool) -> None:
        self.logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    def log(self, debug_message: str, level: int) -> None:
        """
        Log the debug message at the given level, tagged with the caller's location.
        """
        debug_message = debug_message.replace("\n", " ")

        caller = inspect.getframeinfo(inspect.currentframe().f_back, context=0)
        caller_file = caller.filename.replace("\\", "/").split("/")[-1]

        debug_log_line = LogLine(
            caller_file=caller_file,
            caller_name=caller.function,
            caller_line=caller.lineno,
            message=debug_message,
        )
        self.logger.log(level=level, msg=debug_log_line.model_dump_json())
