"""
This module contains the exceptions raised by buildupdate.

Every exception is fatal for a run: the CLI reports the message and exits
before the target script is rewritten.
"""


class BuildUpdateException(Exception):
    """
    Base class for all buildupdate errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BuildUpdateException):
    """
    Raised for invalid configuration: a missing or unknown project, build or
    build type, an unsupported path rule pattern, or an unknown script dialect.
    """


class RemoteFetchError(BuildUpdateException):
    """
    Raised when the CI server cannot be reached or returns something unusable.
    """


class HeaderMismatchError(BuildUpdateException):
    """
    Raised when an existing target file does not start with the expected
    script header, so it is not overwritten by accident.
    """
