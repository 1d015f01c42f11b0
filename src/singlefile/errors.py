"""Exceptions raised by SingleFile."""


class SingleFileError(Exception):
    """Base class for SingleFile errors."""

    pass


class ScriptNotFoundError(SingleFileError):
    """Raised when the test script cannot be located."""

    pass


class EngineError(SingleFileError):
    """Raised when a test engine cannot be selected or fails to run."""

    pass
