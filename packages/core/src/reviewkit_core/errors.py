"""Error taxonomy for review invocations.

Resolution-stage errors (NoSessionFound, MissingTarget, InvalidTargetFormat,
FileNotFound, VersionControlError) end the invocation before anything is
written. PartialWriteError is the only one where retrying part of the work
makes sense.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for every user-visible review failure."""


class ConfigError(ReviewError):
    pass


class UnknownDomain(ReviewError):
    pass


class NoSessionFound(ReviewError):
    pass


class MissingTarget(ReviewError):
    pass


class InvalidTargetFormat(ReviewError):
    pass


class FileNotFound(ReviewError):
    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class VersionControlError(ReviewError):
    """git or GitHub did not return what the scope needs."""


class EmptyScopeResult(ReviewError):
    """Raised by ensure_non_empty(); the pipeline reports it as a warning and carries on."""


class PartialWriteError(ReviewError):
    def __init__(self, report_path: str, report_written: bool, index_written: bool, cause: Exception | None = None):
        if report_written:
            detail = f"report written to {report_path} but the session index was not updated"
        else:
            detail = f"report {report_path} was not written and the session index was not updated"
        if cause is not None:
            detail += f" ({type(cause).__name__}: {cause})"
        super().__init__(detail)
        self.report_path = report_path
        self.report_written = report_written
        self.index_written = index_written
