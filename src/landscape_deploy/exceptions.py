"""Errors raised while deploying a landscape website."""

from typing import List


class DeployError(Exception):
    """Base class for deploy failures."""


class MissingEnvironmentError(DeployError):
    """A required environment variable was not provided."""

    def __init__(self, var: str):
        self.var = var
        super().__init__(f"required environment variable {var} not provided")


class FileUploadError(DeployError):
    """Failure processing or uploading a single file."""

    def __init__(self, key: str, cause: BaseException):
        self.key = key
        self.cause = cause
        super().__init__(f"{key}: {cause}")


class UploadFilesError(DeployError):
    """One or more files could not be uploaded.

    Raised once, after every file has been processed, so the report lists
    every failure and not just the first one.
    """

    def __init__(self, errors: List[FileUploadError]):
        self.errors = sorted(errors, key=lambda e: e.key)
        lines = [f"{len(self.errors)} file(s) failed to upload:"]
        lines.extend(f"- {error}" for error in self.errors)
        super().__init__("\n".join(lines))

    @property
    def keys(self) -> List[str]:
        return [error.key for error in self.errors]


class IndexDocumentError(DeployError):
    """The index document could not be uploaded."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"error uploading index document: {cause}")


class InvalidTransitionError(DeployError):
    """A deploy run was moved to a state it cannot reach."""
