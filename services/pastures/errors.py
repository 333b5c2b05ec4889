"""
Error taxonomy for the pasture CLI.

Every fatal error aborts the process with exit code 1. The CLI prints the
message with a short context prefix and does not expose the class names.
"""


class PastureError(Exception):
    """Base exception for pasture operations."""


class AuthError(PastureError):
    """Raised when Application Default Credentials are missing or unusable."""


class ConfigParseError(PastureError):
    """Raised when the shared variable file cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to parse var file {path}: {reason}")


class DependenciesMissingError(PastureError):
    """Raised when a stage dependency cannot be fetched from the outputs bucket."""

    def __init__(self, stage: str, key: str, reason: str = "") -> None:
        self.stage = stage
        self.key = key
        message = f"Missing dependency for stage {stage}: {key}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EngineError(PastureError):
    """Raised when a terraform subcommand exits non-zero."""

    def __init__(self, command: str, returncode: int, path: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.path = path
        super().__init__(f"terraform {command} failed with exit status {returncode}")


class OutputMissingError(PastureError):
    """Raised when a terraform output value is not available."""

    def __init__(self, name: str, reason: str = "") -> None:
        self.name = name
        super().__init__(f"Output {name} not found" + (f": {reason}" if reason else ""))


class RemoteWriteError(PastureError):
    """Raised when the var file cannot be uploaded to the outputs bucket."""


class PolicyReadError(PastureError):
    """Raised when an organization IAM policy cannot be read."""


class PolicyWriteError(PastureError):
    """Raised when an organization IAM policy cannot be written."""


class TemplateError(PastureError):
    """Raised when stage or seed template assets cannot be materialised."""


class StageError(PastureError):
    """A fatal stage failure with a human-readable context prefix."""

    def __init__(self, context: str, cause: Exception | None = None) -> None:
        self.context = context
        self.cause = cause
        message = context if cause is None else f"{context}: {cause}"
        super().__init__(message)
