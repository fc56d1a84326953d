"""Exception types raised by the triage engine."""

from pydantic import ValidationError


class TriageError(Exception):
    """Base class for engine errors."""


class ConfigurationError(TriageError):
    """Raised when a configuration document cannot be read or validated."""


class PatchError(ConfigurationError):
    """Raised when a configuration update cannot be applied to a document."""


class ClassificationError(TriageError):
    """Raised when classifying a single issue fails unexpectedly."""

    def __init__(self, message: str, issue_id: int | None = None, stage: str | None = None):
        super().__init__(message)
        self.issue_id = issue_id
        self.stage = stage


def format_validation_error(error: ValidationError) -> list[str]:
    """
    Flatten a pydantic ValidationError into readable messages.

    Example: "scoringAlgorithm.weights: Value error, Scoring weights must sum to 100"
    """
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages
