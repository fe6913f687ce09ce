"""Exception hierarchy for the trend engine and its collaborators."""
from typing import List, Optional


class TrendEngineError(Exception):
    """Base class for all trend engine errors."""


class IngestValidationError(TrendEngineError):
    """A provider record failed validation at the ingest boundary."""

    def __init__(self, message: str, record_id: Optional[str] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.record_id = record_id
        self.errors = errors or []


class ProviderUnavailableError(TrendEngineError):
    """
    An external collaborator (catalogue store, schedule feed) could not be read.

    Callers must treat this as "nothing available right now" and retry later,
    never as an empty result.
    """

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
