"""Error taxonomy for the grants agent run."""

from typing import Any, Optional


class AgentError(Exception):
    """Base class for all agent errors."""


class FetchError(AgentError):
    """Network or timeout failure fetching a source or detail page."""

    def __init__(self, url: str, message: str):
        super().__init__(f"Fetch failed for {url}: {message}")
        self.url = url


class ExtractionValidationError(AgentError):
    """Model output did not satisfy the record schema after enrichment."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class StaleRecordError(AgentError):
    """Record is no longer actionable; a filter outcome rather than a failure."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class IngestError(AgentError):
    """Registry check or upsert failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FatalError(AgentError):
    """Aborts the whole run."""


class ConfigurationError(FatalError):
    """Required configuration is missing or invalid."""
