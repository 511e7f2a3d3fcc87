"""Model-driven extraction of opportunity records."""

from .completeness import CRITICAL_FIELDS, completeness_score
from .engine import ExtractionEngine, ValidationOutcome, validate_candidate
from .llm import GenerativeModel, OpenAIChatModel
from .retry import RetryPolicy

__all__ = [
    "CRITICAL_FIELDS",
    "ExtractionEngine",
    "GenerativeModel",
    "OpenAIChatModel",
    "RetryPolicy",
    "ValidationOutcome",
    "completeness_score",
    "validate_candidate",
]
