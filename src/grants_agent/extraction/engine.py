"""Extraction engine: markup -> model candidate -> enriched, validated record."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from grants_agent.errors import ExtractionValidationError
from grants_agent.models.opportunity import OpportunityRecord
from grants_agent.models.raw import RawItem
from grants_agent.preprocess import PreprocessedHints, preprocess

from .completeness import completeness_score, with_completeness_note
from .enrichment import enrich_candidate
from .llm import GenerativeModel
from .prompts import MARKUP_CHAR_BUDGET, SYSTEM_PROMPT, build_user_prompt
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class ValidationOutcome:
    """Tagged result of schema validation: a record or the error list."""

    record: Optional[OpportunityRecord] = None
    errors: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


def parse_candidate(text: Optional[str]) -> dict[str, Any]:
    """Model text -> untyped JSON object. Anything else is a validation failure."""
    if not text or not text.strip():
        raise ExtractionValidationError("Empty model response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionValidationError(f"Model response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionValidationError(
            f"Model response is a JSON {type(data).__name__}, expected an object"
        )
    return data


def validate_candidate(candidate: dict[str, Any]) -> ValidationOutcome:
    """Run the record schema over an enriched candidate."""
    try:
        return ValidationOutcome(record=OpportunityRecord.model_validate(candidate))
    except ValidationError as e:
        return ValidationOutcome(errors=e.errors(include_url=False))


class ExtractionEngine:
    """
    Drives the generative model for one RawItem at a time.
    Attempting -> Success | Retry(backoff) -> Attempting | Exhausted -> None.
    """

    def __init__(
        self,
        model: GenerativeModel,
        *,
        language: str = "en",
        retry_policy: Optional[RetryPolicy] = None,
        markup_budget: int = MARKUP_CHAR_BUDGET,
    ):
        self.model = model
        self.language = language
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=DEFAULT_MAX_ATTEMPTS)
        self.markup_budget = markup_budget

    async def extract(
        self, item: RawItem, max_attempts: Optional[int] = None
    ) -> Optional[OpportunityRecord]:
        """
        Return a validated record, or None once every attempt has failed.
        Never raises for model, parse or validation failures.
        """
        hints = preprocess(item.markup, item.url)
        user_prompt = build_user_prompt(
            item, hints, language=self.language, budget=self.markup_budget
        )
        policy = self.retry_policy
        if max_attempts is not None:
            policy = policy.with_attempts(max_attempts)

        try:
            async for attempt in policy.retrying():
                with attempt:
                    record = await self._attempt(item, hints, user_prompt)
        except ExtractionValidationError as e:
            logger.warning(
                "Extraction failed for %s after %d attempts: %s %s",
                item.url,
                policy.max_attempts,
                e,
                e.errors,
            )
            return None
        except Exception as e:
            logger.warning(
                "Extraction failed for %s after %d attempts: %s",
                item.url,
                policy.max_attempts,
                e,
            )
            return None

        score = completeness_score(record)
        logger.info(
            "Validated %r deadline %s | completeness: %.0f%%",
            record.title[:60],
            record.application_deadline,
            score * 100,
        )
        return with_completeness_note(record, score)

    async def _attempt(
        self, item: RawItem, hints: PreprocessedHints, user_prompt: str
    ) -> OpportunityRecord:
        text = await self.model.complete_json(SYSTEM_PROMPT, user_prompt)
        candidate = parse_candidate(text)
        enriched = enrich_candidate(candidate, item, hints)
        outcome = validate_candidate(enriched)
        if not outcome.ok:
            raise ExtractionValidationError(
                f"Record failed validation with {len(outcome.errors)} error(s)",
                errors=outcome.errors,
            )
        return outcome.record
