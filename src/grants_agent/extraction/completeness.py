"""Completeness score over the critical optional fields."""

from typing import Any

from grants_agent.models.opportunity import NOT_SPECIFIED, FactCheck, OpportunityRecord

CRITICAL_FIELDS = (
    "funding_amount",
    "participation_cost",
    "link_to_apply",
    "contact_email",
    "eligibility",
    "disciplines",
    "country",
    "city",
)
LOW_COMPLETENESS_THRESHOLD = 0.5


def is_populated(value: Any) -> bool:
    """False for None, empty strings and lists, and the "Not specified" sentinel."""
    if value is None:
        return False
    if isinstance(value, str):
        stripped = value.strip()
        return bool(stripped) and stripped.lower() != NOT_SPECIFIED.lower()
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def completeness_score(record: OpportunityRecord) -> float:
    """Fraction of CRITICAL_FIELDS populated, in [0, 1]."""
    found = sum(1 for name in CRITICAL_FIELDS if is_populated(getattr(record, name)))
    return found / len(CRITICAL_FIELDS)


def with_completeness_note(record: OpportunityRecord, score: float) -> OpportunityRecord:
    """
    Prepend a low-completeness note to fact_check.notes when score is below
    the threshold. A missing fact_check becomes a low_confidence one.
    """
    if score >= LOW_COMPLETENESS_THRESHOLD:
        return record
    note = f"Low completeness ({score * 100:.0f}%)."
    fact_check = record.fact_check or FactCheck(confidence="low_confidence")
    notes = f"{note} {fact_check.notes or ''}".strip()
    return record.model_copy(
        update={"fact_check": fact_check.model_copy(update={"notes": notes})}
    )
