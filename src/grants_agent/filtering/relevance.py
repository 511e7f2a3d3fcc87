"""Temporal relevance: drop records whose deadline and programme dates have passed."""

from datetime import date
from typing import Callable, Optional

from pydantic import BaseModel

from grants_agent.models.opportunity import OpportunityRecord, parse_calendar_date

MANUAL_REVIEW_NOTE = "No explicit deadline/program dates; keeping for manual review"


class RelevanceResult(BaseModel):
    """Keep/drop decision with an explanation."""

    relevant: bool
    reason: Optional[str] = None
    note: Optional[str] = None


def is_relevant(record: OpportunityRecord, today: date) -> RelevanceResult:
    """
    Relevant when the deadline or either programme date is today or later.
    With no known date at all the record is kept for manual review.
    TBD and unparseable values count as unknown, not past.
    """
    deadline = parse_calendar_date(record.application_deadline)
    dates = record.program_dates
    program_start = parse_calendar_date(dates.start_date) if dates else None
    program_end = parse_calendar_date(dates.end_date) if dates else None

    deadline_upcoming = deadline is not None and deadline >= today
    program_upcoming = (program_start is not None and program_start >= today) or (
        program_end is not None and program_end >= today
    )
    if deadline_upcoming or program_upcoming:
        return RelevanceResult(relevant=True)

    if deadline is None and program_start is None and program_end is None:
        return RelevanceResult(relevant=True, note=MANUAL_REVIEW_NOTE)

    resolved = deadline.isoformat() if deadline else "n/a"
    return RelevanceResult(
        relevant=False,
        reason=f"Outdated opportunity (deadline: {resolved})",
    )


class RelevanceFilter:
    """Evaluates records against the caller's local calendar date."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def check(self, record: OpportunityRecord, today: Optional[date] = None) -> RelevanceResult:
        return is_relevant(record, today or self._today())
