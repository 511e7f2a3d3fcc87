"""Data models for raw pages and extracted opportunities."""

from grants_agent.models.opportunity import (
    DEADLINE_TBD,
    NOT_SPECIFIED,
    FactCheck,
    OpportunityRecord,
    ProgramDates,
    SourceRef,
    parse_calendar_date,
)
from grants_agent.models.raw import RawItem, make_external_id

__all__ = [
    "DEADLINE_TBD",
    "NOT_SPECIFIED",
    "FactCheck",
    "OpportunityRecord",
    "ProgramDates",
    "RawItem",
    "SourceRef",
    "make_external_id",
    "parse_calendar_date",
]
