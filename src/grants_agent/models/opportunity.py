"""Validated opportunity record and its schema rules."""

import re
from datetime import date, datetime
from typing import Any, Literal, Optional, get_args
from urllib.parse import urlparse

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEADLINE_TBD = "TBD"
NOT_SPECIFIED = "Not specified"

ProgramType = Literal[
    "grant",
    "residency",
    "open_call",
    "fellowship",
    "competition",
    "fair_exhibition",
]
PROGRAM_TYPES: tuple[str, ...] = get_args(ProgramType)

Confidence = Literal["verified", "official_single_source", "low_confidence"]

EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Resolve a date string to a calendar date.
    None, blank, "TBD" and anything unparseable resolve to None (unknown).
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.upper() == DEADLINE_TBD:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    # dateutil fills missing parts from `default`; if two defaults disagree
    # the text was a partial date ("May", "2026").
    try:
        first: datetime = date_parser.parse(text, default=_FILL_DEFAULTS[0])
        second: datetime = date_parser.parse(text, default=_FILL_DEFAULTS[1])
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first.date()


def is_absolute_url(value: str) -> bool:
    """True for http(s) URLs with a host."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


class ProgramDates(BaseModel):
    """Program run dates; each bound optional."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _check_date(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        parsed = parse_calendar_date(v)
        if parsed is None:
            raise ValueError("must be an ISO 8601 date")
        return parsed.isoformat()


class SourceRef(BaseModel):
    """Where the record was extracted from."""

    name: str
    url: str

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not is_absolute_url(v):
            raise ValueError("source.url must be an absolute URL")
        return v


class FactCheck(BaseModel):
    """Extraction confidence and reviewer notes."""

    confidence: Confidence
    notes: Optional[str] = None


class OpportunityRecord(BaseModel):
    """
    Canonical extracted opportunity.
    Absent optional arrays are None ("not checked"), never empty lists.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    external_id: Optional[str] = None

    title: str = Field(..., min_length=10, max_length=280)
    summary: str = Field(..., min_length=50, max_length=600)
    content: str = Field(..., min_length=200)

    program_type: ProgramType
    organization_name: str = Field(..., min_length=3)

    location: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None

    funding_amount: Optional[str] = None
    participation_cost: Optional[str] = None

    application_deadline: str = Field(..., description="ISO 8601 date or 'TBD'")
    program_dates: Optional[ProgramDates] = None

    eligibility: Optional[list[str]] = None
    disciplines: Optional[list[str]] = None
    requirements: Optional[list[str]] = None
    benefits: Optional[list[str]] = None

    link_to_apply: Optional[str] = None
    contact_email: str = ""
    language: Optional[str] = None

    source: SourceRef
    fact_check: Optional[FactCheck] = None

    @field_validator("application_deadline")
    @classmethod
    def _check_deadline(cls, v: str) -> str:
        if v.upper() == DEADLINE_TBD:
            return DEADLINE_TBD
        parsed = parse_calendar_date(v)
        if parsed is None:
            raise ValueError('application_deadline must be ISO 8601 date or "TBD"')
        return parsed.isoformat()

    @field_validator("link_to_apply")
    @classmethod
    def _check_link(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == NOT_SPECIFIED:
            return v
        if not is_absolute_url(v):
            raise ValueError(f'link_to_apply must be an absolute URL or "{NOT_SPECIFIED}"')
        return v

    @field_validator("contact_email", mode="before")
    @classmethod
    def _check_email(cls, v: Any) -> str:
        if v is None:
            return ""
        v = str(v).strip()
        if v and not is_email(v):
            raise ValueError("contact_email must be empty or a valid address")
        return v

    @field_validator("eligibility", "disciplines", "requirements", "benefits")
    @classmethod
    def _empty_list_is_no_data(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return None
        items = [s.strip() for s in v if s and s.strip()]
        return items or None

    @property
    def deadline_date(self) -> Optional[date]:
        return parse_calendar_date(self.application_deadline)

    def to_registry_payload(self) -> dict[str, Any]:
        """
        Body for the registry upsert. The registry has no TBD concept, so an
        unknown deadline is sent as null.
        """
        data = self.model_dump(mode="json", exclude_none=True)
        data["application_deadline"] = (
            None if self.application_deadline == DEADLINE_TBD else self.application_deadline
        )
        return data
