"""
Deterministic enrichment of a model candidate before validation.

Fills fields the model left out from preprocessor hints and the page
itself. Explicit, valid model answers are left alone.
"""

from typing import Any, Optional
from urllib.parse import urlparse

from grants_agent.models.opportunity import NOT_SPECIFIED, is_absolute_url, parse_calendar_date
from grants_agent.models.raw import RawItem
from grants_agent.preprocess import PreprocessedHints

MIN_CONTENT_CHARS = 200
CLEAN_TEXT_EXCERPT_CHARS = 4000
CONTENT_BOILERPLATE = "Full details are available on the organiser's page."

COMMON_APPLY_PATHS = ("/apply", "/application", "/submit", "/how-to-apply", "/open-call")
EMAIL_PREFIXES = ("info", "contact", "enquiries", "applications", "admissions")

LIST_FIELDS = ("eligibility", "disciplines", "requirements", "benefits")
OPTIONAL_TEXT_FIELDS = ("location", "country", "city", "language")
MONEY_FIELDS = ("funding_amount", "participation_cost")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_not_specified(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == NOT_SPECIFIED.lower()


def join_content(value: Any) -> str:
    """Multi-segment content becomes one string with paragraph breaks."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        parts = [str(p).strip() for p in value if p is not None and str(p).strip()]
        return "\n\n".join(parts)
    return str(value).strip()


def fill_content(content: str, summary: Any, hints: PreprocessedHints) -> str:
    """Top up short content: cleaned page text, then boilerplate, then summary."""
    if len(content) >= MIN_CONTENT_CHARS:
        return content
    excerpt = hints.clean_text[:CLEAN_TEXT_EXCERPT_CHARS].strip()
    if len(excerpt) > len(content):
        content = excerpt
    if len(content) < MIN_CONTENT_CHARS:
        content = f"{content}\n\n{CONTENT_BOILERPLATE}".strip()
    if len(content) < MIN_CONTENT_CHARS and isinstance(summary, str) and summary.strip():
        content = f"{content}\n\n{summary.strip()}"
    return content


def _origin(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def guess_apply_link(item: RawItem, hints: PreprocessedHints) -> str:
    """First hint link, else a common apply path present in the markup, else the page URL."""
    for link in hints.apply_links:
        if is_absolute_url(link):
            return link
    origin = _origin(item.url)
    if origin:
        for path in COMMON_APPLY_PATHS:
            if path in item.markup:
                return origin + path
    return item.url


def guess_contact_email(item: RawItem, hints: PreprocessedHints) -> str:
    """First hint email, else prefix@domain only when that literal address is on the page."""
    if hints.emails:
        return hints.emails[0]
    host = (urlparse(item.url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    if not host:
        return ""
    for prefix in EMAIL_PREFIXES:
        candidate = f"{prefix}@{host}"
        if candidate in item.markup:
            return candidate
    return ""


def _normalize_list(value: Any) -> Optional[list[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return None
    items = [str(v).strip() for v in value if v is not None and str(v).strip()]
    return items or None


def _normalize_program_dates(value: Any) -> Optional[dict]:
    if not isinstance(value, dict):
        return None
    cleaned = {k: v for k, v in value.items() if not _is_blank(v)}
    # "Not specified", "TBD" and unparseable bounds are unknown, not invalid.
    for key in ("start_date", "end_date"):
        if key in cleaned and parse_calendar_date(str(cleaned[key])) is None:
            del cleaned[key]
    if not cleaned.get("start_date") and not cleaned.get("end_date"):
        return None
    return cleaned


def enrich_candidate(
    candidate: dict[str, Any],
    item: RawItem,
    hints: PreprocessedHints,
) -> dict[str, Any]:
    """Return a new candidate dict with omissions filled and sentinels normalized."""
    data = dict(candidate)
    data["external_id"] = item.external_id

    data["content"] = fill_content(join_content(data.get("content")), data.get("summary"), hints)

    link = data.get("link_to_apply")
    if _is_blank(link) or _is_not_specified(link) or not is_absolute_url(str(link).strip()):
        data["link_to_apply"] = guess_apply_link(item, hints)

    email = data.get("contact_email")
    if _is_not_specified(email):
        email = ""
    if _is_blank(email):
        email = guess_contact_email(item, hints)
    data["contact_email"] = email.strip() if isinstance(email, str) else email

    for key in MONEY_FIELDS:
        value = data.get(key)
        if _is_blank(value) or _is_not_specified(value):
            data[key] = None

    for key in LIST_FIELDS:
        data[key] = _normalize_list(data.get(key))

    for key in OPTIONAL_TEXT_FIELDS:
        if _is_blank(data.get(key)) or _is_not_specified(data.get(key)):
            data[key] = None

    if "program_dates" in data:
        data["program_dates"] = _normalize_program_dates(data.get("program_dates"))

    source = data.get("source")
    if not isinstance(source, dict) or _is_blank(source.get("name")) or _is_blank(source.get("url")):
        data["source"] = {"name": item.source_name, "url": item.url}

    return data

