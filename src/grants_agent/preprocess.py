"""
Heuristic pre-extraction from announcement markup.

Pulls candidate apply/contact links, contact emails and keyword-anchored
text blocks (funding, fees, deadline) out of raw HTML. The results ground
the model prompt and feed the deterministic enrichment pass; they are never
persisted.
"""

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PRIORITY_EMAIL_KEYWORDS = ("admissions", "applications", "residency", "grants", "info")

APPLY_KEYWORDS = ("apply", "application", "submit", "call", "register", "enrollment")
CONTACT_KEYWORDS = ("contact", "email", "reach", "inquiries")

FUNDING_KEYWORDS = (
    "stipend",
    "grant",
    "funding",
    "allowance",
    "support",
    "scholarship",
    "award",
    "prize",
)
FEE_KEYWORDS = ("fee", "cost", "rent", "subsidized", "free", "no charge", "no fee")
DEADLINE_KEYWORDS = ("deadline", "due date", "closing date", "apply by", "submit by")

CURRENCY_PATTERN = re.compile(r"[$€£]\s*\d+|^\d+\s*[$€£]")
DATE_PATTERN = re.compile(
    r"\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
    r"|\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}"
    r"|january|february|march|april|may|june|july|august|september|october|november|december",
    re.IGNORECASE,
)

BLOCK_SELECTOR = "p, div, section, li"
NOISE_SELECTOR = "script, style, nav, footer, header, .menu, .navigation, .sidebar"

FUNDING_BLOCK_CHARS = 500
FEES_BLOCK_CHARS = 500
DEADLINE_BLOCK_CHARS = 300


@dataclass
class KeyBlocks:
    """First qualifying text block per category."""

    funding: Optional[str] = None
    fees: Optional[str] = None
    deadline: Optional[str] = None


@dataclass
class PreprocessedHints:
    """Derived, ephemeral view of a page used to ground extraction."""

    clean_text: str = ""
    apply_links: list[str] = field(default_factory=list)
    contact_links: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)
    key_blocks: KeyBlocks = field(default_factory=KeyBlocks)


def _soup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup or "", "lxml")


def extract_emails(text: str) -> list[str]:
    """
    All address-shaped tokens in text, deduplicated in order of appearance.
    Addresses containing a priority keyword win when any exist.
    """
    emails: list[str] = []
    for match in EMAIL_PATTERN.findall(text or ""):
        if match not in emails:
            emails.append(match)
    prioritized = [
        e for e in emails if any(kw in e.lower() for kw in PRIORITY_EMAIL_KEYWORDS)
    ]
    return prioritized or emails


def extract_links(markup: str, base_url: str) -> tuple[list[str], list[str]]:
    """Return (apply_links, contact_links) resolved against base_url."""
    apply_links: list[str] = []
    contact_links: list[str] = []

    for anchor in _soup(markup).select("a[href]"):
        href = (anchor.get("href") or "").strip()
        if not href:
            continue
        text = anchor.get_text(" ", strip=True).lower()
        full_url = href
        if not href.startswith("http"):
            try:
                full_url = urljoin(base_url, href)
            except ValueError:
                continue
        lowered = full_url.lower()

        if any(kw in text or kw in lowered for kw in APPLY_KEYWORDS):
            if full_url not in apply_links:
                apply_links.append(full_url)
        if any(kw in text or kw in lowered for kw in CONTACT_KEYWORDS):
            if full_url not in contact_links:
                contact_links.append(full_url)

    return apply_links, contact_links


def extract_key_blocks(markup: str) -> KeyBlocks:
    """Scan block elements in document order; first match per category wins."""
    blocks = KeyBlocks()
    for element in _soup(markup).select(BLOCK_SELECTOR):
        raw = element.get_text()
        text = raw.lower()
        has_amount = bool(CURRENCY_PATTERN.search(text))

        if blocks.funding is None and has_amount and any(kw in text for kw in FUNDING_KEYWORDS):
            blocks.funding = raw.strip()[:FUNDING_BLOCK_CHARS]

        if (
            blocks.fees is None
            and any(kw in text for kw in FEE_KEYWORDS)
            and ("free" in text or has_amount)
        ):
            blocks.fees = raw.strip()[:FEES_BLOCK_CHARS]

        if (
            blocks.deadline is None
            and any(kw in text for kw in DEADLINE_KEYWORDS)
            and DATE_PATTERN.search(text)
        ):
            blocks.deadline = raw.strip()[:DEADLINE_BLOCK_CHARS]

        if blocks.funding and blocks.fees and blocks.deadline:
            break
    return blocks


def clean_markup(markup: str) -> str:
    """Visible text without scripts and page chrome, one non-empty line per row."""
    soup = _soup(markup)
    for node in soup.select(NOISE_SELECTOR):
        node.decompose()
    root = soup.body or soup
    lines = (line.strip() for line in root.get_text("\n").split("\n"))
    return "\n".join(line for line in lines if line)


def preprocess(markup: str, url: str) -> PreprocessedHints:
    """Run every heuristic over one page. Never raises on malformed markup."""
    clean_text = clean_markup(markup)
    apply_links, contact_links = extract_links(markup, url)
    return PreprocessedHints(
        clean_text=clean_text,
        apply_links=apply_links,
        contact_links=contact_links,
        emails=extract_emails(clean_text),
        key_blocks=extract_key_blocks(markup),
    )
