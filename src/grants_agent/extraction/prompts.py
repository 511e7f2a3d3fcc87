"""Prompt construction for opportunity extraction."""

from grants_agent.models.opportunity import PROGRAM_TYPES
from grants_agent.models.raw import RawItem
from grants_agent.preprocess import PreprocessedHints

MARKUP_CHAR_BUDGET = 25_000
TRUNCATION_MARKER = "\n...(truncated)"

SYSTEM_PROMPT = f"""You extract structured information about opportunities for artists
(grants, residencies, open calls, fellowships, competitions, fairs and exhibitions)
from the HTML of an announcement page.

Return exactly one JSON object with these keys:
- title, summary (1-3 sentences), content (several paragraphs of plain text)
- program_type: one of {", ".join(PROGRAM_TYPES)}
- organization_name
- location, country, city
- funding_amount: amounts such as "EUR 1,200/month" or "up to $5,000"; "Free" when stated
  as free; "Not specified" when absent
- participation_cost: application or residency fees, rent; keep application fees and
  accommodation costs apart; "Free" when there is no fee; "Not specified" when absent
- application_deadline: YYYY-MM-DD, or "TBD" when the page states no deadline
- program_dates: {{start_date, end_date, timezone}} when the programme dates are given
- eligibility, disciplines, requirements, benefits: arrays of short strings
- link_to_apply: absolute URL of the application form or call page; "Not specified" if none
- contact_email: the most relevant address (admissions over info); empty string if none
- language
- source: {{name, url}}
- fact_check: {{confidence: "verified" | "official_single_source" | "low_confidence", notes}}

Category mapping: grants, funds, awards -> grant; residencies, labs, studios -> residency;
general calls for artists or proposals -> open_call; scholarships, fellowships -> fellowship;
contests, prizes -> competition; art fairs, biennials, showcase slots -> fair_exhibition.

Rules:
- Never invent data. Use "Not specified" or leave the field empty when it is not on the page.
- "No fee" for a residency does not mean "no stipend".
- Keep ranges as ranges ("up to $5,000").
- The opportunity can be anywhere on the page; read all of it.
- Write in the requested target language, translating neutrally when needed.
"""


def bound_markup(markup: str, budget: int = MARKUP_CHAR_BUDGET) -> str:
    """Cut markup to budget characters, marking the cut."""
    if len(markup) <= budget:
        return markup
    return markup[:budget] + TRUNCATION_MARKER


def format_hints(hints: PreprocessedHints) -> str:
    """Grounding context block from preprocessor output; empty when nothing was found."""
    sections: list[str] = []
    if hints.apply_links:
        sections.append("EXTRACTED APPLICATION LINKS:\n" + "\n".join(hints.apply_links))
    if hints.emails:
        sections.append("EXTRACTED EMAILS:\n" + ", ".join(hints.emails))
    if hints.key_blocks.funding:
        sections.append("FUNDING INFO BLOCK:\n" + hints.key_blocks.funding)
    if hints.key_blocks.fees:
        sections.append("FEES INFO BLOCK:\n" + hints.key_blocks.fees)
    if hints.key_blocks.deadline:
        sections.append("DEADLINE INFO BLOCK:\n" + hints.key_blocks.deadline)
    return "\n\n".join(sections)


def build_user_prompt(
    item: RawItem,
    hints: PreprocessedHints,
    *,
    language: str = "en",
    budget: int = MARKUP_CHAR_BUDGET,
) -> str:
    """User message: page context, bounded markup, then grounding hints."""
    context = format_hints(hints)
    return f"""Extract the opportunity described on this page into JSON.

Source: {item.source_name}
URL: {item.url}
Target language: {language}

Use ISO 8601 dates (YYYY-MM-DD). If no deadline is given, use "TBD".
fact_check.confidence must be "verified", "official_single_source" or "low_confidence".

Raw HTML (up to {budget} characters):
---
{bound_markup(item.markup, budget)}
---

{context}

Return ONLY valid JSON."""
