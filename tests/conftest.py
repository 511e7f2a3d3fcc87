"""Pytest fixtures for grants-agent tests."""

import json
from typing import Any, Optional

import pytest

from grants_agent.models.raw import RawItem

PAGE_URL = "https://www.harbourarts.org/residency-2026"

SAMPLE_MARKUP = """<html>
<head><title>Studio Residency 2026</title><script>var tracking = 1;</script></head>
<body>
<nav>Home | About | Shop</nav>
<main>
<h1>Studio Residency Programme 2026</h1>
<p>The Harbour Arts Foundation invites visual artists to apply for a three-month studio residency in Lisbon.</p>
<p>Residents receive a monthly stipend of €1,200 and a private studio.</p>
<p>There is no application fee; the residency is free of charge.</p>
<p>Application deadline: 15 March 2026.</p>
<p>Questions? Write to admissions@harbourarts.org or press@harbourarts.org.</p>
<a href="/apply">Apply now</a>
<a href="/contact">Contact us</a>
</main>
<footer>Harbour Arts Foundation newsletter</footer>
</body>
</html>"""

LONG_CONTENT = (
    "The Harbour Arts Foundation invites visual artists to apply for a three-month "
    "studio residency in Lisbon.\n\nResidents receive a monthly stipend of EUR 1,200, "
    "a private studio and access to the shared workshop. There is no application fee."
)


class FakeModel:
    """Scripted GenerativeModel: returns (or raises) queued responses, repeating the last."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls = 0
        self.prompts: list[str] = []

    async def complete_json(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        self.calls += 1
        self.prompts.append(user_prompt)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class SleepRecorder:
    """Fake asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sample_markup() -> str:
    """Announcement page with funding, fee, deadline blocks and contact details."""
    return SAMPLE_MARKUP


@pytest.fixture
def raw_item(sample_markup: str) -> RawItem:
    """RawItem for the sample announcement."""
    return RawItem.from_page("Harbour Arts", PAGE_URL, sample_markup)


@pytest.fixture
def valid_candidate() -> dict[str, Any]:
    """Complete model answer for the sample page."""
    return {
        "title": "Studio Residency Programme 2026",
        "summary": (
            "A three-month studio residency in Lisbon for visual artists, "
            "with a monthly stipend and a private studio."
        ),
        "content": LONG_CONTENT,
        "program_type": "residency",
        "organization_name": "Harbour Arts Foundation",
        "location": "Lisbon, Portugal",
        "country": "Portugal",
        "city": "Lisbon",
        "funding_amount": "EUR 1,200/month",
        "participation_cost": "Free",
        "application_deadline": "2026-03-15",
        "eligibility": ["Visual artists"],
        "disciplines": ["Painting", "Sculpture"],
        "link_to_apply": "https://www.harbourarts.org/apply",
        "contact_email": "admissions@harbourarts.org",
        "language": "en",
        "source": {"name": "Harbour Arts", "url": PAGE_URL},
        "fact_check": {"confidence": "official_single_source"},
    }


@pytest.fixture
def valid_response(valid_candidate: dict[str, Any]) -> str:
    """valid_candidate as the model's raw JSON text."""
    return json.dumps(valid_candidate)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_model() -> type[FakeModel]:
    """FakeModel factory: fake_model([response, ...])."""
    return FakeModel
