"""Unit tests for RawItem and OpportunityRecord."""

import base64
from datetime import date
from typing import Any

import pytest
from pydantic import ValidationError

from grants_agent.models import (
    DEADLINE_TBD,
    OpportunityRecord,
    ProgramDates,
    RawItem,
    make_external_id,
    parse_calendar_date,
)


def _decode(external_id: str) -> str:
    padded = external_id + "=" * (-len(external_id) % 4)
    return base64.b64decode(padded).decode("utf-8")


class TestExternalId:
    """Tests for make_external_id and RawItem.from_page."""

    def test_deterministic(self) -> None:
        """Same (source, url) always gives the same id."""
        a = make_external_id("Harbour Arts", "https://harbourarts.org/r")
        b = make_external_id("Harbour Arts", "https://harbourarts.org/r")
        assert a == b

    def test_distinct_urls_give_distinct_ids(self) -> None:
        a = make_external_id("Harbour Arts", "https://harbourarts.org/r1")
        b = make_external_id("Harbour Arts", "https://harbourarts.org/r2")
        assert a != b

    def test_padding_stripped_and_reversible(self) -> None:
        """Id is base64 of "{source}-{url}" without trailing '='."""
        external_id = make_external_id("src", "https://x.org/a")
        assert not external_id.endswith("=")
        assert _decode(external_id) == "src-https://x.org/a"

    def test_non_ascii_source_name(self) -> None:
        external_id = make_external_id("Fundação", "https://x.pt/bolsa")
        assert _decode(external_id) == "Fundação-https://x.pt/bolsa"

    def test_from_page_derives_id(self) -> None:
        item = RawItem.from_page("src", "https://x.org/a", "<p>x</p>")
        assert item.external_id == make_external_id("src", "https://x.org/a")
        assert item.source_name == "src"

    def test_raw_item_is_frozen(self) -> None:
        item = RawItem.from_page("src", "https://x.org/a", "<p>x</p>")
        with pytest.raises(ValidationError):
            item.markup = "<p>changed</p>"


class TestParseCalendarDate:
    """Tests for parse_calendar_date."""

    def test_iso_date(self) -> None:
        assert parse_calendar_date("2026-03-15") == date(2026, 3, 15)

    def test_iso_datetime_uses_date_part(self) -> None:
        assert parse_calendar_date("2026-03-15T23:59:00Z") == date(2026, 3, 15)

    def test_free_text_date(self) -> None:
        assert parse_calendar_date("March 15, 2026") == date(2026, 3, 15)

    def test_unknown_values(self) -> None:
        """None, blank, TBD and garbage are all unknown."""
        assert parse_calendar_date(None) is None
        assert parse_calendar_date("   ") is None
        assert parse_calendar_date("TBD") is None
        assert parse_calendar_date("tbd") is None
        assert parse_calendar_date("sometime soon") is None

    @pytest.mark.parametrize("text", ["May", "2026", "May 2026", "the 15th"])
    def test_partial_dates_are_unknown(self, text: str) -> None:
        assert parse_calendar_date(text) is None


class TestOpportunityRecord:
    """Schema validation for OpportunityRecord."""

    def test_valid_candidate(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate(valid_candidate)
        assert record.program_type == "residency"
        assert record.deadline_date == date(2026, 3, 15)
        assert record.source.name == "Harbour Arts"

    def test_unknown_keys_ignored(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate({**valid_candidate, "mood": "optimistic"})
        assert not hasattr(record, "mood")

    def test_deadline_tbd_normalized(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate({**valid_candidate, "application_deadline": "tbd"})
        assert record.application_deadline == DEADLINE_TBD
        assert record.deadline_date is None

    def test_deadline_must_be_date(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "application_deadline": "soon"})

    def test_month_only_deadline_rejected(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "application_deadline": "May"})

    def test_free_text_deadline_stored_as_iso(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate(
            {**valid_candidate, "application_deadline": "March 15, 2026"}
        )
        assert record.application_deadline == "2026-03-15"
        assert record.to_registry_payload()["application_deadline"] == "2026-03-15"

    def test_title_too_short(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "title": "Residency"})

    def test_content_minimum_length(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "content": "Too short."})

    def test_unknown_program_type_rejected(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "program_type": "workshop"})

    def test_link_must_be_absolute(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "link_to_apply": "/apply"})

    def test_link_not_specified_allowed(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate(
            {**valid_candidate, "link_to_apply": "Not specified"}
        )
        assert record.link_to_apply == "Not specified"

    def test_contact_email_validation(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate({**valid_candidate, "contact_email": "not-an-email"})

    def test_contact_email_none_becomes_empty(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate({**valid_candidate, "contact_email": None})
        assert record.contact_email == ""

    def test_empty_list_is_no_data(self, valid_candidate: dict[str, Any]) -> None:
        """An empty array means 'not checked', stored as None."""
        record = OpportunityRecord.model_validate({**valid_candidate, "eligibility": []})
        assert record.eligibility is None

    def test_program_dates_must_parse(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate(
                {**valid_candidate, "program_dates": {"start_date": "early summer"}}
            )

    def test_program_dates_partial(self) -> None:
        dates = ProgramDates(end_date="2026-09-30")
        assert dates.start_date is None
        assert dates.end_date == "2026-09-30"

    def test_program_dates_stored_as_iso(self) -> None:
        dates = ProgramDates(start_date="1 June 2026", end_date="2026-08-31T18:00:00Z")
        assert dates.start_date == "2026-06-01"
        assert dates.end_date == "2026-08-31"

    def test_relative_source_url_rejected(self, valid_candidate: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            OpportunityRecord.model_validate(
                {**valid_candidate, "source": {"name": "x", "url": "/residency"}}
            )


class TestRegistryPayload:
    """Tests for to_registry_payload."""

    def test_tbd_deadline_sent_as_null(self, valid_candidate: dict[str, Any]) -> None:
        record = OpportunityRecord.model_validate({**valid_candidate, "application_deadline": "TBD"})
        payload = record.to_registry_payload()
        assert "application_deadline" in payload
        assert payload["application_deadline"] is None

    def test_dated_deadline_kept(self, valid_candidate: dict[str, Any]) -> None:
        payload = OpportunityRecord.model_validate(valid_candidate).to_registry_payload()
        assert payload["application_deadline"] == "2026-03-15"

    def test_absent_optional_fields_omitted(self, valid_candidate: dict[str, Any]) -> None:
        data = {**valid_candidate}
        del data["city"]
        payload = OpportunityRecord.model_validate(data).to_registry_payload()
        assert "city" not in payload
        assert "benefits" not in payload
        assert payload["source"] == valid_candidate["source"]
