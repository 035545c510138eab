"""Tests for extracting enrichment records from model output."""

import json

import pytest

from enricher.enrich.interpreter import extract_record, find_json_span
from enricher.errors import FormatError


def make_payload(**kwargs) -> dict:
    """Create a valid response payload with defaults."""
    defaults = {
        "website": "a.com",
        "description": "Makes widgets",
        "revenue": "$5M (estimate)",
        "laboratories": {"confirmed": ["Main Lab"], "presumed": ["QC Lab"]},
        "contacts": [
            {"name": "Jane Roe", "title": "CTO", "email": "jane@a.com", "phone": "+1 555 0100"},
        ],
    }
    defaults.update(kwargs)
    return defaults


class TestExtractRecord:
    """Tests for the response interpreter."""

    def test_extract_plain_json(self):
        record = extract_record(json.dumps(make_payload()))
        assert record.website == "a.com"
        assert record.laboratories.confirmed == ["Main Lab"]
        assert record.contacts[0].name == "Jane Roe"

    def test_extract_ignores_surrounding_prose(self):
        text = f"Hello {json.dumps(make_payload())} world"
        record = extract_record(text)
        assert record.website == "a.com"
        assert record.description == "Makes widgets"

    def test_extract_from_markdown_fence(self):
        text = "```json\n" + json.dumps(make_payload()) + "\n```"
        record = extract_record(text)
        assert record.revenue == "$5M (estimate)"

    def test_extract_missing_optional_contact_fields(self):
        payload = make_payload(contacts=[{"name": "John Doe", "title": "Lab Manager"}])
        record = extract_record(json.dumps(payload))
        assert record.contacts[0].email is None
        assert record.contacts[0].phone is None

    def test_extract_null_free_text_fields(self):
        record = extract_record(json.dumps(make_payload(revenue=None)))
        assert record.revenue is None

    def test_extract_no_braces(self):
        with pytest.raises(FormatError):
            extract_record("I could not find anything about this company.")

    def test_extract_only_opening_brace(self):
        with pytest.raises(FormatError):
            extract_record("Result: { incomplete")

    def test_extract_malformed_json(self):
        with pytest.raises(FormatError, match="not valid JSON"):
            extract_record('{"website": "a.com", "description": }')

    def test_extract_wrong_shape(self):
        payload = make_payload(contacts="call the front desk")
        with pytest.raises(FormatError):
            extract_record(json.dumps(payload))

    def test_extract_contact_without_title(self):
        payload = make_payload(contacts=[{"name": "John Doe"}])
        with pytest.raises(FormatError):
            extract_record(json.dumps(payload))

    def test_stray_braces_in_prose_are_not_guarded(self):
        # The span runs from the first "{" to the last "}", so a brace in
        # trailing prose makes the span undecodable.
        text = json.dumps(make_payload()) + " (see {note})"
        with pytest.raises(FormatError):
            extract_record(text)


class TestFindJsonSpan:
    """Tests for locating the JSON span."""

    def test_span_is_first_to_last_brace(self):
        assert find_json_span('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'

    def test_span_is_greedy_across_objects(self):
        assert find_json_span("{1} and {2}") == "{1} and {2}"

    def test_span_missing(self):
        with pytest.raises(FormatError):
            find_json_span("no object here")
