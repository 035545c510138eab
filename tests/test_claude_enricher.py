"""Tests for the Claude enrichment client."""

import asyncio
import json
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from enricher.enrich.claude import ClaudeEnricher, extract_citations, response_text
from enricher.errors import ConfigurationError, FormatError, ServiceError

VALID_ANSWER = json.dumps({
    "website": "https://acme.example",
    "description": "Industrial chemistry",
    "revenue": "$12M",
    "laboratories": {"confirmed": ["Acme Lab"], "presumed": []},
    "contacts": [{"name": "Ann Lee", "title": "Lab Director"}],
})


def text_block(text: str, citations=None) -> SimpleNamespace:
    return SimpleNamespace(type="text", text=text, citations=citations)


def citation(url, title) -> SimpleNamespace:
    return SimpleNamespace(type="web_search_result_location", url=url, title=title, cited_text="...")


def search_result_block(results) -> SimpleNamespace:
    return SimpleNamespace(type="web_search_tool_result", tool_use_id="srvtoolu_1", content=results)


class FakeMessages:
    def __init__(self, responses=(), error=None):
        self.responses = list(responses)
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


class FakeClient:
    def __init__(self, content=None, error=None, stop_reason="end_turn", responses=None):
        if responses is None:
            responses = [make_response(content or [], stop_reason)]
        self.messages = FakeMessages(responses, error)


def make_response(content, stop_reason="end_turn") -> SimpleNamespace:
    return SimpleNamespace(content=content, stop_reason=stop_reason)


def make_enricher(client: FakeClient, api_key: str = "test-key") -> ClaudeEnricher:
    return ClaudeEnricher(api_key=api_key, client=client)


class TestClaudeEnricher:
    """Tests for ClaudeEnricher.enrich."""

    def test_enrich_success(self):
        client = FakeClient([
            SimpleNamespace(type="thinking", thinking="...", signature="sig"),
            text_block(VALID_ANSWER, citations=[citation("https://acme.example", "Acme")]),
        ])
        result = asyncio.run(make_enricher(client).enrich("Acme"))

        assert result.record.website == "https://acme.example"
        assert result.record.contacts[0].title == "Lab Director"
        assert [c.uri for c in result.sources] == ["https://acme.example"]

    def test_enrich_joins_split_text_blocks(self):
        half = len(VALID_ANSWER) // 2
        client = FakeClient([
            text_block(VALID_ANSWER[:half]),
            text_block(VALID_ANSWER[half:], citations=[citation("https://a.example", "A")]),
        ])
        result = asyncio.run(make_enricher(client).enrich("Acme"))
        assert result.record.revenue == "$12M"

    def test_enrich_without_citations_returns_empty_list(self):
        client = FakeClient([text_block(VALID_ANSWER)])
        result = asyncio.run(make_enricher(client).enrich("Acme"))
        assert result.sources == []

    def test_request_enables_web_search_and_thinking(self):
        client = FakeClient([text_block(VALID_ANSWER)])
        enricher = ClaudeEnricher(
            api_key="test-key",
            model="claude-test",
            max_tokens=9000,
            thinking_budget=4096,
            web_search_max_uses=3,
            client=client,
        )
        asyncio.run(enricher.enrich("Acme"))

        call = client.messages.calls[0]
        assert call["model"] == "claude-test"
        assert call["max_tokens"] == 9000
        assert call["thinking"] == {"type": "enabled", "budget_tokens": 4096}
        assert call["tools"][0]["name"] == "web_search"
        assert call["tools"][0]["max_uses"] == 3
        assert 'For the company "Acme"' in call["messages"][0]["content"]

    def test_prompt_demands_json_only(self):
        prompt = make_enricher(FakeClient()).build_prompt("Zen Labs")
        assert '"Zen Labs"' in prompt
        assert "single valid JSON object" in prompt
        for field_name in ("website", "description", "revenue", "laboratories", "contacts"):
            assert f'"{field_name}"' in prompt

    def test_missing_credential_fails_before_any_call(self):
        client = FakeClient([text_block(VALID_ANSWER)])
        enricher = make_enricher(client, api_key="")

        with pytest.raises(ConfigurationError):
            asyncio.run(enricher.enrich("Acme"))
        assert len(client.messages.calls) == 0

    def test_ensure_configured(self):
        with pytest.raises(ConfigurationError):
            make_enricher(FakeClient(), api_key="").ensure_configured()
        make_enricher(FakeClient()).ensure_configured()

    def test_service_error(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client = FakeClient(error=anthropic.APIConnectionError(request=request))

        with pytest.raises(ServiceError, match="Connection error"):
            asyncio.run(make_enricher(client).enrich("Acme"))

    def test_no_json_in_answer(self):
        client = FakeClient([text_block("Sorry, I found nothing about this company.")])
        with pytest.raises(FormatError):
            asyncio.run(make_enricher(client).enrich("Acme"))

    def test_malformed_json_in_answer(self):
        client = FakeClient([text_block('{"website": "acme.example",,}')])
        with pytest.raises(FormatError):
            asyncio.run(make_enricher(client).enrich("Acme"))


    def test_paused_turn_is_continued(self):
        tool_use = SimpleNamespace(type="server_tool_use", id="srvtoolu_1", name="web_search")
        search = search_result_block([
            SimpleNamespace(type="web_search_result", url="https://acme.example", title="Acme"),
        ])
        client = FakeClient(responses=[
            make_response([tool_use, search], stop_reason="pause_turn"),
            make_response([text_block(VALID_ANSWER)]),
        ])
        result = asyncio.run(make_enricher(client).enrich("Acme"))

        assert result.record.website == "https://acme.example"
        assert [c.uri for c in result.sources] == ["https://acme.example"]
        assert len(client.messages.calls) == 2
        resent = client.messages.calls[1]["messages"]
        assert resent[0]["role"] == "user"
        assert resent[1] == {"role": "assistant", "content": [tool_use, search]}

    def test_paused_turn_gives_up_after_limit(self):
        paused = [
            make_response([SimpleNamespace(type="server_tool_use")], stop_reason="pause_turn")
            for _ in range(3)
        ]
        client = FakeClient(responses=paused)
        enricher = ClaudeEnricher(api_key="test-key", max_continuations=2, client=client)

        with pytest.raises(ServiceError, match="paused"):
            asyncio.run(enricher.enrich("Acme"))
        assert len(client.messages.calls) == 3

    def test_truncated_answer(self):
        client = FakeClient([text_block('{"website": "acme.exa')], stop_reason="max_tokens")
        with pytest.raises(ServiceError, match="max_tokens"):
            asyncio.run(make_enricher(client).enrich("Acme"))


class TestCitations:
    """Tests for citation extraction."""

    def test_dedupe_first_occurrence_wins(self):
        blocks = [text_block("answer", citations=[
            citation("x", "A"),
            citation("x", "B"),
            citation("y", "C"),
        ])]
        result = extract_citations(blocks)
        assert [(c.uri, c.title) for c in result] == [("x", "A"), ("y", "C")]

    def test_drops_entries_missing_fields(self):
        blocks = [text_block("answer", citations=[
            citation("", "No URL"),
            citation("https://a.example", None),
            citation("https://b.example", "B"),
        ])]
        result = extract_citations(blocks)
        assert [c.uri for c in result] == ["https://b.example"]

    def test_includes_search_results_in_order(self):
        blocks = [
            search_result_block([
                SimpleNamespace(type="web_search_result", url="https://s1.example", title="S1"),
                SimpleNamespace(type="web_search_result", url="https://s2.example", title="S2"),
            ]),
            text_block("answer", citations=[citation("https://s2.example", "S2 again")]),
            text_block("more", citations=[citation("https://t.example", "T")]),
        ]
        result = extract_citations(blocks)
        assert [(c.uri, c.title) for c in result] == [
            ("https://s1.example", "S1"),
            ("https://s2.example", "S2"),
            ("https://t.example", "T"),
        ]

    def test_ignores_failed_search_block(self):
        blocks = [
            search_result_block(SimpleNamespace(type="web_search_tool_result_error", error_code="unavailable")),
            text_block("answer"),
        ]
        assert extract_citations(blocks) == []

    def test_response_text_skips_non_text_blocks(self):
        blocks = [
            SimpleNamespace(type="server_tool_use", name="web_search"),
            text_block("Hello "),
            text_block("world"),
        ]
        assert response_text(blocks) == "Hello world"
