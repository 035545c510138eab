"""Company enrichment through Claude with web search."""

import asyncio
import logging
from typing import Any, Iterable, Optional

import anthropic

from enricher.config import settings
from enricher.errors import ConfigurationError, FormatError, ServiceError
from enricher.models import Citation, EnrichmentResult
from .base import CompanyEnricher
from .interpreter import extract_record

logger = logging.getLogger(__name__)


class ClaudeEnricher(CompanyEnricher):
    """Look up company data with the Anthropic Messages API and its web search tool."""

    name = "claude"

    ENRICHMENT_PROMPT = """For the company "{company_name}", search the web thoroughly and collect the information below.

Your main goal is a detailed list of contacts.

Required information:
1. website: The official company website URL.
2. description: A short summary of what the company does.
3. revenue: The latest reported annual revenue or turnover. If no exact figure is available, give an estimate and say it is one.
4. laboratories: The company's laboratories. Separate labs confirmed by official sources (company website, press releases) from labs presumed to exist based on the line of business or job postings.
5. contacts: People at the company and its labs. For each give full name and job title, plus email address and phone number when available. Prefer research, development, management and laboratory staff.

Your entire answer MUST be a single valid JSON object. Do not add greetings, explanations, markdown or ```json fences outside the object. Use this structure:
{{
    "website": "string",
    "description": "string",
    "revenue": "string",
    "laboratories": {{
        "confirmed": ["string"],
        "presumed": ["string"]
    }},
    "contacts": [
        {{
            "name": "string",
            "title": "string",
            "email": "string",
            "phone": "string"
        }}
    ]
}}"""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        thinking_budget: Optional[int] = None,
        web_search_max_uses: Optional[int] = None,
        max_continuations: Optional[int] = None,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.thinking_budget = thinking_budget or settings.thinking_budget_tokens
        self.web_search_max_uses = web_search_max_uses or settings.web_search_max_uses
        self.max_continuations = (
            settings.llm_max_continuations if max_continuations is None else max_continuations
        )
        self._client = client

    @property
    def client(self):
        """Lazy-load Anthropic client."""
        if self._client is None:
            self.ensure_configured()
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

    def build_prompt(self, company_name: str) -> str:
        return self.ENRICHMENT_PROMPT.format(company_name=company_name)

    async def enrich(self, company_name: str) -> EnrichmentResult:
        """Enrich one company; blocks a worker thread, not the event loop."""
        self.ensure_configured()
        prompt = self.build_prompt(company_name)
        logger.debug(f"Requesting enrichment for {company_name}")

        blocks = await self._complete_turn(company_name, prompt)

        sources = extract_citations(blocks)
        text = response_text(blocks)
        try:
            record = extract_record(text)
        except FormatError:
            logger.warning(f"Unparseable response for {company_name}: {text!r}")
            raise

        return EnrichmentResult(record=record, sources=sources)

    async def _complete_turn(self, company_name: str, prompt: str) -> list[Any]:
        """Return the content blocks of a finished answer.

        A turn running server tools may stop with ``pause_turn``; it is sent
        back with the partial assistant content so the model can continue.
        """
        blocks: list[Any] = []
        for attempt in range(self.max_continuations + 1):
            messages = [{"role": "user", "content": prompt}]
            if blocks:
                messages.append({"role": "assistant", "content": blocks})

            response = await asyncio.to_thread(self._call_api, messages)
            blocks = blocks + list(response.content)

            if response.stop_reason == "max_tokens":
                raise ServiceError(
                    f"AI response was truncated at the max_tokens limit ({self.max_tokens})"
                )
            if response.stop_reason != "pause_turn":
                return blocks
            logger.debug(f"Turn paused for {company_name}, continuing ({attempt + 1})")

        raise ServiceError(
            f"AI response was still paused after {self.max_continuations} continuations"
        )

    def _call_api(self, messages: list[dict]):
        """Call Claude API synchronously."""
        try:
            return self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                thinking={"type": "enabled", "budget_tokens": self.thinking_budget},
                tools=[
                    {
                        "type": "web_search_20250305",
                        "name": "web_search",
                        "max_uses": self.web_search_max_uses,
                    }
                ],
                messages=messages,
            )
        except anthropic.APIError as e:
            logger.error(f"Claude API call failed: {e}")
            raise ServiceError(str(e) or e.__class__.__name__) from e


def response_text(blocks: Iterable[Any]) -> str:
    """Join the text blocks of a response; citations split one answer into several."""
    return "".join(
        block.text for block in blocks if getattr(block, "type", None) == "text"
    )


def extract_citations(blocks: Iterable[Any]) -> list[Citation]:
    """Collect web sources from a response, unique by URL, first seen wins."""
    seen: set[str] = set()
    citations: list[Citation] = []

    for source in _iter_sources(blocks):
        uri = getattr(source, "url", None)
        title = getattr(source, "title", None)
        if not uri or not title or uri in seen:
            continue
        seen.add(uri)
        citations.append(Citation(uri=uri, title=title))

    return citations


def _iter_sources(blocks: Iterable[Any]):
    for block in blocks:
        block_type = getattr(block, "type", None)
        if block_type == "web_search_tool_result":
            # content is an error object instead of a list when the search failed
            results = getattr(block, "content", None)
            if isinstance(results, list):
                yield from results
        elif block_type == "text":
            yield from getattr(block, "citations", None) or []
