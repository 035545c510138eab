"""Mock enricher for testing."""

import asyncio
import re
from typing import Optional, Union

from enricher.models import (
    Citation,
    Contact,
    EnrichmentRecord,
    EnrichmentResult,
    Laboratories,
)
from .base import CompanyEnricher

Outcome = Union[EnrichmentResult, Exception]


class MockEnricher(CompanyEnricher):
    """Mock enricher that returns predefined results without network access."""

    name = "mock"

    def __init__(
        self,
        responses: Optional[dict[str, Outcome]] = None,
        delay: float = 0.0,
    ):
        self._responses = responses or {}
        self.delay = delay
        self.calls: list[str] = []

    async def enrich(self, company_name: str) -> EnrichmentResult:
        """Return the canned outcome for a company, or a generated one."""
        self.calls.append(company_name)
        if self.delay:
            await asyncio.sleep(self.delay)

        outcome = self._responses.get(company_name)
        if outcome is None:
            return self._default_result(company_name)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def _default_result(self, company_name: str) -> EnrichmentResult:
        """Generate a plausible result from the company name."""
        slug = re.sub(r"[^a-z0-9]+", "", company_name.lower()) or "company"
        website = f"https://{slug}.example"
        return EnrichmentResult(
            record=EnrichmentRecord(
                website=website,
                description=f"{company_name} develops analytical instruments and lab services",
                revenue="Approximately $10 million (estimate)",
                laboratories=Laboratories(
                    confirmed=[f"{company_name} R&D Laboratory"],
                    presumed=["Quality Control Lab"],
                ),
                contacts=[
                    Contact(
                        name="Alex Morgan",
                        title="Head of Research",
                        email=f"a.morgan@{slug}.example",
                    ),
                ],
            ),
            sources=[Citation(uri=f"{website}/about", title=f"About {company_name}")],
        )
