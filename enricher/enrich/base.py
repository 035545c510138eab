"""Abstract base class for company enrichers."""

from abc import ABC, abstractmethod

from enricher.models import EnrichmentResult


class CompanyEnricher(ABC):
    """Abstract interface for services that enrich a company name."""

    name: str = "base"

    @abstractmethod
    async def enrich(self, company_name: str) -> EnrichmentResult:
        """
        Look up structured data for a single company.

        Args:
            company_name: Trimmed, non-empty company name

        Returns:
            The enrichment record and the citations backing it

        Raises:
            ConfigurationError: The enricher is missing its credential
            EnrichmentError: The lookup failed for this company
        """
        pass

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the enricher cannot make any call."""
