"""Company enrichment services."""

from .base import CompanyEnricher
from .claude import ClaudeEnricher, extract_citations
from .interpreter import extract_record
from .mock import MockEnricher

__all__ = [
    "CompanyEnricher",
    "ClaudeEnricher",
    "MockEnricher",
    "extract_citations",
    "extract_record",
]
