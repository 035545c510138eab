"""Data models for the Company Data Enricher."""

from .company import (
    Citation,
    Contact,
    EnrichmentRecord,
    EnrichmentResult,
    ItemStatus,
    Laboratories,
    WorkItem,
)

__all__ = [
    "Citation",
    "Contact",
    "EnrichmentRecord",
    "EnrichmentResult",
    "ItemStatus",
    "Laboratories",
    "WorkItem",
]
