"""Enrichment pipeline orchestration."""

from .orchestrator import EnrichmentPipeline

__all__ = ["EnrichmentPipeline"]
