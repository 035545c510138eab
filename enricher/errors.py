"""Exceptions raised by the enricher."""


class EnricherError(Exception):
    """Base class for all enricher errors."""


class ConfigurationError(EnricherError):
    """A required setting (the service credential) is missing."""


class SpreadsheetImportError(EnricherError):
    """The uploaded spreadsheet holds no usable company names."""


class EnrichmentError(EnricherError):
    """Enrichment of a single company failed."""


class ServiceError(EnrichmentError):
    """The AI service could not be reached or returned an error."""


class FormatError(EnrichmentError):
    """The AI service answered but the payload is not a valid record."""


class InvalidTransitionError(EnricherError):
    """A work item was moved to a status its current status does not allow."""
