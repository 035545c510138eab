"""Company work item and enrichment record models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

from enricher.errors import InvalidTransitionError


class ItemStatus(str, Enum):
    """Lifecycle of a work item: pending -> processing -> done | error."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.DONE, ItemStatus.ERROR)


class Contact(BaseModel):
    """A person working at the company or one of its labs."""

    name: str = Field(description="Full name")
    title: str = Field(description="Job title")
    email: Optional[str] = None
    phone: Optional[str] = None


class Laboratories(BaseModel):
    """Laboratories run by the company."""

    confirmed: list[str] = Field(
        default_factory=list,
        description="Labs confirmed by official sources (website, press releases)",
    )
    presumed: list[str] = Field(
        default_factory=list,
        description="Labs inferred from line of business or job postings",
    )


class EnrichmentRecord(BaseModel):
    """Structured data found for one company."""

    website: Optional[str] = Field(default=None, description="Official website URL")
    description: Optional[str] = Field(default=None, description="What the company does")
    revenue: Optional[str] = Field(
        default=None,
        description="Latest annual revenue, free text, may be an estimate",
    )
    laboratories: Laboratories = Field(default_factory=Laboratories)
    contacts: list[Contact] = Field(default_factory=list)


class Citation(BaseModel):
    """A web source backing a search-augmented answer."""

    uri: str
    title: str


@dataclass
class EnrichmentResult:
    """Successful outcome of one enrichment call."""

    record: EnrichmentRecord
    sources: list[Citation] = field(default_factory=list)


class WorkItem(BaseModel):
    """One spreadsheet row being enriched."""

    id: int = Field(ge=0, description="Row position at import time")
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        description="Company name sent to the enricher"
    )
    status: ItemStatus = ItemStatus.PENDING
    data: Optional[EnrichmentRecord] = None
    sources: Optional[list[Citation]] = None
    error: Optional[str] = None

    def mark_processing(self) -> None:
        if self.status != ItemStatus.PENDING:
            raise InvalidTransitionError(
                f"Item {self.id} cannot start processing from '{self.status.value}'"
            )
        self.status = ItemStatus.PROCESSING

    def mark_done(self, record: EnrichmentRecord, sources: list[Citation]) -> None:
        self._check_settling(ItemStatus.DONE)
        self.status = ItemStatus.DONE
        self.data = record
        self.sources = list(sources)
        self.error = None

    def mark_error(self, message: str) -> None:
        self._check_settling(ItemStatus.ERROR)
        self.status = ItemStatus.ERROR
        self.error = message
        self.data = None
        self.sources = None

    def _check_settling(self, target: ItemStatus) -> None:
        if self.status != ItemStatus.PROCESSING:
            raise InvalidTransitionError(
                f"Item {self.id} cannot move to '{target.value}' from '{self.status.value}'"
            )
