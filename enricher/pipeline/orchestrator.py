"""Drive work items through an enricher and track their status."""

import asyncio
import logging
from typing import Callable, Optional

from enricher.enrich import CompanyEnricher
from enricher.models import ItemStatus, WorkItem

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred."

UpdateCallback = Callable[[list[WorkItem]], None]


class EnrichmentPipeline:
    """Enrich an ordered list of companies, one at a time by default.

    Each status change republishes a snapshot of the full item list through
    ``on_update`` so callers can render partial progress. A failure of one
    company is recorded on its item and never stops the run.
    """

    def __init__(
        self,
        items: list[WorkItem],
        enricher: CompanyEnricher,
        on_update: Optional[UpdateCallback] = None,
        concurrency: int = 1,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._items = list(items)
        self.enricher = enricher
        self.on_update = on_update
        self.concurrency = concurrency
        self._started = False

    @property
    def items(self) -> list[WorkItem]:
        return self.snapshot()

    @property
    def total(self) -> int:
        return len(self._items)

    @property
    def settled(self) -> int:
        return sum(1 for item in self._items if item.status.is_terminal)

    @property
    def progress(self) -> float:
        """Percentage of items that reached done or error."""
        if not self._items:
            return 0.0
        return self.settled / self.total * 100

    def snapshot(self) -> list[WorkItem]:
        return [item.model_copy(deep=True) for item in self._items]

    async def run(self) -> list[WorkItem]:
        """Process every item and return the final snapshot.

        Raises:
            ConfigurationError: The enricher has no credential; no item is touched
            RuntimeError: The pipeline was already run
        """
        if self._started:
            raise RuntimeError("Pipeline has already been run")
        self.enricher.ensure_configured()
        self._started = True

        logger.info(f"Enriching {self.total} companies with {self.enricher.name}")

        if self.concurrency == 1:
            for item in self._items:
                await self._process(item)
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def bounded(item: WorkItem):
                async with semaphore:
                    await self._process(item)

            await asyncio.gather(*(bounded(item) for item in self._items))

        failed = sum(1 for item in self._items if item.status == ItemStatus.ERROR)
        logger.info(f"Enrichment finished: {self.total - failed} done, {failed} failed")
        return self.snapshot()

    async def _process(self, item: WorkItem):
        position = item.id + 1
        logger.info(f"  Enriching {position}/{self.total}: {item.name}")
        item.mark_processing()
        self._publish()

        try:
            result = await self.enricher.enrich(item.name)
        except Exception as e:
            logger.warning(f"    Failed to enrich {item.name}: {e}")
            item.mark_error(str(e) or UNKNOWN_ERROR)
        else:
            item.mark_done(result.record, result.sources)

        self._publish()

    def _publish(self):
        if self.on_update is not None:
            self.on_update(self.snapshot())
