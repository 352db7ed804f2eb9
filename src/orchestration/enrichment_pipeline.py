"""
Enrichment Pipeline - Batch Sweep over Unenriched Users

Selects users with a non-null IP and at least one null geolocation
column, enriches them one at a time, and advances the offset until a
batch comes back short. Users are never processed concurrently.
"""

import time
from dataclasses import dataclass
from typing import Callable
import logging

from ..load.user_store import UserStore
from .geo_enricher import GeoEnricher

logger = logging.getLogger(__name__)

PER_USER_DELAY = 0.2  # seconds between geolocation calls
BETWEEN_BATCH_DELAY = 0.5  # seconds between batches


@dataclass(frozen=True)
class BatchResult:
    processed: int
    enriched: int
    has_more: bool


@dataclass(frozen=True)
class EnrichmentResult:
    total_processed: int
    total_enriched: int
    batches: int


class EnrichmentOrchestrator:
    """Drives GeoEnricher across batches of selected users"""

    def __init__(
        self,
        store: UserStore,
        enricher: GeoEnricher,
        batch_size: int = 50,
        per_user_delay: float = PER_USER_DELAY,
        between_batch_delay: float = BETWEEN_BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.enricher = enricher
        self.batch_size = batch_size
        self.per_user_delay = per_user_delay
        self.between_batch_delay = between_batch_delay
        self._sleep = sleep

    def process_batch(self, batch_size: int, offset: int = 0) -> BatchResult:
        """
        Process one batch of users needing enrichment

        Args:
            batch_size: Number of users to select
            offset: Offset for pagination

        Returns:
            BatchResult: processed/enriched counts and whether to continue
        """
        users = self.store.select_needing_enrichment(batch_size, offset)
        if not users:
            return BatchResult(processed=0, enriched=0, has_more=False)

        logger.info(f"Processing batch: {len(users)} users (offset: {offset})")

        processed = 0
        enriched = 0
        for user in users:
            processed += 1
            if self.enricher.enrich_user(user):
                enriched += 1
            self._sleep(self.per_user_delay)

        logger.info(f"Batch complete: {processed} processed, {enriched} enriched")
        return BatchResult(
            processed=processed,
            enriched=enriched,
            has_more=len(users) == batch_size,
        )

    def run(self) -> EnrichmentResult:
        """
        Sweep all users needing enrichment

        Returns:
            EnrichmentResult: Totals across all batches
        """
        logger.info("🚀 Starting user enrichment...")
        offset = 0
        batches = 0
        total_processed = 0
        total_enriched = 0

        while True:
            result = self.process_batch(self.batch_size, offset)
            batches += 1
            total_processed += result.processed
            total_enriched += result.enriched
            offset += self.batch_size

            if not result.has_more:
                break

            self._sleep(self.between_batch_delay)

        logger.info(
            f"✅ Enrichment complete: {total_processed} users processed, "
            f"{total_enriched} users enriched"
        )
        return EnrichmentResult(total_processed, total_enriched, batches)
