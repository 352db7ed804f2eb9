"""
Sync Pipeline - Feed to Store Reconciliation

Two modes, selected by checkpoint presence:
1. Full sync (no checkpoint):
   - Fetch every page, upsert everything in one batch
   - Re-fetch page 1 and store its first user_id as the checkpoint
2. Incremental sync (checkpoint present):
   - Walk pages from 1 until the checkpoint user_id shows up
   - Upsert only what precedes it
   - Store the head of page 1 as the new checkpoint

The feed is assumed to return users most-recent-first. The checkpoint is
only written after a run completes; any failure leaves it untouched.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

from ..coreutils.errors import DataError
from ..coreutils.time import utc_now_iso
from ..extract.feed_api import UserFeedClient
from ..extract.schemas import FeedPage, FeedUser
from ..load.user_store import UserStore
from ..transformation.transformers import users_to_rows
from ..transformation.validators import is_descending_recency

logger = logging.getLogger(__name__)

FULL_SYNC = "full"
INCREMENTAL_SYNC = "incremental"


@dataclass(frozen=True)
class SyncResult:
    mode: str
    pages_fetched: int
    submitted: int
    inserted: int
    checkpoint: Optional[str]


class SyncOrchestrator:
    """Orchestrates one sync run between the user feed and the store"""

    def __init__(self, feed: UserFeedClient, store: UserStore):
        self.feed = feed
        self.store = store
        self._pages_fetched = 0

    def run(self) -> SyncResult:
        """
        Run a full or incremental sync depending on the stored checkpoint

        Returns:
            SyncResult: Counts and the checkpoint written by this run

        Raises:
            RequestError: A page fetch failed
            DataError: The new checkpoint could not be determined
        """
        logger.info("🚀 Starting sync...")
        self._pages_fetched = 0
        checkpoint = self.store.get_checkpoint()

        if checkpoint is None:
            logger.info("🆕 No checkpoint found. Performing initial full sync...")
            return self.run_full_sync()

        logger.info(f"📈 Checkpoint found: {checkpoint}. Performing incremental sync...")
        return self.run_incremental_sync(checkpoint)

    def _fetch_page(self, page: int) -> FeedPage:
        logger.info(f"Fetching page {page}...")
        result = self.feed.fetch_page(page)
        self._pages_fetched += 1
        if not is_descending_recency(result.users):
            logger.warning(
                f"⚠️ Page {page} is not ordered most-recent-first; "
                "incremental sync assumes it is"
            )
        return result

    def _upsert(self, users: List[FeedUser]) -> Tuple[int, int]:
        """Upsert users and return (submitted, inserted)"""
        if not users:
            return 0, 0
        rows = users_to_rows(users, ingested_at=utc_now_iso())
        inserted = self.store.upsert_users(rows)
        return rows.height, inserted

    def run_full_sync(self) -> SyncResult:
        """Fetch all pages, upsert them, then checkpoint the head of page 1"""
        all_users: List[FeedUser] = []
        page = 1

        logger.info("Starting full sync - fetching all pages...")
        while True:
            result = self._fetch_page(page)
            if not result.users:
                logger.info(f"Page {page} is empty, stopping.")
                break

            all_users.extend(result.users)
            logger.info(f"Fetched {len(result.users)} users from page {page}")

            if not result.has_next_page:
                break
            page += 1

        logger.info(f"Full scan complete. Total users fetched: {len(all_users)}")

        if not all_users:
            logger.info("No users found in API. Skipping sync.")
            return SyncResult(FULL_SYNC, self._pages_fetched, 0, 0, None)

        submitted, inserted = self._upsert(all_users)
        logger.info(f"Upserted {submitted} users into store ({inserted} new)")

        # Page 1 may have moved while the scan ran
        head = self._fetch_page(1).first_user_id
        if head is None:
            raise DataError("Page 1 is empty - cannot set checkpoint")

        self.store.update_checkpoint(head)
        logger.info("✅ Initial sync complete. Checkpoint set to latest user.")
        return SyncResult(FULL_SYNC, self._pages_fetched, submitted, inserted, head)

    def run_incremental_sync(self, checkpoint: str) -> SyncResult:
        """
        Walk pages from 1 until the checkpoint user_id is found

        Args:
            checkpoint: user_id at the head of page 1 after the last run

        Returns:
            SyncResult: Counts and the new checkpoint
        """
        page = 1
        head: Optional[str] = None
        total_submitted = 0
        total_inserted = 0

        logger.info(f"Starting incremental sync. Looking for checkpoint: {checkpoint}")

        while True:
            result = self._fetch_page(page)
            users = result.users

            if not users:
                logger.info(f"Page {page} is empty, stopping.")
                break

            if page == 1:
                head = users[0].user_id

            position = next(
                (i for i, user in enumerate(users) if user.user_id == checkpoint),
                None,
            )

            if position is not None:
                submitted, inserted = self._upsert(users[:position])
                total_submitted += submitted
                total_inserted += inserted
                logger.info(
                    f"Found checkpoint on page {page} at position {position}; "
                    f"upserted {submitted} new users before it"
                )
                break

            submitted, inserted = self._upsert(users)
            total_submitted += submitted
            total_inserted += inserted
            logger.info(f"Upserted {submitted} users from page {page}")

            if not result.has_next_page:
                break
            page += 1

        logger.info(
            f"Incremental scan complete. Upserted {total_submitted} users "
            f"({total_inserted} new)"
        )

        if head is None:
            # Page 1 was never observed during this run
            head = self._fetch_page(1).first_user_id

        if head is None:
            raise DataError("Could not determine checkpoint - page 1 is empty")

        self.store.update_checkpoint(head)
        logger.info("✅ Incremental sync complete.")
        return SyncResult(
            INCREMENTAL_SYNC, self._pages_fetched, total_submitted, total_inserted, head
        )


def run_sync(feed: UserFeedClient, store: UserStore) -> SyncResult:
    """Convenience function to run one sync pass"""
    return SyncOrchestrator(feed, store).run()
