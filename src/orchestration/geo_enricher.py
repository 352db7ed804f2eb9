"""
Geo Enricher

Per-user geolocation lookup followed by a null-filling column update.

Writes are read-then-write against the store: the current enrichment
columns are re-read right before the update and only null columns are
filled. This is only safe with a single sequential writer.
"""

import logging
from typing import Any, Mapping, Optional

import duckdb

from ..coreutils.errors import PipelineError
from ..extract.geolocation_api import GeoLocationClient
from ..extract.schemas import GeoLocation
from ..load.user_store import UserStore
from ..transformation.transformers import location_to_candidates, select_null_fill_updates
from ..transformation.validators import is_private_ip

logger = logging.getLogger(__name__)


class GeoEnricher:
    """Fills null geolocation columns for one user at a time"""

    def __init__(self, client: GeoLocationClient, store: UserStore):
        self.client = client
        self.store = store

    def fetch_location(self, ip_address: Optional[str]) -> Optional[GeoLocation]:
        """
        Look up an IP address, swallowing lookup failures

        Returns:
            Optional[GeoLocation]: None for private/invalid IPs and on any
            lookup failure
        """
        if is_private_ip(ip_address):
            logger.info(f"Skipping private/invalid IP: {ip_address}")
            return None

        try:
            return self.client.lookup(ip_address)
        except PipelineError as e:
            logger.error(f"Geolocation lookup failed for IP {ip_address}: {e}")
            return None

    def apply_location(self, user_id: str, location: Optional[GeoLocation]) -> bool:
        """
        Write location values into the user's null enrichment columns

        Returns:
            bool: True if at least one column was written
        """
        candidates = location_to_candidates(location)
        if not candidates:
            return False

        current = self.store.get_enrichment(user_id)
        if current is None:
            logger.warning(f"User {user_id} disappeared before enrichment")
            return False

        updates = select_null_fill_updates(current, candidates)
        if not updates:
            return False

        self.store.update_enrichment(user_id, updates)
        logger.debug(f"Enriched user {user_id}: {sorted(updates)}")
        return True

    def enrich_user(self, user: Mapping[str, Any]) -> bool:
        """
        Enrich one selected user

        Args:
            user: Row from UserStore.select_needing_enrichment

        Returns:
            bool: True if the user's row was updated
        """
        user_id = user["user_id"]
        location = self.fetch_location(user.get("ip_address"))
        if location is None:
            return False

        try:
            return self.apply_location(user_id, location)
        except (PipelineError, duckdb.Error) as e:
            logger.error(f"Error enriching user {user_id}: {e}")
            return False
