"""
Data Transformers - Transform Layer

Pure functions that turn API payloads into store rows and decide which
enrichment columns may be written.
"""

import polars as pl
from typing import Dict, Mapping, Optional, Sequence
from ..extract.schemas import ENRICHMENT_COLUMNS, USERS_SCHEMA, FeedUser, GeoLocation
import logging

logger = logging.getLogger(__name__)

# location sub-field -> users column
LOCATION_FIELD_MAP = {
    "country_name_official": "country_name_official",
    "state_prov": "state",
    "city": "city",
    "district": "district",
    "country_code2": "country_code",
}


def users_to_rows(users: Sequence[FeedUser], ingested_at: str) -> pl.DataFrame:
    """
    Map feed users onto the users table columns

    Duplicate user_ids keep their first occurrence, which is the most
    recent one given the feed's ordering.

    Args:
        users: Users as returned by the feed
        ingested_at: ISO timestamp stamped on every row

    Returns:
        pl.DataFrame: Rows matching USERS_SCHEMA
    """
    rows = [
        {
            "user_id": user.user_id,
            "email": user.email,
            "ip_address": user.ip_address,
            "identifier_type": user.identifier_type,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
            "ingested_at": ingested_at,
        }
        for user in users
    ]
    df = pl.DataFrame(rows, schema=USERS_SCHEMA)

    deduped = df.unique(subset=["user_id"], keep="first", maintain_order=True)
    if deduped.height != df.height:
        logger.warning(
            f"Dropped {df.height - deduped.height} duplicate user_ids from upsert batch"
        )
    return deduped


def location_to_candidates(location: Optional[GeoLocation]) -> Dict[str, str]:
    """
    Map a geolocation ``location`` block onto enrichment columns

    Only sub-fields carrying a non-empty value produce a candidate.
    """
    if location is None:
        return {}

    candidates = {}
    for source_field, column in LOCATION_FIELD_MAP.items():
        value = getattr(location, source_field, None)
        if value:
            candidates[column] = value
    return candidates


def select_null_fill_updates(
    current: Mapping[str, Optional[str]], candidates: Mapping[str, str]
) -> Dict[str, str]:
    """
    Keep only candidates whose column is currently null

    Args:
        current: Stored enrichment columns for one user
        candidates: Values proposed by the geolocation lookup

    Returns:
        Dict[str, str]: Columns to write; empty if nothing qualifies
    """
    return {
        column: candidates[column]
        for column in ENRICHMENT_COLUMNS
        if candidates.get(column) and current.get(column) is None
    }

