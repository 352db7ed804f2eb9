"""
Extract Layer Schemas

Raw data schemas for data coming from the external APIs.
These represent the structure of data as it comes from the user feed
and the IP geolocation service.
"""

import logging
from typing import Any, List, Optional

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# =============================================================================
# User feed
# =============================================================================


class FeedUser(BaseModel):
    """One user entry from the paginated user feed"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., description="Unique user identifier")
    email: Optional[str] = Field(None, description="User email")
    ip_address: Optional[str] = Field(
        None, alias="ipAddress", description="Last known IP address"
    )
    identifier_type: Optional[str] = Field(
        None, alias="identifierType", description="How the user identified"
    )
    created_at: Optional[str] = Field(
        None, alias="createdAt", description="ISO 8601 creation timestamp"
    )
    updated_at: Optional[str] = Field(
        None, alias="updatedAt", description="ISO 8601 update timestamp"
    )

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v):
        """Feed ids may arrive as numbers; the checkpoint compares strings"""
        if v is None:
            raise ValueError("user_id is required")
        return str(v)

    @field_validator("ip_address", mode="before")
    @classmethod
    def blank_ip_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FeedPagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    has_next_page: bool = Field(False, alias="hasNextPage")

    @field_validator("has_next_page", mode="before")
    @classmethod
    def none_to_false(cls, v):
        return bool(v) if v is not None else False


class FeedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    users: Optional[List[FeedUser]] = Field(default_factory=list)
    pagination: Optional[FeedPagination] = None

    @field_validator("users", mode="before")
    @classmethod
    def drop_users_without_id(cls, v):
        """An entry with no user_id cannot be stored or used as a checkpoint"""
        if not isinstance(v, list):
            return v
        kept = [u for u in v if not (isinstance(u, dict) and u.get("user_id") is None)]
        if len(kept) < len(v):
            logger.warning(f"⚠️ Dropped {len(v) - len(kept)} feed entries without user_id")
        return kept


class FeedResponse(BaseModel):
    """Envelope returned by the user feed: {status, message, data}"""

    model_config = ConfigDict(extra="ignore")

    status: Any = None
    message: Optional[str] = None
    data: Optional[FeedData] = None


class FeedPage(BaseModel):
    """One fetched page of users"""

    users: List[FeedUser] = Field(default_factory=list)
    has_next_page: bool = False

    @property
    def first_user_id(self) -> Optional[str]:
        return self.users[0].user_id if self.users else None


# =============================================================================
# IP geolocation
# =============================================================================


class GeoLocation(BaseModel):
    """The ``location`` object of an IP geolocation response"""

    model_config = ConfigDict(extra="ignore")

    country_name_official: Optional[str] = None
    state_prov: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    country_code2: Optional[str] = None


class GeoLookupResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    location: Optional[GeoLocation] = None


# =============================================================================
# Store rows
# =============================================================================

ENRICHMENT_COLUMNS = (
    "country_name_official",
    "state",
    "city",
    "district",
    "country_code",
)

USERS_SCHEMA = pl.Schema(
    [
        ("user_id", pl.String()),
        ("email", pl.String()),
        ("ip_address", pl.String()),
        ("identifier_type", pl.String()),
        ("created_at", pl.String()),
        ("updated_at", pl.String()),
        ("ingested_at", pl.String()),
    ]
)
