"""
User Feed API Client - Pure I/O Operations

Fetches single pages of the upstream user feed through a rate limiter.
Returns validated page objects; no sync logic lives here.
"""

import logging
import time
from typing import Optional

import requests
from pydantic import ValidationError

from ..coreutils.errors import ApplicationError, DataError, LocalRequestError
from ..coreutils.request import get_json, new_session
from .rate_limiter import RateLimiter
from .schemas import FeedPage, FeedResponse

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
SUCCESS_STATUS = 1


class UserFeedClient:
    """Paginated accessor for the upstream user feed"""

    def __init__(
        self,
        base_url: str,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url
        self.rate_limiter = rate_limiter or RateLimiter()
        self.session = session or new_session()
        self.timeout = timeout

    def fetch_page(self, page: int) -> FeedPage:
        """
        Fetch one page of users

        Args:
            page: 1-based page number; page 1 is requested without a page param

        Returns:
            FeedPage: Users on the page and whether more pages follow

        Raises:
            LocalRequestError: Request could not be sent (no slot consumed)
            NetworkError: No response received
            ResponseError: Non-success HTTP status
            ApplicationError: Feed reported status != 1
            DataError: Body is not a valid feed envelope
        """
        params = {"page": page} if page > 1 else None

        admitted_at = self.rate_limiter.acquire()
        start_time = time.time()
        try:
            payload = get_json(self.session, self.base_url, params=params, timeout=self.timeout)
        except LocalRequestError:
            self.rate_limiter.refund(admitted_at)
            raise

        # status != 1 is an application failure whatever the shape of data
        if isinstance(payload, dict) and payload.get("status") != SUCCESS_STATUS:
            raise ApplicationError(
                f"API returned status {payload.get('status')}: {payload.get('message')}",
                status=payload.get("status"),
                url=self.base_url,
            )

        try:
            envelope = FeedResponse.model_validate(payload)
        except ValidationError as e:
            raise DataError(f"Unexpected feed payload on page {page}: {e}") from e

        data = envelope.data
        users = (data.users or []) if data else []
        has_next_page = bool(data and data.pagination and data.pagination.has_next_page)

        elapsed = time.time() - start_time
        logger.debug(f"Fetched page {page} ({len(users)} users) in {elapsed:.2f} seconds")
        return FeedPage(users=users, has_next_page=has_next_page)
