"""
IP Geolocation API Client - Pure I/O Operations

Looks up the location of a single IP address.
"""

import logging
import time
from typing import Optional

import requests
from pydantic import ValidationError

from ..coreutils.errors import DataError
from ..coreutils.request import get_json, new_session
from .schemas import GeoLocation, GeoLookupResponse

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds


class GeoLocationClient:
    """Pure API client for the IP geolocation endpoint"""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.session = session or new_session()
        self.timeout = timeout

    def lookup(self, ip_address: str) -> Optional[GeoLocation]:
        """
        Fetch geolocation data for an IP address

        Args:
            ip_address: Public IPv4 address

        Returns:
            Optional[GeoLocation]: The location block, or None if the
            response carries no location

        Raises:
            RequestError: On any transport or HTTP failure
            DataError: On a malformed payload
        """
        start_time = time.time()
        payload = get_json(
            self.session,
            self.api_url,
            params={"apiKey": self.api_key, "ip": ip_address},
            timeout=self.timeout,
        )

        try:
            response = GeoLookupResponse.model_validate(payload)
        except ValidationError as e:
            raise DataError(f"Unexpected geolocation payload for {ip_address}: {e}") from e

        logger.debug(f"Looked up {ip_address} in {time.time() - start_time:.2f} seconds")
        return response.location
