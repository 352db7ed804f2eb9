import time
from urllib3.util.retry import Retry
import requests
from requests.adapters import HTTPAdapter
from typing import Any, Dict, Optional
import logging

from .errors import DataError, LocalRequestError, NetworkError, ResponseError

logger = logging.getLogger(__name__)

# Adapter-level retries would put extra calls on the wire that the
# rate limiter never sees, so budgeted clients run with none.
NO_RETRY_STRATEGY = Retry(total=0, read=False)

# Raised by requests before anything is sent
LOCAL_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
)


def new_session(retry_strategy: Retry = NO_RETRY_STRATEGY) -> requests.Session:
    """Create a new requests session with retry strategy"""
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    # Set default headers
    session.headers.update(
        {"User-Agent": "user-feed-sync/1.0", "Accept": "application/json"}
    )

    return session


def get_json(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = 30,
) -> Any:
    """Perform a single GET and return the parsed JSON body.

    Args:
        session: HTTP session to use
        url: URL to fetch
        params: Optional query parameters
        timeout: Request timeout in seconds

    Returns:
        Parsed JSON response

    Raises:
        LocalRequestError: The request could not be built or sent
        NetworkError: No response was received
        ResponseError: The response status was not a success
        DataError: The response body was not valid JSON
    """
    start = time.time()
    try:
        response = session.get(url, params=params, timeout=timeout)
    except LOCAL_REQUEST_ERRORS as e:
        raise LocalRequestError(f"Could not send request to {url}: {e}", url=url) from e
    except requests.RequestException as e:
        raise NetworkError(f"No response from {url}: {e}", url=url) from e

    if not response.ok:
        raise ResponseError(
            f"API error: {response.status_code} - {response.reason}",
            status_code=response.status_code,
            url=url,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise DataError(f"Invalid JSON response from {url}: {e}") from e

    logger.debug(f"Fetched from {url}: {time.time() - start:.2f} seconds")
    return payload
