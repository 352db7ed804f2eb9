"""
Pipeline Errors

Exception hierarchy shared by the sync and enrichment services.
Request errors are classified by how far the call got before failing,
which decides whether it consumed a rate-limit slot.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors"""


class ConfigError(PipelineError):
    """Missing or invalid configuration"""


class RequestError(PipelineError):
    """An outbound HTTP call failed"""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class LocalRequestError(RequestError):
    """The request could not be built or sent; it never left the process"""


class NetworkError(RequestError):
    """The request was sent but no response was received"""


class ResponseError(RequestError):
    """The remote returned a non-success HTTP status"""

    def __init__(self, message: str, status_code: int, url: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message, url=url)


class ApplicationError(RequestError):
    """The transport succeeded but the payload reports a failed status"""

    def __init__(self, message: str, status: object = None, url: Optional[str] = None):
        self.status = status
        super().__init__(message, url=url)


class DataError(PipelineError):
    """Expected data is absent or malformed"""
