from typing import Optional


class CacheProbeError(Exception):
    """Base class for every error raised by cacheprobe."""


class InvalidConfiguration(CacheProbeError):
    """Raised before sampling starts when a configured value is unusable."""


class TransportFailure(CacheProbeError):
    """
    A sample could not be fetched: the origin answered with a non-2xx status
    or the request never completed.
    """

    def __init__(self, message: str, status: Optional[int] = None, reason: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.url = url


class PersistenceFailure(CacheProbeError):
    """Writing a sample to the CSV log failed."""
