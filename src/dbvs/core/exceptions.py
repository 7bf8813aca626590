"""DBVS exception hierarchy"""

from typing import Optional


class DBVSError(Exception):
    """Base class for all DBVS errors"""


class StorageError(DBVSError):
    """The vulnerability store could not complete an operation"""


class MatchError(DBVSError):
    """Both the fast and the fallback match paths failed"""

    def __init__(self, message: str, fast_error: Optional[BaseException] = None,
                 fallback_error: Optional[BaseException] = None):
        super().__init__(message)
        self.fast_error = fast_error
        self.fallback_error = fallback_error


class ScanError(DBVSError):
    """The scan target could not report its version"""


class FeedError(DBVSError):
    """Upstream feed failure"""


class TransientFeedError(FeedError):
    """Network or server-side failure worth retrying"""


class RateLimitedError(TransientFeedError):
    """Upstream answered 429 or 5xx"""


class MalformedPayloadError(FeedError):
    """Upstream payload did not have the expected shape"""
