"""Session acquisition for the statement endpoint.

Logging in (browser automation, 2FA confirmation) happens outside this
package. An acquirer only has to hand back a cookie header that the
document fetcher can send.
"""

from abc import ABC, abstractmethod
from typing import Optional


class SessionAcquisitionError(Exception):
    """Raised when no authenticated session can be obtained."""
    pass


class SessionAcquirer(ABC):
    """Source of fresh authenticated-session cookies."""

    @abstractmethod
    def acquire(self) -> str:
        """Return a cookie header for a freshly authenticated session."""


class StaticSessionAcquirer(SessionAcquirer):
    """Returns a cookie supplied through configuration (``SESSION_COOKIE``)."""

    def __init__(self, cookie: Optional[str]) -> None:
        self.cookie = cookie

    def acquire(self) -> str:
        if not self.cookie or not self.cookie.strip():
            raise SessionAcquisitionError(
                "No session cookie configured; log in and set SESSION_COOKIE"
            )
        return self.cookie.strip()
