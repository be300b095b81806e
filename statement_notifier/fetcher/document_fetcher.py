"""HTTP retrieval of the statement PDF."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from statement_notifier.config.settings import DEFAULT_STATEMENT_ENDPOINT, USER_AGENT
from statement_notifier.utils.logger import get_logger
from statement_notifier.utils.validators import ValidationError, validate_pdf_bytes


class FetchError(Exception):
    """Raised when the statement PDF cannot be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(FetchError):
    """Raised when the session cookie is expired or invalid."""
    pass


def _to_unix_millis(moment: datetime) -> int:
    return int(moment.timestamp()) * 1000


class DocumentFetcher:
    """Downloads the account-activity PDF for a recent period."""

    def __init__(
        self,
        account_id: str,
        endpoint_template: str = DEFAULT_STATEMENT_ENDPOINT,
        timeout: int = 30,
        lookback_days: int = 30,
        user_agent: str = USER_AGENT,
        session: Optional[requests.Session] = None
    ) -> None:
        """Initialize the fetcher.

        Args:
            account_id: Bank account identifier substituted for ``$ACCOUNT_ID``.
            endpoint_template: URL with ``$ACCOUNT_ID``, ``$START_UNIX`` and
                ``$END_UNIX`` placeholders.
            timeout: Request timeout in seconds.
            lookback_days: Length of the requested period, ending now.
            user_agent: User-Agent header sent with the request.
            session: Optional requests session to reuse.
        """
        self.logger = get_logger(__name__)
        self.account_id = account_id
        self.endpoint_template = endpoint_template
        self.timeout = timeout
        self.lookback_days = lookback_days
        self.user_agent = user_agent
        self.http = session or requests.Session()

    def build_url(self, now: Optional[datetime] = None) -> str:
        """Fill the endpoint template for the period ending at ``now``."""
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=self.lookback_days)

        url = self.endpoint_template.replace("$END_UNIX", str(_to_unix_millis(end)), 1)
        url = url.replace("$START_UNIX", str(_to_unix_millis(start)), 1)
        return url.replace("$ACCOUNT_ID", self.account_id, 1)

    def fetch(self, cookie: str, now: Optional[datetime] = None) -> bytes:
        """Download the statement PDF.

        Args:
            cookie: Cookie header of an authenticated session.
            now: End of the requested period (defaults to the current time).

        Returns:
            Raw PDF bytes.

        Raises:
            UnauthorizedError: If the session is rejected.
            FetchError: On transport errors, error responses or a non-PDF body.
        """
        url = self.build_url(now)
        headers = {"Cookie": cookie, "User-Agent": self.user_agent}

        try:
            response = self.http.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Failed to make request: {str(e)}") from e

        body = response.content or b""

        if response.status_code == 401:
            raise UnauthorizedError(f"401 unauthorized: {self._body_preview(body)}", 401)

        # The API sometimes answers 200 OK with a JSON error body
        error = self._parse_json_error(body)
        if error is not None:
            status = error.get("status")
            if status == 401 or error.get("error") == "invalid_token":
                raise UnauthorizedError(f"401 unauthorized: {self._body_preview(body)}", 401)
            if isinstance(status, int) and status >= 400:
                raise FetchError(
                    f"Request failed with status {status}: {self._body_preview(body)}", status
                )

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Request failed with status {response.status_code}: {self._body_preview(body)}",
                response.status_code,
            )

        try:
            validate_pdf_bytes(body)
        except ValidationError as e:
            raise FetchError(f"Unexpected response body: {str(e)}", response.status_code) from e

        self.logger.info(f"Successfully retrieved PDF data ({len(body)} bytes)")
        return body

    @staticmethod
    def _parse_json_error(body: bytes) -> Optional[dict]:
        stripped = body.lstrip()
        if not stripped or stripped[:1] not in (b"{", b"["):
            return None
        try:
            payload: Any = json.loads(stripped)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    @staticmethod
    def _body_preview(body: bytes, limit: int = 500) -> str:
        return body[:limit].decode("utf-8", errors="replace")
