"""Persistent state: session cookie and already-notified statement keys."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Set

import redis

from statement_notifier.pdf_processor.parser import TransactionRecord
from statement_notifier.utils.logger import get_logger

TIMESTAMP_PREFIX = "TIMESTAMP="
COOKIE_JUNK_CHARS = " \t\n\r\u0000\u200b\ufeff"


class StateStoreError(Exception):
    """Raised when the state backend cannot be read or written."""
    pass


@dataclass(frozen=True)
class Session:
    """Stored authenticated-session cookie."""

    cookie: str
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatementEntry:
    """A transaction reduced to what is notified and deduplicated."""

    date: str
    partner: str
    amount: str
    key: str

    @classmethod
    def from_transaction(cls, transaction: TransactionRecord) -> "StatementEntry":
        return cls(
            date=transaction.booking_date,
            partner=transaction.counterparty_name,
            amount=transaction.amount,
            key=generate_statement_key(
                transaction.booking_date,
                transaction.counterparty_name,
                transaction.amount,
            ),
        )


def generate_statement_key(date: str, partner: str, amount: str) -> str:
    """Build the deduplication key for a statement line."""
    return f"{date}|{partner}|{amount}"


def sanitize_cookie(cookie: str) -> str:
    """Strip stray whitespace/BOM characters and a leading TIMESTAMP entry.

    Args:
        cookie: Raw cookie header.

    Returns:
        Cookie header ready to be stored.
    """
    cookie = cookie.strip().strip(COOKIE_JUNK_CHARS)
    if cookie.startswith(TIMESTAMP_PREFIX):
        parts = cookie.split("; ", 1)
        if len(parts) == 2:
            cookie = parts[1]
    return cookie


class StateStore(ABC):
    """Interface of the state backend."""

    @abstractmethod
    def is_notified(self, key: str) -> bool:
        """Return True if the statement key was already notified."""

    @abstractmethod
    def mark_notified(self, keys: Iterable[str]) -> None:
        """Record statement keys as notified."""

    @abstractmethod
    def get_session(self) -> Optional[Session]:
        """Return the most recently saved session, if any."""

    @abstractmethod
    def save_session(self, cookie: str) -> None:
        """Persist a session cookie."""


class InMemoryStateStore(StateStore):
    """Process-local state store, used for dry runs and tests."""

    def __init__(self) -> None:
        self.notified: Set[str] = set()
        self.session: Optional[Session] = None

    def is_notified(self, key: str) -> bool:
        return key in self.notified

    def mark_notified(self, keys: Iterable[str]) -> None:
        self.notified.update(keys)

    def get_session(self) -> Optional[Session]:
        return self.session

    def save_session(self, cookie: str) -> None:
        self.session = Session(cookie=sanitize_cookie(cookie), updated_at=datetime.now(timezone.utc))


class RedisStateStore(StateStore):
    """State store backed by Redis.

    Notified keys are members of one set; the session is a hash holding the
    cookie and its UTC save time.
    """

    def __init__(self, client: redis.Redis, prefix: str = "statement_notifier") -> None:
        """Initialize the store.

        Args:
            client: Redis client (``decode_responses=True`` expected).
            prefix: Namespace for all keys written by the store.
        """
        self.logger = get_logger(__name__)
        self.client = client
        self.notified_key = f"{prefix}:notified"
        self.session_key = f"{prefix}:session"

    @classmethod
    def from_url(cls, url: str, prefix: str = "statement_notifier") -> "RedisStateStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, prefix)

    def is_notified(self, key: str) -> bool:
        try:
            return bool(self.client.sismember(self.notified_key, key))
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to check if statement is notified: {str(e)}") from e

    def mark_notified(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            self.client.sadd(self.notified_key, *keys)
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to mark statements as notified: {str(e)}") from e
        self.logger.debug(f"Marked {len(keys)} statement keys as notified")

    def get_session(self) -> Optional[Session]:
        try:
            data: Dict[str, str] = self.client.hgetall(self.session_key)
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to get session: {str(e)}") from e

        if not data or not data.get("cookie"):
            return None

        updated_at = None
        if data.get("updated_at"):
            try:
                updated_at = datetime.fromisoformat(data["updated_at"])
            except ValueError:
                self.logger.warning(f"Ignoring invalid session timestamp: {data['updated_at']!r}")

        self.logger.info(f"Session retrieved from Redis (updated at: {data.get('updated_at', 'unknown')})")
        return Session(cookie=data["cookie"], updated_at=updated_at)

    def save_session(self, cookie: str) -> None:
        mapping = {
            "cookie": sanitize_cookie(cookie),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.hset(self.session_key, mapping=mapping)
        except redis.RedisError as e:
            raise StateStoreError(f"Failed to save session: {str(e)}") from e
        self.logger.info("Session saved to Redis")
