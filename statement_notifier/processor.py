"""Statement check: fetch, parse, deduplicate and notify."""

from typing import Any, Dict, List, Optional

from statement_notifier.config.settings import Settings
from statement_notifier.fetcher.document_fetcher import DocumentFetcher, UnauthorizedError
from statement_notifier.fetcher.session import SessionAcquirer, StaticSessionAcquirer
from statement_notifier.notifier.webhook import DiscordWebhookNotifier
from statement_notifier.pdf_processor.extractor import TextExtractor
from statement_notifier.pdf_processor.parser import BalanceNotFoundError, StatementParser
from statement_notifier.storage.state_store import (
    RedisStateStore,
    StateStore,
    StateStoreError,
    StatementEntry,
)
from statement_notifier.utils.logger import get_logger

BALANCE_PLACEHOLDER = "N/A"


class NoTransactionsError(Exception):
    """Raised when a downloaded statement yields no transactions."""
    pass


class StatementProcessor:
    """Runs one statement check end to end."""

    def __init__(
        self,
        state_store: StateStore,
        fetcher: DocumentFetcher,
        notifier: DiscordWebhookNotifier,
        session_acquirer: SessionAcquirer,
        parser: Optional[StatementParser] = None
    ) -> None:
        self.logger = get_logger(__name__)
        self.state_store = state_store
        self.fetcher = fetcher
        self.notifier = notifier
        self.session_acquirer = session_acquirer
        self.parser = parser or StatementParser()

    @classmethod
    def from_settings(cls, settings: Settings) -> "StatementProcessor":
        """Wire up the Redis, HTTP and webhook collaborators from settings."""
        return cls(
            state_store=RedisStateStore.from_url(settings.redis_url, settings.state_key_prefix),
            fetcher=DocumentFetcher(
                account_id=settings.account_id,
                endpoint_template=settings.statement_endpoint,
                timeout=settings.fetch_timeout_seconds,
                lookback_days=settings.lookback_days,
                user_agent=settings.user_agent,
            ),
            notifier=DiscordWebhookNotifier(
                settings.webhook_url,
                timeout=settings.webhook_timeout_seconds,
                max_embed_transactions=settings.max_embed_transactions,
                currency=settings.currency_code,
            ),
            session_acquirer=StaticSessionAcquirer(settings.session_cookie),
        )

    def run(self) -> Dict[str, Any]:
        """Fetch the current statement and notify about unseen transactions.

        A stored session is tried first; when it is rejected a new one is
        acquired, saved and used for a second attempt.

        Returns:
            Summary dictionary of the run.

        Raises:
            FetchError: If the statement cannot be downloaded.
            SessionAcquisitionError: If no fresh session can be obtained.
            NoTransactionsError: If the statement holds no transactions.
        """
        pdf_data = None

        try:
            session = self.state_store.get_session()
        except StateStoreError as e:
            self.logger.warning(f"Could not read session from state store: {str(e)}")
            session = None

        if session is not None:
            self.logger.info("Attempting to fetch statement with stored session")
            try:
                pdf_data = self.fetcher.fetch(session.cookie)
            except UnauthorizedError:
                self.logger.info("Stored session expired or invalid, acquiring a new one")
        else:
            self.logger.info("No stored session, acquiring a new one")

        if pdf_data is None:
            cookie = self.session_acquirer.acquire()
            try:
                self.state_store.save_session(cookie)
            except StateStoreError as e:
                self.logger.warning(f"Failed to save session: {str(e)}")
            pdf_data = self.fetcher.fetch(cookie)

        return self.process_document(pdf_data)

    def process_document(self, pdf_data: bytes) -> Dict[str, Any]:
        """Parse a statement PDF and notify about transactions not seen before.

        Args:
            pdf_data: Raw statement PDF.

        Returns:
            Summary dictionary with status, counts, balance and language.

        Raises:
            TextExtractionError: If the PDF cannot be read.
            NoTransactionsError: If no transactions are found.
            NotificationError: If the webhook delivery fails.
        """
        with TextExtractor(pdf_data) as extractor:
            text = extractor.extract_text()

        language = self.parser.detect_language(text)
        self.logger.info(f"Extracted PDF text ({len(text)} characters), detected language: {language}")

        transactions = self.parser.parse_transactions(text)
        if not transactions:
            raise NoTransactionsError("PDF has no transaction data")

        try:
            balance = self.parser.parse_balance(text).amount
            self.logger.info(f"Account balance: {balance}")
        except BalanceNotFoundError as e:
            self.logger.warning(f"Failed to parse account balance: {str(e)}")
            balance = BALANCE_PLACEHOLDER

        entries = [StatementEntry.from_transaction(tx) for tx in transactions]
        new_entries = self._filter_new(entries)

        result = {
            "status": "no_new_statements",
            "language": language,
            "total_transactions": len(transactions),
            "new_transactions": len(new_entries),
            "balance": balance,
        }

        if not new_entries:
            self.logger.info("No new statements to notify, all statements have already been notified")
            return result

        self.logger.info(f"Found {len(new_entries)} new statements out of {len(transactions)} total")
        self.notifier.send(new_entries, len(transactions), balance)

        try:
            self.state_store.mark_notified([entry.key for entry in new_entries])
            self.logger.info(f"Marked {len(new_entries)} statements as notified")
        except StateStoreError as e:
            self.logger.warning(f"Failed to mark statements as notified: {str(e)}")

        result["status"] = "notified"
        return result

    def _filter_new(self, entries: List[StatementEntry]) -> List[StatementEntry]:
        new_entries = []
        for entry in entries:
            try:
                notified = self.state_store.is_notified(entry.key)
            except StateStoreError as e:
                self.logger.warning(f"Failed to check if statement is notified: {str(e)}")
                notified = False
            if not notified:
                new_entries.append(entry)
        return new_entries
