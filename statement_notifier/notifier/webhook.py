"""Discord webhook notification for newly seen statement lines."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from statement_notifier.storage.state_store import StatementEntry
from statement_notifier.utils.logger import get_logger
from statement_notifier.utils.validators import validate_webhook_url

EMBED_TITLE = "✅ N26 PDF Movements"
EMBED_COLOR = 0x00FF00


class NotificationError(Exception):
    """Raised when the webhook cannot be delivered."""
    pass


class DiscordWebhookNotifier:
    """Posts new statement lines and the account balance to a Discord webhook."""

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: int = 10,
        max_embed_transactions: int = 10,
        currency: str = "EUR",
        session: Optional[requests.Session] = None
    ) -> None:
        """Initialize the notifier.

        Args:
            webhook_url: Discord webhook URL.
            timeout: Request timeout in seconds.
            max_embed_transactions: How many lines the embed lists before
                summarizing the rest.
            currency: Currency code appended to amounts.
            session: Optional requests session to reuse.

        Raises:
            ValidationError: If the webhook URL is missing or invalid.
        """
        validate_webhook_url(webhook_url)
        self.logger = get_logger(__name__)
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.max_embed_transactions = max_embed_transactions
        self.currency = currency
        self.http = session or requests.Session()

    def format_line(self, statement: StatementEntry) -> str:
        return f"**{statement.date}** | {statement.partner} | `{statement.amount} {self.currency}`"

    def build_payload(
        self,
        statements: Sequence[StatementEntry],
        total_count: int,
        balance: str,
        timestamp: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Build the webhook JSON body.

        Args:
            statements: New statement lines, in the order to display.
            total_count: Number of transactions found in the statement.
            balance: Account balance, or a placeholder such as "N/A".
            timestamp: Embed timestamp (defaults to now, UTC).

        Returns:
            Discord webhook payload.
        """
        shown = statements[:self.max_embed_transactions]
        transactions_text = "".join(f"{self.format_line(stmt)}\n" for stmt in shown)
        if len(statements) > len(shown):
            transactions_text += f"\n_... and {len(statements) - len(shown)} more new transactions_"

        fields: List[Dict[str, Any]] = [
            {"name": "New Transactions", "value": str(len(statements)), "inline": True},
            {"name": "Total Transactions", "value": str(total_count), "inline": True},
            {"name": "Account Balance", "value": f"{balance} {self.currency}", "inline": True},
            {"name": "Transactions", "value": transactions_text},
        ]

        content = "".join(f"{self.format_line(stmt)}\n\n" for stmt in statements).strip()

        return {
            "content": content,
            "embeds": [
                {
                    "title": EMBED_TITLE,
                    "description": "",
                    "color": EMBED_COLOR,
                    "fields": fields,
                    "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
                }
            ],
        }

    def send(self, statements: Sequence[StatementEntry], total_count: int, balance: str) -> None:
        """Post the notification.

        Raises:
            NotificationError: If the request fails or returns a non-2xx status.
        """
        payload = self.build_payload(statements, total_count, balance)

        try:
            response = self.http.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Failed to send Discord webhook: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"Discord webhook returned status {response.status_code}: {response.text}"
            )

        self.logger.info(f"Discord notification sent for {len(statements)} statements")
