"""Statement parser: turns extracted PDF text into transactions and a balance.

The statement text has no reliable layout, so transactions are recovered
heuristically. Each line holding nothing but a comma-decimal amount starts a
transaction block; the booking/value dates and the counterparty are then
looked up in a short window of lines *above* that amount line. The window
sizes, marker phrases and skip lists come from :class:`ParsingRules`.
"""

import re
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

from statement_notifier.pdf_processor.rules import DEFAULT_RULES, ParsingRules
from statement_notifier.utils.logger import get_logger


class BalanceNotFoundError(Exception):
    """Raised when no account balance can be located in the statement text."""
    pass


@dataclass(frozen=True)
class TransactionRecord:
    """A single transaction recovered from a statement."""

    booking_date: str
    value_date: str
    counterparty_name: str
    amount: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class AccountBalance:
    """Closing balance of a statement, without currency symbol."""

    amount: str


def _encoded_length(line: str) -> int:
    """Length of a line in UTF-8 bytes, the unit counterparty lengths are compared in."""
    return len(line.encode("utf-8"))


class StatementParser:
    """Extracts transactions and the account balance from statement text."""

    def __init__(self, rules: ParsingRules = DEFAULT_RULES) -> None:
        """Initialize the parser.

        Args:
            rules: Rule table with patterns, marker phrases and window sizes.
        """
        self.logger = get_logger(__name__)
        self.rules = rules

        self._date_re = re.compile(rules.date_pattern, re.ASCII)
        self._amount_re = re.compile(rules.amount_pattern, re.ASCII)
        self._transaction_amount_re = re.compile(rules.transaction_amount_pattern, re.ASCII)
        self._page_number_re = re.compile(rules.page_number_pattern, re.ASCII)

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """Split text on newlines and strip every line."""
        return [line.strip() for line in text.split("\n")]

    def _strip_currency(self, amount: str) -> str:
        amount = amount.strip()
        if self.rules.currency_symbol and amount.endswith(self.rules.currency_symbol):
            amount = amount[:-len(self.rules.currency_symbol)]
        return amount.strip()

    def detect_language(self, text: str) -> str:
        """Guess the statement language from marker phrases.

        Returns:
            Language code of the first marker found, else the default language.
        """
        for language, phrase in self.rules.language_markers:
            if phrase in text:
                return language
        return self.rules.default_language

    def parse_balance(self, text: str) -> AccountBalance:
        """Extract the closing account balance.

        The balance sits on the line right after a balance marker such as
        "Tu nuevo saldo". That line may carry other numbers first, so the
        last amount on it is taken.

        Args:
            text: Extracted statement text.

        Returns:
            AccountBalance of the first marker whose next line holds an amount.

        Raises:
            BalanceNotFoundError: If no marker is followed by an amount.
        """
        lines = self.split_lines(text)
        markers = [marker.lower() for marker in self.rules.balance_markers]

        for index, line in enumerate(lines):
            lowered = line.lower()
            if not any(marker in lowered for marker in markers):
                continue
            if index + 1 >= len(lines):
                continue

            amounts = [match.group(0) for match in self._amount_re.finditer(lines[index + 1])]
            if amounts:
                balance = self._strip_currency(amounts[-1])
                self.logger.debug(f"Found balance {balance} after line {index + 1}")
                return AccountBalance(amount=balance)

        raise BalanceNotFoundError("balance not found in PDF")

    def parse_transactions(self, text: str) -> List[TransactionRecord]:
        """Extract transactions in the order their amount lines appear.

        Statements list newest first, so the result is usually in reverse
        chronological order. No sorting is done here.

        Args:
            text: Extracted statement text.

        Returns:
            List of TransactionRecord objects, empty when nothing matches.
        """
        lines = self.split_lines(text)
        transactions = []

        for index, line in enumerate(lines):
            if not line or not self._transaction_amount_re.match(line):
                continue

            transaction = self._parse_block(lines, index, self._strip_currency(line))
            if transaction is not None:
                transactions.append(transaction)

        self.logger.debug(f"Parsed {len(transactions)} transactions from {len(lines)} lines")
        return transactions

    def _parse_block(self, lines: List[str], index: int, amount: str) -> Optional[TransactionRecord]:
        booking_date, value_date = self._resolve_dates(lines, index)
        counterparty = self._resolve_counterparty(lines, index)

        if not booking_date or not amount:
            return None
        # Guard against a date-like amount
        if "," not in amount:
            return None
        if not self.is_real_transaction(counterparty):
            return None

        return TransactionRecord(
            booking_date=booking_date,
            value_date=value_date or booking_date,
            counterparty_name=counterparty,
            amount=amount,
        )

    def _resolve_dates(self, lines: List[str], index: int):
        rules = self.rules
        booking_date = ""
        value_date = ""

        for check_line in lines[max(0, index - rules.date_window):index]:
            if rules.value_date_marker in check_line:
                dates = self._date_re.findall(check_line)
                if dates:
                    value_date = dates[0]
                continue

            if not booking_date:
                dates = self._date_re.findall(check_line)
                # A bare date line, not a sentence that mentions a date
                if dates and len(check_line) < rules.max_date_line_length:
                    booking_date = dates[0]
                    if not value_date:
                        value_date = dates[0]

        return booking_date, value_date

    def _resolve_counterparty(self, lines: List[str], index: int) -> str:
        rules = self.rules
        counterparty = ""

        # The line right above the amount is the category, never the name
        for check_line in lines[max(0, index - rules.counterparty_window):max(0, index - 1)]:
            if self._is_skipped_counterparty_line(check_line):
                continue
            if _encoded_length(check_line) > _encoded_length(counterparty):
                counterparty = check_line

        return counterparty

    def _is_skipped_counterparty_line(self, line: str) -> bool:
        if _encoded_length(line) < self.rules.min_counterparty_length:
            return True
        if self._date_re.search(line) or self._amount_re.search(line):
            return True
        return any(word in line for word in self.rules.counterparty_skip_words)

    def is_real_transaction(self, counterparty_name: str) -> bool:
        """Check that a counterparty is not a header, balance or page number.

        Args:
            counterparty_name: Candidate counterparty line.

        Returns:
            True if the block looks like a real transaction.
        """
        name = counterparty_name.strip()
        if not name:
            return False

        if self._page_number_re.match(name):
            return False

        lowered = name.lower()
        if any(word.lower() in lowered for word in self.rules.rejected_counterparty_words):
            return False

        return _encoded_length(name) >= self.rules.min_counterparty_length


_default_parser = StatementParser()


def parse_transactions(text: str, rules: Optional[ParsingRules] = None) -> List[TransactionRecord]:
    """Parse transactions with the default (or given) rule table."""
    parser = _default_parser if rules is None else StatementParser(rules)
    return parser.parse_transactions(text)


def parse_balance(text: str, rules: Optional[ParsingRules] = None) -> AccountBalance:
    """Parse the account balance with the default (or given) rule table."""
    parser = _default_parser if rules is None else StatementParser(rules)
    return parser.parse_balance(text)
