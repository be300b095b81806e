"""PDF text extraction and statement parsing."""

from statement_notifier.pdf_processor.extractor import (
    DocumentOpenError,
    PageExtractionError,
    TextExtractionError,
    TextExtractor,
    extract_text,
)
from statement_notifier.pdf_processor.parser import (
    AccountBalance,
    BalanceNotFoundError,
    StatementParser,
    TransactionRecord,
    parse_balance,
    parse_transactions,
)
from statement_notifier.pdf_processor.rules import DEFAULT_RULES, ParsingRules

__all__ = [
    "AccountBalance",
    "BalanceNotFoundError",
    "DEFAULT_RULES",
    "DocumentOpenError",
    "PageExtractionError",
    "ParsingRules",
    "StatementParser",
    "TextExtractionError",
    "TextExtractor",
    "TransactionRecord",
    "extract_text",
    "parse_balance",
    "parse_transactions",
]
