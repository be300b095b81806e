"""Rule table driving the statement parser.

Patterns, marker phrases and skip lists live here as immutable data so a
new locale or statement layout can be described without touching the
parsing code. ``DEFAULT_RULES`` describes the N26 Spanish/English layout.
"""

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class ParsingRules:
    """Immutable configuration for :class:`StatementParser`."""

    # DD.MM.YYYY anywhere in a line
    date_pattern: str = r"(\d{2}\.\d{2}\.\d{4})"
    # Any signed amount with '.' or ',' decimals, optional trailing currency
    amount_pattern: str = r"([+-]?\d+[.,]\d{2})\s*€?"
    # A whole line holding only a comma-decimal amount
    transaction_amount_pattern: str = r"^[+-]?\d+,\d{2}\s*€?\s*$"
    page_number_pattern: str = r"^\d+\s*/\s*\d+$"
    currency_symbol: str = "€"

    balance_markers: Tuple[str, ...] = ("Tu nuevo saldo", "Your new balance")
    value_date_marker: str = "Fecha de valor"

    counterparty_skip_words: Tuple[str, ...] = (
        "Fecha",
        "Descripción",
        "Cantidad",
        "Mastercard",
        "IBAN",
        "BIC",
        "Emitido",
        "Transferencias",
        "Enviada",
        "Actividad",
        "salientes",
    )
    rejected_counterparty_words: Tuple[str, ...] = (
        "Saldo previo",
        "Saldo",
        "Balance",
        "Emitido",
        "Descripción",
        "Fecha de reserva",
        "Cantidad",
        "Actividad de la cuenta",
    )

    date_window: int = 10
    counterparty_window: int = 8
    max_date_line_length: int = 20
    min_counterparty_length: int = 3

    # (language, phrase) pairs checked in order; first phrase found wins
    language_markers: Tuple[Tuple[str, str], ...] = (("es", "Actividad de la cuenta"),)
    default_language: str = "en"

    def with_overrides(self, **changes) -> "ParsingRules":
        """Return a copy of the rules with some fields replaced."""
        return replace(self, **changes)


DEFAULT_RULES = ParsingRules()
