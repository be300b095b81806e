"""Tests for the statement parser."""

import pytest

from statement_notifier.pdf_processor.parser import (
    AccountBalance,
    BalanceNotFoundError,
    StatementParser,
    TransactionRecord,
    parse_balance,
    parse_transactions,
)
from statement_notifier.pdf_processor.rules import DEFAULT_RULES, ParsingRules


def _text(*lines):
    return "\n".join(lines)


@pytest.fixture
def parser():
    return StatementParser()


class TestParseTransactions:
    """Test cases for transaction extraction."""

    def test_spanish_statement(self, parser, spanish_statement_text, spanish_statement_transactions):
        """Both transactions are found, in the order they appear."""
        assert parser.parse_transactions(spanish_statement_text) == spanish_statement_transactions

    def test_english_statement(self, parser, english_statement_text):
        transactions = parser.parse_transactions(english_statement_text)

        assert transactions == [
            TransactionRecord(
                booking_date="05.10.2025",
                value_date="05.10.2025",
                counterparty_name="AMAZON EU SARL",
                amount="-19,99",
            )
        ]

    def test_value_date_defaults_to_booking_date(self, parser):
        text = _text("SUPERMARKET XYZ", "Card payment", "05.10.2025", "Groceries", "-12,34€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.booking_date == "05.10.2025"
        assert transaction.value_date == transaction.booking_date
        assert transaction.counterparty_name == "SUPERMARKET XYZ"
        assert transaction.amount == "-12,34"

    def test_value_date_line_before_booking_date(self, parser):
        text = _text(
            "Fecha de valor 05.10.2025",
            "05.10.2025",
            "SUPERMARKET XYZ",
            "Alimentación",
            "-12,34€",
        )

        assert parser.parse_transactions(text) == [
            TransactionRecord(
                booking_date="05.10.2025",
                value_date="05.10.2025",
                counterparty_name="SUPERMARKET XYZ",
                amount="-12,34",
            )
        ]

    def test_value_date_line_after_booking_date_overrides_seed(self, parser):
        text = _text("MERCHANT NAME", "05.10.2025", "Fecha de valor 04.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.booking_date == "05.10.2025"
        assert transaction.value_date == "04.10.2025"

    def test_line_directly_above_amount_is_never_the_counterparty(self, parser):
        """With the merchant right above the amount nothing is left to name the block."""
        text = _text("Fecha de valor 05.10.2025", "05.10.2025", "SUPERMARKET XYZ", "-12,34€")

        assert parser.parse_transactions(text) == []

    def test_first_short_date_line_is_booking_date(self, parser):
        text = _text(
            "MERCHANT NAME",
            "Pagado el 03.10.2025 con tarjeta",
            "05.10.2025",
            "06.10.2025",
            "Cat",
            "-1,00€",
        )

        [transaction] = parser.parse_transactions(text)

        assert transaction.booking_date == "05.10.2025"
        assert transaction.value_date == "05.10.2025"

    def test_date_window_reaches_ten_lines_back(self, parser):
        text = _text("05.10.2025", *["x"] * 7, "MERCHANT NAME", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.booking_date == "05.10.2025"

    def test_date_beyond_window_is_ignored(self, parser):
        text = _text("05.10.2025", *["x"] * 8, "MERCHANT NAME", "Cat", "-1,00€")

        assert parser.parse_transactions(text) == []

    def test_counterparty_window_reaches_eight_lines_back(self, parser):
        within = _text("MERCHANT NAME", *["x"] * 5, "05.10.2025", "Cat", "-1,00€")
        beyond = _text("MERCHANT NAME", *["x"] * 6, "05.10.2025", "Cat", "-1,00€")

        assert parser.parse_transactions(within)[0].counterparty_name == "MERCHANT NAME"
        assert parser.parse_transactions(beyond) == []

    def test_longest_counterparty_line_wins(self, parser):
        text = _text("Bar", "LONGER MERCHANT NAME", "Short name", "05.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "LONGER MERCHANT NAME"

    def test_counterparty_length_counts_utf8_bytes(self, parser):
        """Accented names weigh by encoded size: 13 bytes beats 10 ASCII characters."""
        text = _text("ABCDEFGHIJ", "ÑAÑO ÑUÑU", "05.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "ÑAÑO ÑUÑU"

    def test_short_accented_counterparty_meets_minimum_length(self, parser):
        text = _text("Ñu", "05.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "Ñu"

    def test_counterparty_tie_keeps_first_line(self, parser):
        text = _text("AAAA BBBB", "CCCC DDDD", "05.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "AAAA BBBB"

    @pytest.mark.parametrize("skipped_line", [
        "Mastercard • Restaurantes y bares largo",
        "IBAN: ES12 3456 7890 1234",
        "Transferencias salientes a terceros",
        "Enviada desde la app del banco",
        "Importe 12,50€ en comercio local",
        "Compra del 01.10.2025 en tienda",
    ])
    def test_skipped_lines_are_not_counterparties(self, parser, skipped_line):
        text = _text("REAL MERCHANT", skipped_line, "05.10.2025", "Cat", "-1,00€")

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "REAL MERCHANT"

    def test_page_number_counterparty_is_rejected(self, parser):
        text = _text("05.10.2025", "1 / 3", "Category", "-12,34€")

        assert parser.parse_transactions(text) == []

    @pytest.mark.parametrize("name", ["Saldo previo", "balance anterior", "Mi saldo", "ab"])
    def test_balance_and_short_counterparties_are_rejected(self, parser, name):
        text = _text(name, "05.10.2025", "Cat", "100,00€")

        assert parser.parse_transactions(text) == []

    def test_no_booking_date_means_no_transaction(self, parser):
        text = _text("MERCHANT NAME", "Something", "Cat", "-1,00€")

        assert parser.parse_transactions(text) == []

    @pytest.mark.parametrize("amount_line", [
        "-12.34€",
        "-12,34€ EUR",
        "Total -12,34€",
        "-12,3€",
        "12,345",
    ])
    def test_only_full_line_comma_amounts_are_candidates(self, parser, amount_line):
        text = _text("MERCHANT NAME", "Card", "05.10.2025", "Cat", amount_line)

        assert parser.parse_transactions(text) == []

    def test_amount_with_spaced_currency(self, parser):
        text = _text("MERCHANT NAME", "Card", "05.10.2025", "Cat", "  +7,00 €  ")

        [transaction] = parser.parse_transactions(text)

        assert transaction.amount == "+7,00"

    def test_carriage_returns_are_trimmed(self, parser):
        text = "MERCHANT NAME\r\nCard\r\n05.10.2025\r\nCat\r\n-1,00€\r\n"

        [transaction] = parser.parse_transactions(text)

        assert transaction.counterparty_name == "MERCHANT NAME"

    def test_empty_text(self, parser):
        assert parser.parse_transactions("") == []

    def test_parsing_is_idempotent(self, parser, spanish_statement_text):
        assert parser.parse_transactions(spanish_statement_text) == parser.parse_transactions(
            spanish_statement_text
        )

    def test_results_are_not_sorted(self, parser):
        text = _text(
            "NEWEST MERCHANT", "Card", "20.10.2025", "Cat", "-1,00€",
            *["filler"] * 6,
            "OLDEST MERCHANT", "Card", "01.10.2025", "Cat", "-2,00€",
        )

        transactions = parser.parse_transactions(text)

        assert [tx.booking_date for tx in transactions] == ["20.10.2025", "01.10.2025"]

    def test_module_level_function(self, spanish_statement_text, spanish_statement_transactions):
        assert parse_transactions(spanish_statement_text) == spanish_statement_transactions

    def test_to_dict(self):
        record = TransactionRecord("05.10.2025", "04.10.2025", "SHOP", "-1,00")

        assert record.to_dict() == {
            "booking_date": "05.10.2025",
            "value_date": "04.10.2025",
            "counterparty_name": "SHOP",
            "amount": "-1,00",
        }


class TestParseBalance:
    """Test cases for balance extraction."""

    def test_spanish_balance(self, parser, spanish_statement_text):
        assert parser.parse_balance(spanish_statement_text) == AccountBalance(amount="2345,67")

    def test_english_balance(self, parser, english_statement_text):
        assert parser.parse_balance(english_statement_text) == AccountBalance(amount="1000,00")

    def test_last_amount_on_line_is_used(self, parser):
        text = _text("Tu nuevo saldo", "Ref 12,00 -80,10€")

        assert parser.parse_balance(text).amount == "-80,10"

    def test_balance_grammar_has_no_thousands_separator(self, parser):
        """Grouped amounts split into two matches; the trailing fragment is taken."""
        text = _text("Tu nuevo saldo", "Ref 12 1.234,56€")

        assert parser.parse_balance(text).amount == "4,56"

    def test_period_decimal_balance(self, parser):
        text = _text("Your new balance", "2.50")

        assert parser.parse_balance(text).amount == "2.50"

    def test_marker_is_case_insensitive(self, parser):
        text = _text("TU NUEVO SALDO", "15,00€")

        assert parser.parse_balance(text).amount == "15,00"

    def test_first_marker_wins(self, parser):
        text = _text("Tu nuevo saldo", "10,00€", "Your new balance", "20,00€")

        assert parser.parse_balance(text).amount == "10,00"

    def test_marker_without_amount_keeps_scanning(self, parser):
        text = _text("Tu nuevo saldo", "no amount here", "Your new balance", "20,00€")

        assert parser.parse_balance(text).amount == "20,00"

    def test_marker_on_last_line(self, parser):
        with pytest.raises(BalanceNotFoundError):
            parser.parse_balance(_text("Lorem", "Tu nuevo saldo"))

    def test_empty_text(self, parser):
        with pytest.raises(BalanceNotFoundError):
            parser.parse_balance("")

    def test_module_level_function(self, english_statement_text):
        assert parse_balance(english_statement_text).amount == "1000,00"


class TestDetectLanguage:

    def test_spanish(self, parser, spanish_statement_text):
        assert parser.detect_language(spanish_statement_text) == "es"

    def test_english_is_default(self, parser, english_statement_text):
        assert parser.detect_language(english_statement_text) == "en"


class TestParsingRules:
    """Rule tables can be swapped without touching the parser."""

    def test_default_rules(self):
        assert DEFAULT_RULES.date_window == 10
        assert DEFAULT_RULES.counterparty_window == 8
        assert "Tu nuevo saldo" in DEFAULT_RULES.balance_markers

    def test_rules_are_immutable(self):
        with pytest.raises(Exception):
            DEFAULT_RULES.date_window = 3

    def test_custom_balance_marker(self):
        rules = DEFAULT_RULES.with_overrides(balance_markers=("Neuer Kontostand",))
        parser = StatementParser(rules)

        assert parser.parse_balance(_text("Neuer Kontostand", "99,99€")).amount == "99,99"
        with pytest.raises(BalanceNotFoundError):
            parser.parse_balance(_text("Tu nuevo saldo", "99,99€"))

    def test_custom_language_markers(self):
        rules = ParsingRules(language_markers=(("de", "Kontoauszug"),), default_language="es")
        parser = StatementParser(rules)

        assert parser.detect_language("Kontoauszug Oktober") == "de"
        assert parser.detect_language("anything else") == "es"

    def test_custom_window(self):
        rules = DEFAULT_RULES.with_overrides(date_window=2)
        text = _text("MERCHANT NAME", "05.10.2025", "Card", "Cat", "-1,00€")

        assert StatementParser(rules).parse_transactions(text) == []
        assert parse_transactions(text, rules=DEFAULT_RULES)[0].booking_date == "05.10.2025"

    def test_is_real_transaction(self, parser):
        assert parser.is_real_transaction("  MERCADONA  ")
        assert not parser.is_real_transaction("")
        assert not parser.is_real_transaction("2 / 10")
        assert not parser.is_real_transaction("Fecha de reserva")
        assert not parser.is_real_transaction("Actividad de la cuenta")
