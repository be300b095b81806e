#!/usr/bin/env python3
"""Bank Statement Notifier.

Checks the N26 account-activity PDF for transactions that have not been
notified yet and posts them to a Discord webhook.

Usage:
    python main.py --check  # Run one statement check

    python main.py --parse-pdf <path_to_pdf> [--excel-output <dir>]

    python main.py --daemon  # Run worker with periodic checks
"""

import argparse
import sys
from typing import List, Optional

from statement_notifier.config.settings import REPORTS_DIR, Settings
from statement_notifier.excel_generator.converter import ExcelConversionError, ExcelConverter
from statement_notifier.fetcher.document_fetcher import FetchError
from statement_notifier.fetcher.session import SessionAcquisitionError
from statement_notifier.notifier.webhook import NotificationError
from statement_notifier.pdf_processor.extractor import TextExtractionError, extract_text
from statement_notifier.pdf_processor.parser import BalanceNotFoundError, StatementParser
from statement_notifier.processor import BALANCE_PLACEHOLDER, NoTransactionsError, StatementProcessor
from statement_notifier.utils.logger import setup_logger
from statement_notifier.utils.validators import ValidationError, validate_pdf_file


def check_statements(settings: Settings) -> int:
    """Run one statement check.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    logger = setup_logger("statement_notifier", level=settings.get_log_level(), logs_dir=settings.logs_dir)

    if not settings.validate():
        logger.error("Invalid configuration, check environment variables")
        return 1

    try:
        processor = StatementProcessor.from_settings(settings)
        result = processor.run()
    except (FetchError, SessionAcquisitionError, NoTransactionsError,
            TextExtractionError, NotificationError, ValidationError) as e:
        logger.error(f"Statement check failed: {str(e)}")
        return 1

    print(
        f"Statement check finished: {result['new_transactions']} new of "
        f"{result['total_transactions']} transactions, balance {result['balance']}"
    )
    return 0


def parse_pdf(pdf_path: str, excel_output: Optional[str] = None) -> int:
    """Parse a local statement PDF and print what was found.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    try:
        validate_pdf_file(pdf_path)
        text = extract_text(pdf_path)
    except (ValidationError, TextExtractionError) as e:
        print(f"Error: {str(e)}")
        return 1

    parser = StatementParser()
    transactions = parser.parse_transactions(text)
    try:
        balance = parser.parse_balance(text).amount
    except BalanceNotFoundError:
        balance = BALANCE_PLACEHOLDER

    print(f"Language: {parser.detect_language(text)}")
    print(f"Transactions: {len(transactions)}")
    for tx in transactions:
        print(f"  {tx.booking_date} | {tx.value_date} | {tx.counterparty_name} | {tx.amount}")
    print(f"Account balance: {balance}")

    if excel_output:
        try:
            output_path = ExcelConverter().create_transactions_excel(
                transactions, balance, output_path=excel_output
            )
        except ExcelConversionError as e:
            print(f"Error: {str(e)}")
            return 1
        print(f"Excel report created: {output_path}")

    return 0


def start_daemon() -> None:
    """Start a Celery worker with the beat scheduler embedded."""
    # Imported lazily so --check and --parse-pdf work without a broker
    from statement_notifier.tasks.celery_app import celery_app

    celery_app.start(["worker", "--beat", "--loglevel=info", "--queues=statements"])


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="Notify about new transactions in N26 PDF statements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a single check (uses .env / environment variables)
    python main.py --check

    # Inspect a downloaded statement and export it to Excel
    python main.py --parse-pdf statement.pdf --excel-output ./reports

    # Run as background service
    python main.py --daemon
        """
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        '--check',
        action='store_true',
        help='Fetch the statement once and notify about new transactions'
    )
    group.add_argument(
        '--parse-pdf',
        type=str,
        help='Parse a local statement PDF and print the transactions'
    )
    group.add_argument(
        '--daemon',
        action='store_true',
        help='Run as background daemon with periodic checks'
    )

    parser.add_argument(
        '--excel-output',
        type=str,
        nargs='?',
        const=REPORTS_DIR,
        default=None,
        help=f'Write parsed transactions to Excel (only with --parse-pdf, default dir: {REPORTS_DIR})'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    try:
        args = parse_arguments(argv)

        if args.daemon:
            start_daemon()
            return 0
        if args.parse_pdf:
            return parse_pdf(args.parse_pdf, args.excel_output)
        return check_statements(Settings.from_env())

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
