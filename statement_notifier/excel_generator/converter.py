"""Excel export of parsed statement transactions."""

import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from statement_notifier.config.settings import CURRENCY_CODE, REPORTS_DIR
from statement_notifier.pdf_processor.parser import TransactionRecord
from statement_notifier.utils.logger import get_logger
from statement_notifier.utils.validators import ValidationError, validate_directory_path

COLUMNS = ["Booking Date", "Value Date", "Counterparty", "Amount"]


class ExcelConversionError(Exception):
    """Custom exception for Excel conversion errors."""
    pass


def amount_to_float(amount: str) -> Optional[float]:
    """Convert a statement amount such as ``"-2,50"`` to a float."""
    try:
        return float(amount.replace(",", "."))
    except (AttributeError, ValueError):
        return None


class ExcelConverter:
    """Writes parsed transactions to a styled Excel workbook."""

    def __init__(self, currency: str = CURRENCY_CODE) -> None:
        self.logger = get_logger(__name__)

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.header_alignment = Alignment(horizontal="center", vertical="center")

        self.currency = currency
        self.currency_format = f'#,##0.00 "{currency}"'
        self.date_format = "DD.MM.YYYY"

    def generate_filename(self, base_name: str, timestamp: bool = True) -> str:
        """Generate an .xlsx filename, optionally timestamped."""
        if timestamp:
            base_name = f"{base_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        return f"{base_name}.xlsx"

    def transactions_to_dataframe(self, transactions: List[TransactionRecord]) -> pd.DataFrame:
        """Convert transactions to a DataFrame, keeping statement order.

        Args:
            transactions: Parsed transaction records.

        Returns:
            DataFrame with booking/value dates as datetimes and numeric amounts.
        """
        df = pd.DataFrame(
            [
                {
                    "Booking Date": tx.booking_date,
                    "Value Date": tx.value_date,
                    "Counterparty": tx.counterparty_name,
                    "Amount": amount_to_float(tx.amount),
                }
                for tx in transactions
            ],
            columns=COLUMNS,
        )

        for column in ("Booking Date", "Value Date"):
            df[column] = pd.to_datetime(df[column], format="%d.%m.%Y", errors="coerce")

        return df

    def build_summary(self, df: pd.DataFrame, balance: str) -> Dict[str, Any]:
        amounts = df["Amount"].dropna()
        return {
            "Transactions": int(len(df)),
            "Money In": round(float(amounts[amounts > 0].sum()), 2),
            "Money Out": round(float(amounts[amounts < 0].sum()), 2),
            "Account Balance": f"{balance} {self.currency}",
        }

    def _style_header(self, worksheet, columns: int) -> None:
        for col_num in range(1, columns + 1):
            cell = worksheet.cell(row=1, column=col_num)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.header_alignment

    def _autosize_columns(self, worksheet) -> None:
        for col_idx in range(1, worksheet.max_column + 1):
            max_length = 0
            for row_idx in range(1, worksheet.max_row + 1):
                value = worksheet.cell(row=row_idx, column=col_idx).value
                if value is not None:
                    max_length = max(max_length, len(str(value)))
            worksheet.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 50)

    def create_transactions_sheet(self, workbook: Workbook, df: pd.DataFrame) -> None:
        worksheet = workbook.create_sheet(title="Transactions")
        worksheet.append(COLUMNS)
        self._style_header(worksheet, len(COLUMNS))

        for row_num, row in enumerate(dataframe_to_rows(df, index=False, header=False), 2):
            for col_num, value in enumerate(row, 1):
                if value is not None and pd.isna(value):
                    value = None
                cell = worksheet.cell(row=row_num, column=col_num, value=value)
                if col_num in (1, 2) and value is not None:
                    cell.number_format = self.date_format
                elif col_num == 4 and value is not None:
                    cell.number_format = self.currency_format

        self._autosize_columns(worksheet)
        self.logger.info(f"Created transactions sheet with {len(df)} rows")

    def create_summary_sheet(self, workbook: Workbook, summary: Dict[str, Any]) -> None:
        worksheet = workbook.create_sheet(title="Summary")
        worksheet.append(["Metric", "Value"])
        self._style_header(worksheet, 2)

        for key, value in summary.items():
            worksheet.append([key, value])

        self._autosize_columns(worksheet)

    def create_transactions_excel(
        self,
        transactions: List[TransactionRecord],
        balance: str = "N/A",
        output_path: Optional[str] = None,
        filename: Optional[str] = None
    ) -> str:
        """Write transactions and a summary sheet to an Excel file.

        Args:
            transactions: Parsed transaction records.
            balance: Account balance, or "N/A".
            output_path: Output directory (defaults to REPORTS_DIR).
            filename: Optional filename; ".xlsx" is appended when missing.

        Returns:
            Path to the created file.

        Raises:
            ExcelConversionError: If the file cannot be written.
        """
        output_path = output_path or REPORTS_DIR
        filename = filename or self.generate_filename("statement")
        if not filename.endswith(".xlsx"):
            filename = f"{filename}.xlsx"

        try:
            validate_directory_path(output_path)
            full_path = os.path.join(output_path, filename)

            df = self.transactions_to_dataframe(transactions)

            workbook = Workbook()
            workbook.remove(workbook.active)
            self.create_transactions_sheet(workbook, df)
            self.create_summary_sheet(workbook, self.build_summary(df, balance))
            workbook.save(full_path)
            workbook.close()
        except ValidationError as e:
            raise ExcelConversionError(f"Validation error: {str(e)}") from e
        except OSError as e:
            raise ExcelConversionError(f"Failed to write Excel file: {str(e)}") from e

        self.logger.info(f"Excel file created successfully: {full_path}")
        return full_path
