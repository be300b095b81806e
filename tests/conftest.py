"""Pytest configuration and fixtures for the statement notifier."""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from statement_notifier.config.settings import Settings
from statement_notifier.pdf_processor.parser import TransactionRecord
from statement_notifier.storage.state_store import InMemoryStateStore


SPANISH_STATEMENT_LINES = [
    "Actividad de la cuenta",
    "Emitido el 01.11.2025",
    "Descripción Fecha de reserva Cantidad",
    "MERCADONA VALENCIA",
    "Mastercard • Alimentación",
    "Fecha de valor 30.10.2025",
    "31.10.2025",
    "Alimentación",
    "-45,20€",
    "1 / 2",
    "Actividad de la cuenta",
    "Emitido el 01.11.2025",
    "Descripción Fecha de reserva Cantidad",
    "Juan Pérez García",
    "IBAN: ES1234567890",
    "Transferencias entrantes",
    "Fecha de valor 28.10.2025",
    "29.10.2025",
    "Ingresos",
    "+1250,00€",
    "2 / 2",
    "Tu nuevo saldo",
    "Cuenta principal 2345,67€",
]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def spanish_statement_text():
    """Two-page Spanish statement text as produced by the text extractor."""
    return "\n".join(SPANISH_STATEMENT_LINES)


@pytest.fixture
def spanish_statement_transactions():
    """Transactions expected from ``spanish_statement_text``."""
    return [
        TransactionRecord(
            booking_date="31.10.2025",
            value_date="30.10.2025",
            counterparty_name="MERCADONA VALENCIA",
            amount="-45,20",
        ),
        TransactionRecord(
            booking_date="29.10.2025",
            value_date="28.10.2025",
            counterparty_name="Juan Pérez García",
            amount="+1250,00",
        ),
    ]


@pytest.fixture
def english_statement_text():
    """Short English statement text."""
    return "\n".join([
        "Statement",
        "AMAZON EU SARL",
        "Card",
        "05.10.2025",
        "Shopping",
        "-19,99€",
        "Your new balance",
        "Main account 1000,00€",
    ])


@pytest.fixture
def sample_settings(temp_dir):
    """Create sample settings for testing."""
    return Settings(
        account_id="acc-123",
        session_cookie="session=abc",
        webhook_url="https://discord.example.com/api/webhooks/1/token",
        redis_url="redis://localhost:6379/15",
        reports_dir=str(temp_dir / "reports"),
        logs_dir=str(temp_dir / "logs"),
    )


@pytest.fixture
def state_store():
    """Empty in-memory state store."""
    return InMemoryStateStore()


@pytest.fixture
def mock_pdfplumber():
    """Patch pdfplumber.open in the extractor and yield the mocked document."""
    with patch("statement_notifier.pdf_processor.extractor.pdfplumber.open") as mock_open:
        mock_pdf = Mock()
        mock_pdf.pages = []
        mock_open.return_value = mock_pdf
        yield mock_open


@pytest.fixture
def pdf_bytes():
    """Minimal bytes that pass the PDF header check."""
    return b"%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n"


def build_pdf(page_texts, media_box="[0 0 612 792]"):
    """Build a small PDF with one line of Helvetica text per page."""
    page_count = len(page_texts)
    font_id = 3 + 2 * page_count
    page_ids = [3 + 2 * i for i in range(page_count)]

    objects = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: (
            "<< /Type /Pages /Kids [%s] /Count %d >>"
            % (" ".join(f"{pid} 0 R" for pid in page_ids), page_count)
        ).encode(),
        font_id: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for page_id, text in zip(page_ids, page_texts):
        content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
        objects[page_id] = (
            f"<< /Type /Page /Parent 2 0 R /MediaBox {media_box} "
            f"/Resources << /Font << /F1 {font_id} 0 R >> >> /Contents {page_id + 1} 0 R >>"
        ).encode()
        objects[page_id + 1] = b"<< /Length %d >>\nstream\n%s\nendstream" % (len(content), content)

    output = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for obj_id in sorted(objects):
        offsets[obj_id] = len(output)
        output += b"%d 0 obj\n%s\nendobj\n" % (obj_id, objects[obj_id])

    xref_offset = len(output)
    size = max(objects) + 1
    output += b"xref\n0 %d\n0000000000 65535 f \n" % size
    for obj_id in range(1, size):
        output += b"%010d 00000 n \n" % offsets[obj_id]
    output += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_offset)
    return bytes(output)


@pytest.fixture
def make_pdf():
    """Factory fixture for real PDF documents."""
    return build_pdf


@pytest.fixture
def sample_environment():
    """Create sample environment variables for testing."""
    env_vars = {
        "N26_ACCOUNT_ID": "env-account",
        "SESSION_COOKIE": "session=env",
        "WEBHOOK_URL": "https://discord.example.com/api/webhooks/2/token",
        "LOG_LEVEL": "DEBUG",
        "LOOKBACK_DAYS": "14",
        "MAX_RETRIES": "5",
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars
