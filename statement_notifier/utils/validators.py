"""Validation utilities for the statement notifier."""

import os
from typing import List, Optional
from urllib.parse import urlparse

from statement_notifier.config.settings import MAX_FILE_SIZE_MB

SUPPORTED_PDF_FORMATS = [".pdf"]
PDF_MAGIC = b"%PDF-"


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def validate_file_path(file_path: str) -> None:
    """Validate that a file path exists and is accessible.

    Args:
        file_path: Path to the file to validate.

    Raises:
        ValidationError: If file path is invalid.
    """
    if not file_path:
        raise ValidationError("File path cannot be empty")

    if not os.path.exists(file_path):
        raise ValidationError(f"File does not exist: {file_path}")

    if not os.path.isfile(file_path):
        raise ValidationError(f"Path is not a file: {file_path}")

    if not os.access(file_path, os.R_OK):
        raise ValidationError(f"File is not readable: {file_path}")


def validate_file_size(file_path: str, max_size_mb: int = MAX_FILE_SIZE_MB) -> None:
    """Validate file size against maximum allowed size.

    Args:
        file_path: Path to the file to validate.
        max_size_mb: Maximum allowed file size in MB.

    Raises:
        ValidationError: If file size exceeds limit.
    """
    file_size_mb = os.path.getsize(file_path) / (1024 * 1024)

    if file_size_mb > max_size_mb:
        raise ValidationError(
            f"File size {file_size_mb:.2f}MB exceeds maximum "
            f"allowed size {max_size_mb}MB"
        )


def validate_file_extension(
    file_path: str,
    supported_formats: List[str] = SUPPORTED_PDF_FORMATS
) -> None:
    """Validate file extension against supported formats.

    Args:
        file_path: Path to the file to validate.
        supported_formats: List of supported file extensions.

    Raises:
        ValidationError: If file extension is not supported.
    """
    _, ext = os.path.splitext(file_path.lower())

    if ext not in supported_formats:
        raise ValidationError(
            f"File extension '{ext}' not supported. "
            f"Supported formats: {', '.join(supported_formats)}"
        )


def validate_pdf_file(file_path: str, max_size_mb: int = MAX_FILE_SIZE_MB) -> None:
    """Perform comprehensive PDF file validation.

    Args:
        file_path: Path to the PDF file to validate.
        max_size_mb: Maximum allowed file size in MB.

    Raises:
        ValidationError: If any validation fails.
    """
    validate_file_path(file_path)
    validate_file_size(file_path, max_size_mb)
    validate_file_extension(file_path)


def validate_pdf_bytes(data: Optional[bytes], max_size_mb: int = MAX_FILE_SIZE_MB) -> None:
    """Validate a downloaded PDF payload.

    Only the header is checked; whether the document actually opens is
    decided by the text extractor.

    Args:
        data: Raw bytes returned by the statement endpoint.
        max_size_mb: Maximum allowed payload size in MB.

    Raises:
        ValidationError: If the payload is empty, too large or not a PDF.
    """
    if not data:
        raise ValidationError("PDF payload is empty")

    size_mb = len(data) / (1024 * 1024)
    if size_mb > max_size_mb:
        raise ValidationError(
            f"PDF payload size {size_mb:.2f}MB exceeds maximum "
            f"allowed size {max_size_mb}MB"
        )

    if not data.lstrip().startswith(PDF_MAGIC):
        raise ValidationError("Payload does not look like a PDF document")


def validate_webhook_url(url: Optional[str]) -> None:
    """Validate a webhook URL.

    Raises:
        ValidationError: If the URL is missing or not http(s).
    """
    if not url:
        raise ValidationError("Webhook URL is not set")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid webhook URL: {url}")


def validate_directory_path(dir_path: str) -> None:
    """Validate that a directory path exists and is writable.

    Args:
        dir_path: Path to the directory to validate.

    Raises:
        ValidationError: If directory path is invalid.
    """
    if not dir_path:
        raise ValidationError("Directory path cannot be empty")

    if not os.path.exists(dir_path):
        try:
            os.makedirs(dir_path, exist_ok=True)
        except OSError as e:
            raise ValidationError(f"Cannot create directory {dir_path}: {str(e)}")

    if not os.path.isdir(dir_path):
        raise ValidationError(f"Path is not a directory: {dir_path}")

    if not os.access(dir_path, os.W_OK):
        raise ValidationError(f"Directory is not writable: {dir_path}")
