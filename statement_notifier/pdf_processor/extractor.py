"""PDF text extraction for bank statements."""

import io
from typing import BinaryIO, Optional, Union

import pdfplumber

from statement_notifier.utils.logger import get_logger

PDFSource = Union[str, bytes, BinaryIO]


class TextExtractionError(Exception):
    """Base exception for PDF text extraction errors."""
    pass


class DocumentOpenError(TextExtractionError):
    """Raised when the PDF document cannot be opened."""
    pass


class PageExtractionError(TextExtractionError):
    """Raised when text extraction fails on a single page."""

    def __init__(self, page_index: int, message: str = "") -> None:
        self.page_index = page_index
        detail = f": {message}" if message else ""
        super().__init__(f"Failed to extract text from page {page_index + 1}{detail}")


class TextExtractor:
    """Turns a PDF document into one string, pages joined by newlines.

    The document is opened on :meth:`open` (or on entering a ``with``
    block) and must be released with :meth:`close`. Using the extractor as
    a context manager guarantees the release on success and failure.

    Example:
        >>> with TextExtractor(pdf_bytes) as extractor:
        ...     text = extractor.extract_text()
    """

    def __init__(self, source: PDFSource, password: Optional[str] = None) -> None:
        """Initialize the extractor.

        Args:
            source: Path to a PDF file, raw PDF bytes or a binary file object.
            password: Optional password for encrypted PDFs.
        """
        self.logger = get_logger(__name__)
        self.source = source
        self.password = password
        self._pdf = None
        self._closed = False

    def open(self) -> "TextExtractor":
        """Open the underlying document.

        Raises:
            DocumentOpenError: If the document is empty, corrupt or unreadable.
        """
        if self._pdf is not None:
            return self
        if self._closed:
            raise DocumentOpenError("Extractor has already been closed")

        source = self.source
        if isinstance(source, (bytes, bytearray)):
            if not source:
                raise DocumentOpenError("PDF document is empty")
            source = io.BytesIO(source)

        try:
            self._pdf = pdfplumber.open(source, password=self.password)
        except Exception as e:
            raise DocumentOpenError(f"Failed to open PDF: {str(e)}") from e

        # pdfplumber loads the page tree lazily; a broken tree only fails here
        try:
            page_count = len(self._pdf.pages)
        except Exception as e:
            self.close()
            raise DocumentOpenError(f"Failed to read PDF pages: {str(e)}") from e

        self.logger.debug(f"Opened PDF with {page_count} pages")
        return self

    def extract_text(self) -> str:
        """Extract the text of every page, in page order.

        Returns:
            Page texts joined by ``"\\n"``. Pages without text contribute an
            empty string.

        Raises:
            DocumentOpenError: If the document cannot be opened.
            PageExtractionError: If any page fails; no partial text is returned.
        """
        self.open()

        page_texts = []
        for page_index, page in enumerate(self._pdf.pages):
            try:
                page_texts.append(page.extract_text() or "")
            except Exception as e:
                raise PageExtractionError(page_index, str(e)) from e

        text = "\n".join(page_texts)
        self.logger.info(f"Extracted {len(text)} characters from {len(page_texts)} pages")
        return text

    def close(self) -> None:
        """Release the document. Calling it more than once has no effect."""
        if self._closed:
            return
        self._closed = True
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    def __enter__(self) -> "TextExtractor":
        try:
            return self.open()
        except Exception:
            self.close()
            raise

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def extract_text(source: PDFSource, password: Optional[str] = None) -> str:
    """Extract all text from a PDF, releasing the document afterwards.

    Args:
        source: Path to a PDF file, raw PDF bytes or a binary file object.
        password: Optional password for encrypted PDFs.

    Returns:
        Page texts joined by newlines.
    """
    with TextExtractor(source, password=password) as extractor:
        return extractor.extract_text()
