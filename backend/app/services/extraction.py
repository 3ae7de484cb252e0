"""Plain-text extraction for source documents and questionnaires."""

import asyncio
import io
import logging
from pathlib import Path

import docx
import openpyxl
from pypdf import PdfReader

from app.core.exceptions import ExtractionError, UnsupportedFileTypeError
from app.services.storage import StorageService

logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_docx_text(data: bytes) -> str:
    """Paragraphs first, then table rows as tab-separated lines."""
    document = docx.Document(io.BytesIO(data))
    lines = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append("\t".join(cell.text.strip() for cell in row.cells))
    return "\n".join(lines)


def extract_xlsx_text(data: bytes) -> str:
    """Flatten every sheet to one tab-separated line per row.

    Trailing empty cells are dropped so the last field of a line is the last
    populated cell of the row.
    """
    workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    lines: list[str] = []
    try:
        for sheet in workbook.worksheets:
            for row in sheet.iter_rows(values_only=True):
                cells = ["" if value is None else str(value) for value in row]
                while cells and not cells[-1].strip():
                    cells.pop()
                if cells:
                    lines.append("\t".join(cells))
    finally:
        workbook.close()
    return "\n".join(lines)


def extract_plain_text(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


EXTRACTORS = {
    ".pdf": extract_pdf_text,
    ".docx": extract_docx_text,
    ".xlsx": extract_xlsx_text,
    ".txt": extract_plain_text,
}


class TextExtractor:
    def __init__(self, storage: StorageService):
        self.storage = storage

    async def extract(self, filename: str) -> str:
        """Return the plain text of a file in the data directory.

        Raises SourceFileNotFoundError when the file is missing,
        UnsupportedFileTypeError for unknown extensions and ExtractionError when
        the parser fails.
        """
        ext = Path(filename).suffix.lower()
        parser = EXTRACTORS.get(ext)
        if parser is None:
            raise UnsupportedFileTypeError(f"Unsupported file type: {filename}")

        try:
            data = await self.storage.read_file(filename)
        except (ValueError, OSError) as e:
            logger.warning("Failed to read %s: %s", filename, e)
            raise ExtractionError(f"Could not read {filename}: {e}") from e

        try:
            text = await asyncio.to_thread(parser, data)
        except Exception as e:
            logger.warning("Failed to extract text from %s: %s", filename, e)
            raise ExtractionError(f"Could not read {filename}: {e}") from e

        logger.info("Extracted %d characters from %s", len(text), filename)
        return text
