import logging
import fitz  # PyMuPDF
from typing import List, Tuple
from synapse.core.errors import ParseError
from synapse.core.parse.text_cleaner import collapse_whitespace
from synapse.models.document import ExtractedText, ExtractionMetadata

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"

class PDFParser:
    """
    Extracts plain text from PDF bytes with PyMuPDF.
    Each page is cleaned on its own and non-empty pages are joined with a paragraph
    break, so the start offset of every page in the final text is known.
    """

    def parse(self, data: bytes) -> ExtractedText:
        pages, page_count = self._extract_pages(data)

        parts = []
        page_offsets = []
        length = 0
        for page_text in pages:
            cleaned = collapse_whitespace(page_text)
            # Empty pages share the offset of the next non-empty page
            page_offsets.append(length + len(PAGE_SEPARATOR) if parts else 0)
            if not cleaned:
                continue
            if parts:
                length += len(PAGE_SEPARATOR)
            parts.append(cleaned)
            length += len(cleaned)

        content = PAGE_SEPARATOR.join(parts)
        logger.info(f"Extracted {len(content)} chars from {page_count} PDF pages")

        return ExtractedText(
            content=content,
            metadata=ExtractionMetadata(page_count=page_count, page_offsets=page_offsets)
        )

    def _extract_pages(self, data: bytes) -> Tuple[List[str], int]:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text("text") for page in doc]
                return pages, doc.page_count
        except Exception as e:
            raise ParseError(f"Unable to parse PDF file: {e}") from e
