"""
Text extraction for the reference documents (CNIL guides, EDPB guidelines)
that administrators attach to prompts.

PDF files are read with PyMuPDF page by page; plain-text files are decoded as
UTF-8. The extracted text is stored in the database and injected into prompts.
"""

from typing import Any, Dict, List, Union

import pymupdf

from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from backend.app.utils.system_utils.exceptions import BusinessRuleError


class PDFTextExtractor:
    """
    Extracts the text of a PDF document held in memory.

    The document is opened at construction time and must be released with
    `close()`, or by using the extractor as a context manager.
    """

    def __init__(self, pdf_input: Union[bytes, pymupdf.Document]):
        """
        Args:
            pdf_input: The PDF content as bytes, or an opened PyMuPDF document.

        Raises:
            BusinessRuleError: If the content cannot be opened as a PDF.
        """
        if isinstance(pdf_input, pymupdf.Document):
            self.pdf_document = pdf_input
            return
        try:
            self.pdf_document = pymupdf.open(stream=pdf_input, filetype="pdf")
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "pdf_extractor_init", "memory_buffer")
            raise BusinessRuleError("Le fichier PDF ne peut pas être lu")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def extract_pages(self) -> List[Dict[str, Any]]:
        """
        Extract the text of every page.

        Returns:
            A list of {"page": number, "text": text}, empty pages excluded.
        """
        pages = []
        for page_index in range(self.pdf_document.page_count):
            text = self.pdf_document[page_index].get_text("text").strip()
            if text:
                pages.append({"page": page_index + 1, "text": text})
        empty = self.pdf_document.page_count - len(pages)
        if empty:
            log_warning(f"[PDF] {empty} page(s) without extractable text")
        return pages

    def extract_text(self) -> str:
        """Return the text of the whole document, pages separated by blank lines."""
        pages = self.extract_pages()
        log_info(f"[PDF] Extracted text from {len(pages)} page(s)")
        return "\n\n".join(page["text"] for page in pages)

    def close(self) -> None:
        if self.pdf_document is not None:
            self.pdf_document.close()
            self.pdf_document = None


def extract_document_text(content: bytes, kind: str) -> str:
    """
    Extract the text of a validated upload.

    Args:
        content: The file content.
        kind: 'pdf' or 'txt'.

    Returns:
        The document text.

    Raises:
        BusinessRuleError: If no text could be extracted.
    """
    if kind == "pdf":
        with PDFTextExtractor(content) as extractor:
            text = extractor.extract_text()
    else:
        text = content.decode("utf-8").strip()
    if not text:
        raise BusinessRuleError("Aucun texte exploitable dans le document")
    return text
