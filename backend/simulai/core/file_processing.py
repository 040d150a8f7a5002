import io
import logging
from typing import Iterable, Tuple

import PyPDF2  # type: ignore
from PyPDF2.errors import PdfReadError  # type: ignore

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

#SH: Extract text content from PDF bytes
def extract_text_from_pdf(contents: bytes) -> str:
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(contents))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PdfReadError, ValueError) as e:
        logger.error(f"PDF reading failed: {e}")
        return "Error extracting text from PDF. The file may be corrupted, password-protected, or in an unsupported format."

    return text.strip() or "No text content could be extracted from this PDF."

#SH: Concatenate the text of every PDF with its file name as header
def process_pdf_files(files: Iterable[Tuple[str, str, bytes]]) -> str:
    combined = []
    for filename, content_type, contents in files:
        if content_type != PDF_CONTENT_TYPE and not filename.lower().endswith(".pdf"):
            continue
        combined.append(f"=== {filename} ===\n\n{extract_text_from_pdf(contents)}")

    return "\n\n".join(combined).strip()
