import io
import logging
import zipfile
from typing import Optional

import fitz  # PyMuPDF
import docx
from docx.opc.exceptions import PackageNotFoundError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME_TYPE = "text/plain"

MIME_TYPES_BY_EXTENSION = {
    ".pdf": PDF_MIME_TYPE,
    ".docx": DOCX_MIME_TYPE,
    ".txt": TEXT_MIME_TYPE,
}


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """Extracts text from PDF bytes."""
    text = ""
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        for page in doc:
            text += page.get_text()
    return text


def extract_text_from_docx(docx_bytes: bytes) -> str:
    """Extracts text from DOCX bytes."""
    text = ""
    doc = docx.Document(io.BytesIO(docx_bytes))
    for para in doc.paragraphs:
        text += para.text + "\n"
    return text


def extract_resume_text(data: bytes, mime_type: str) -> Optional[str]:
    """
    Best-effort text extraction for an uploaded resume.

    Returns None when the document cannot be read or holds no text; callers
    fall back to metadata-based content in that case.
    """
    try:
        if mime_type == PDF_MIME_TYPE:
            text = extract_text_from_pdf(data)
        elif mime_type == DOCX_MIME_TYPE:
            text = extract_text_from_docx(data)
        else:
            text = data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Resume text is not valid UTF-8 (%s)", mime_type)
        return None
    except (RuntimeError, ValueError, KeyError, zipfile.BadZipFile, PackageNotFoundError) as e:
        # PyMuPDF reports damaged files as RuntimeError subclasses
        logger.warning("Could not extract text from %s resume: %s", mime_type, e)
        return None

    text = text.strip()
    return text or None
