"""
File Upload Utility - Extract text from resume documents.

Supported formats:
- PDF (application/pdf) using PyPDF2
- Word (.docx) using python-docx
- Plain Text (text/plain)

Documents arrive either as a multipart upload or base64-encoded in a JSON body.

Max file size: 5MB
"""

import base64
import binascii
import io
from typing import Tuple

from docx import Document
from fastapi import UploadFile
from PyPDF2 import PdfReader

from zhide.core.errors import ValidationError


MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT_MIME = "text/plain"

EXTENSION_MIME_TYPES = {
    '.pdf': PDF_MIME,
    '.docx': DOCX_MIME,
    '.txt': TXT_MIME,
}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def decode_base64_document(data: str) -> bytes:
    """Decode a base64 document, accepting data: URLs."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("document_base64 is not valid base64")
    if not content:
        raise ValidationError("Document is empty")
    return content


def extract_text(content: bytes, mime_type: str) -> str:
    """
    Extract text from document bytes.

    Raises:
        ValidationError on unsupported type, oversized or unreadable documents
    """
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise ValidationError(f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB")

    mime_type = (mime_type or TXT_MIME).split(";")[0].strip().lower()
    if mime_type == PDF_MIME:
        text = extract_from_pdf(content)
    elif mime_type == DOCX_MIME:
        text = extract_from_docx(content)
    elif mime_type.startswith("text/"):
        text = extract_from_txt(content)
    else:
        raise ValidationError(
            f"Unsupported document type '{mime_type}'. Allowed: PDF, DOCX, TXT"
        )

    if not text.strip():
        raise ValidationError(
            "Could not extract text from file. File may be empty or corrupted."
        )
    return text


async def extract_text_from_upload(file: UploadFile) -> Tuple[str, str]:
    """
    Extract text from an uploaded file.

    Returns:
        Tuple of (extracted_text, filename)
    """
    if not file.filename:
        raise ValidationError("No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in EXTENSION_MIME_TYPES:
        raise ValidationError(f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT")

    content = await file.read()
    return extract_text(content, EXTENSION_MIME_TYPES[ext]), file.filename


def extract_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        return '\n'.join(text_parts)
    except Exception as e:
        raise ValidationError(f"Error reading PDF: {e}")


def extract_from_docx(content: bytes) -> str:
    """Extract text from DOCX bytes."""
    try:
        doc = Document(io.BytesIO(content))
        text_parts = []

        # Extract paragraphs
        for para in doc.paragraphs:
            if para.text.strip():
                text_parts.append(para.text)

        # Extract tables
        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_parts.append(' | '.join(row_text))

        return '\n'.join(text_parts)
    except Exception as e:
        raise ValidationError(f"Error reading DOCX: {e}")


def extract_from_txt(content: bytes) -> str:
    """Extract text from TXT bytes."""
    for encoding in ['utf-8', 'gb18030', 'latin-1']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValidationError("Could not decode text file")
