"""
Validation of the reference documents uploaded by administrators.

This module provides functions to:
  - Check the extension and the declared MIME type of an upload.
  - Check the magic bytes of PDF files and the encoding of text files.
  - Read an UploadFile while enforcing the configured size limit.
"""

import os
import re
from typing import Optional, Tuple, Union, List

from fastapi import UploadFile

from backend.app.configs.config_singleton import get_config
from backend.app.utils.constant.constant import (
    ALLOWED_MIME_TYPES,
    EXTENSION_TO_MIME,
    FILE_SIGNATURES,
)
from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.system_utils.exceptions import BusinessRuleError


def get_file_signature(content: bytes) -> Optional[str]:
    """
    Determine the file type from its magic bytes.

    Args:
        content: The first bytes of the file.

    Returns:
        The file type key of FILE_SIGNATURES (e.g. 'pdf'), or None.
    """
    if not content or len(content) < 4:
        return None
    for file_type, signatures in FILE_SIGNATURES.items():
        for signature, offset in signatures:
            if content[offset:offset + len(signature)] == signature:
                return file_type
    return None


def sanitize_filename(filename: Optional[str]) -> str:
    """Strip path separators, control and shell characters from a filename."""
    if not filename:
        return "unnamed_file"
    filename = re.sub(r"[/\\]", "", filename)
    filename = re.sub(r"[\x00-\x1F\x7F]", "", filename)
    filename = re.sub(r"[;&|`$><^]", "", filename)
    if len(filename) > 255:
        base, ext = os.path.splitext(filename)
        filename = base[:250] + ext
    return filename or "unnamed_file"


def get_document_kind(filename: str) -> Optional[str]:
    """Return 'pdf' or 'txt' from the extension, None for other extensions."""
    ext = os.path.splitext(filename)[1].lower()
    if ext not in EXTENSION_TO_MIME:
        return None
    return ext.lstrip(".")


def validate_mime_type(content_type: Optional[str], allowed_types: Union[List[str], set]) -> bool:
    """
    Validate a declared MIME type, ignoring its parameters.

    A missing content type is accepted: browsers do not always send one.
    """
    if not content_type:
        return True
    normalized = content_type.split(";")[0].strip().lower()
    return normalized in set(allowed_types)


def validate_pdf_file(content: bytes) -> bool:
    """Check the PDF header and its version number."""
    if get_file_signature(content) != "pdf":
        return False
    match = re.search(rb"%PDF-(\d+)\.(\d+)", content[:20])
    if not match:
        return False
    return 1 <= int(match.group(1)) <= 9


def validate_text_file(content: bytes) -> bool:
    """Plain-text documents must be UTF-8 and hold no NUL byte."""
    if b"\x00" in content:
        return False
    try:
        content.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def validate_file_content(content: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[bool, str, Optional[str]]:
    """
    Validate an uploaded reference document.

    Args:
        content: The file content.
        filename: The original filename, used for the extension.
        content_type: The MIME type declared by the client.

    Returns:
        (is_valid, reason, kind) where kind is 'pdf' or 'txt'.
    """
    if not content:
        return False, "Fichier vide", None
    kind = get_document_kind(filename)
    if kind is None:
        return False, "Seuls les fichiers PDF et texte sont acceptés", None
    if not validate_mime_type(content_type, ALLOWED_MIME_TYPES[kind]):
        return False, f"Type de contenu incohérent: {content_type}", kind
    if kind == "pdf" and not validate_pdf_file(content):
        return False, "Structure de fichier PDF invalide", kind
    if kind == "txt" and not validate_text_file(content):
        return False, "Le fichier texte doit être encodé en UTF-8", kind
    return True, "", kind


async def read_and_validate_file(file: UploadFile) -> Tuple[bytes, str, str]:
    """
    Read an upload and validate it.

    Args:
        file: The uploaded file.

    Returns:
        (content, kind, sanitized filename).

    Raises:
        BusinessRuleError: If the file is too large or not a valid PDF/text document.
    """
    max_size = get_config("max_upload_size", 10 * 1024 * 1024)
    filename = sanitize_filename(file.filename)
    content = await file.read()
    log_info(f"[SECURITY] Upload read: {len(content) / 1024:.1f}KB")
    if len(content) > max_size:
        log_warning(f"[SECURITY] Upload exceeds limit: {len(content)} > {max_size} bytes")
        raise BusinessRuleError(f"Fichier trop volumineux (maximum {max_size // (1024 * 1024)} Mo)")
    is_valid, reason, kind = validate_file_content(content, filename, file.content_type)
    if not is_valid:
        log_warning(f"[SECURITY] Invalid upload rejected: {reason}")
        raise BusinessRuleError(reason)
    return content, kind, filename
