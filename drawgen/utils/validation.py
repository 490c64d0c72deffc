"""
Error taxonomy and input validation for draw route conversion.

Every failure of the conversion core is one of two kinds, both fatal:
malformed input (bad operand stack, unknown resource, unsupported operator)
and unsupported source shape (wrong page count, unknown file type).
"""

import os
import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'SUPPORTED_EXTENSIONS': ('.pdf',),
}


class DrawgenError(Exception):
    """Base class for conversion errors; `file` names the offending input once known"""

    def __init__(self, message: str, file: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file = file

    def with_file(self, file: str) -> 'DrawgenError':
        if self.file is None:
            self.file = file
        return self

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}: {self.message}"
        return self.message


class MalformedInputError(DrawgenError):
    """Operand stack underflow/type mismatch, unknown named resource or unsupported operator"""
    pass


class UnsupportedSourceShapeError(DrawgenError):
    """Source does not map to exactly one image (multi-page, unknown format)"""
    pass


def validate_pdf_signature(file_path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate PDF file signature (magic bytes)

    Args:
        file_path: Path to the PDF file

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        with open(file_path, 'rb') as f:
            header = f.read(8)
    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except PermissionError:
        return False, f"Permission denied accessing file: {file_path}"

    if len(header) < 4:
        return False, "File too small to be a valid PDF"

    if not header.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, f"Invalid PDF signature. Expected {VALIDATION_CONSTANTS['PDF_SIGNATURE']}, got {header[:4]}"

    return True, None


def validate_source_file(file_path: str) -> None:
    """
    Check that a source file exists and has a supported format.

    Raises:
        FileNotFoundError: If file does not exist
        UnsupportedSourceShapeError: If the extension is not supported
        MalformedInputError: If the PDF signature is missing
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Source file not found: {file_path}")

    ext = os.path.splitext(file_path)[1].lower()
    if ext not in VALIDATION_CONSTANTS['SUPPORTED_EXTENSIONS']:
        raise UnsupportedSourceShapeError(f"Unsupported file extension '{ext}'", file=file_path)

    is_valid, error = validate_pdf_signature(file_path)
    if not is_valid:
        raise MalformedInputError(error, file=file_path)

    logger.debug(f"Source file validation passed: {file_path}")


__all__ = [
    'DrawgenError',
    'MalformedInputError',
    'UnsupportedSourceShapeError',
    'validate_pdf_signature',
    'validate_source_file',
    'VALIDATION_CONSTANTS',
]
