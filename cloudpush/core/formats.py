"""Export formats and the file names and content types they produce."""
import mimetypes
from enum import Enum
from typing import Dict, Tuple


class ExportFormat(Enum):
    """Report export targets."""
    PDF = "pdf"
    RTF = "rtf"
    XLS = "xls"
    XLSX = "xlsx"
    DOCX = "docx"
    XPS = "xps"
    MHTML = "mhtml"
    TEXT = "text"
    PPTX = "pptx"
    # Multi-file exports (HTML, pictures, ...) are shipped as one archive
    ARCHIVE = "archive"


_FORMATS: Dict[ExportFormat, Tuple[str, str]] = {
    ExportFormat.PDF: (".pdf", "application/pdf"),
    ExportFormat.RTF: (".rtf", "application/rtf"),
    ExportFormat.XLS: (".xls", "application/vnd.ms-excel"),
    ExportFormat.XLSX: (
        ".xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ),
    ExportFormat.DOCX: (
        ".docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    ),
    ExportFormat.XPS: (".xps", "application/vnd.ms-xpsdocument"),
    ExportFormat.MHTML: (".mhtml", "message/rfc822"),
    ExportFormat.TEXT: (".txt", "text/plain"),
    ExportFormat.PPTX: (
        ".pptx",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    ),
    ExportFormat.ARCHIVE: (".zip", "application/zip"),
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def extension_for(fmt: ExportFormat) -> str:
    return _FORMATS[fmt][0]


def cloud_file_name(base_name: str, fmt: ExportFormat) -> str:
    """
    Append the export format's extension to ``base_name``.
    
    Example:
        >>> cloud_file_name("Invoices", ExportFormat.XLSX)
        'Invoices.xlsx'
    """
    extension = extension_for(fmt)
    if base_name.lower().endswith(extension):
        return base_name
    return f"{base_name}{extension}"


def mime_type_for(file_name: str) -> str:
    """Content type for a file name, falling back to octet-stream."""
    lowered = file_name.lower()
    for extension, mime_type in _FORMATS.values():
        if lowered.endswith(extension):
            return mime_type
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_MIME_TYPE
