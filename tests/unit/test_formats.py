"""Tests for export formats."""
import pytest

from cloudpush import ExportFormat, cloud_file_name, mime_type_for
from cloudpush.core.formats import extension_for


class TestExportFormats:
    """Test suite for export file naming."""
    
    @pytest.mark.parametrize("fmt,extension", [
        (ExportFormat.PDF, ".pdf"),
        (ExportFormat.XLSX, ".xlsx"),
        (ExportFormat.TEXT, ".txt"),
        (ExportFormat.MHTML, ".mhtml"),
        (ExportFormat.ARCHIVE, ".zip"),
    ])
    def test_extension_for(self, fmt, extension):
        """Test each format has its extension."""
        assert extension_for(fmt) == extension
    
    def test_every_format_has_extension(self):
        """Test the table covers the whole enum."""
        for fmt in ExportFormat:
            assert extension_for(fmt).startswith(".")
    
    def test_cloud_file_name(self):
        """Test the extension is appended to the base name."""
        assert cloud_file_name("Invoices", ExportFormat.XLSX) == "Invoices.xlsx"
    
    def test_cloud_file_name_keeps_existing_extension(self):
        """Test the extension is not appended twice."""
        assert cloud_file_name("Invoices.PDF", ExportFormat.PDF) == "Invoices.PDF"
    
    @pytest.mark.parametrize("name,mime_type", [
        ("a.pdf", "application/pdf"),
        ("a.xls", "application/vnd.ms-excel"),
        (
            "a.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        ),
        ("a.txt", "text/plain"),
        ("a.zip", "application/zip"),
    ])
    def test_mime_type_for(self, name, mime_type):
        """Test known extensions map to their content type."""
        assert mime_type_for(name) == mime_type
    
    def test_mime_type_fallback(self):
        """Test unknown extensions fall back to octet-stream."""
        assert mime_type_for("blob.unknownext") == "application/octet-stream"
        assert mime_type_for("noextension") == "application/octet-stream"
