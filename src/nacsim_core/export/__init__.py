# src/nacsim_core/export/__init__.py
from .context import ExportContext
from .exceptions import UnsupportedFormatError
from .manager import EXPORT_FORMATS, ExportFormat, ExportManager, ExportResult, export_file_name
from .csv_export import write_csv_report, write_excel_fallback
from .json_export import build_json_document, write_json_report
from .pdf_export import write_pdf_report
from .xlsx_export import write_workbook

__all__ = [
    # Manager
    "ExportManager",
    "ExportResult",
    "ExportFormat",
    "EXPORT_FORMATS",
    "export_file_name",
    "ExportContext",
    "UnsupportedFormatError",
    # Emitters
    "write_csv_report",
    "write_excel_fallback",
    "build_json_document",
    "write_json_report",
    "write_pdf_report",
    "write_workbook",
]
