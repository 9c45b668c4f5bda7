# src/nacsim_core/export/manager.py
"""
Runs the export emitters for one evaluated circuit.

The circuit is evaluated once when the manager is created; every format is then
written from the same `ExportContext`. A failing emitter only fails its own
format: its `EmissionError` becomes an unsuccessful `ExportResult` and the other
formats are still written.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..analysis import build_report, evaluate_circuit, project_records
from ..data_structures import Circuit
from ..errors import EmissionError
from ..settings import Settings
from .context import ExportContext, current_user
from .csv_export import write_csv_report, write_excel_fallback
from .exceptions import UnsupportedFormatError
from .json_export import write_json_report
from .pdf_export import write_pdf_report
from .xlsx_export import write_workbook

logger = logging.getLogger(__name__)

Emitter = Callable[[ExportContext, Path], None]


@dataclass(frozen=True)
class ExportFormat:
    name: str
    extension: str
    emitter: Emitter
    description: str


EXPORT_FORMATS: Dict[str, ExportFormat] = {
    "csv": ExportFormat("csv", "csv", write_csv_report, "Delimited text report"),
    "excel": ExportFormat("excel", "xlsx", write_workbook, "Workbook with live formulas"),
    "excel_fallback": ExportFormat("excel_fallback", "xls", write_excel_fallback, "Delimited text with a spreadsheet extension"),
    "pdf": ExportFormat("pdf", "pdf", write_pdf_report, "Paginated PDF report"),
    "json": ExportFormat("json", "json", write_json_report, "Structured JSON record"),
}


@dataclass(frozen=True)
class ExportResult:
    export_format: str
    success: bool
    output_path: Optional[Path] = None
    error: Optional[str] = None


def export_file_name(project_name: str, timestamp: datetime, extension: str) -> str:
    """'<project>_CircuitAnalysis_<yyyymmdd_hhmmss>.<ext>', with unsafe characters replaced."""
    safe = re.sub(r"[^\w\-]+", "_", project_name).strip("_") or "Circuit"
    return f"{safe}_CircuitAnalysis_{timestamp:%Y%m%d_%H%M%S}.{extension}"


class ExportManager:
    """
    Evaluates a circuit once and writes it in any number of formats.

    Args:
        circuit: The built circuit to export.
        settings: Validation limits and the default export directory.
        exported_by: Name recorded in the metadata; defaults to the login name.
        timestamp: Export time used for file names and metadata; defaults to now.
    """

    def __init__(
        self,
        circuit: Circuit,
        settings: Optional[Settings] = None,
        exported_by: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ):
        self.circuit = circuit
        self.settings = settings or Settings()
        results = evaluate_circuit(circuit)
        records = project_records(circuit.tree, results)
        report = build_report(circuit.tree, results, self.settings, records=records)
        self.context = ExportContext(
            tree=circuit.tree,
            parameters=circuit.parameters,
            results=results,
            records=records,
            report=report,
            settings=self.settings,
            project_name=circuit.project_name or self.settings.project_name,
            project_path=circuit.project_path or self.settings.project_path,
            exported_at=timestamp or datetime.now(),
            exported_by=exported_by or current_user(),
        )

    @staticmethod
    def resolve_format(export_format: str) -> ExportFormat:
        key = str(export_format).strip().lower()
        if key not in EXPORT_FORMATS:
            raise UnsupportedFormatError(export_format, EXPORT_FORMATS.keys())
        return EXPORT_FORMATS[key]

    def output_path_for(self, export_format: str, output_dir: Optional[Union[str, Path]] = None) -> Path:
        fmt = self.resolve_format(export_format)
        directory = Path(output_dir) if output_dir is not None else self.settings.export_directory
        return directory / export_file_name(self.context.project_name, self.context.exported_at, fmt.extension)

    def export(self, export_format: str, output_dir: Optional[Union[str, Path]] = None) -> ExportResult:
        """
        Writes one format. Raises `UnsupportedFormatError` for unknown formats;
        emitter failures are returned as an unsuccessful result.
        """
        fmt = self.resolve_format(export_format)
        path = self.output_path_for(fmt.name, output_dir)
        logger.info(f"Exporting '{self.context.circuit_name}' as {fmt.name} to '{path}'...")
        try:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise EmissionError(fmt.name, f"Cannot create output directory: {e}", path.parent) from e
            fmt.emitter(self.context, path)
        except EmissionError as e:
            logger.error(f"{fmt.name} export of '{self.context.circuit_name}' failed: {e.details}")
            return ExportResult(export_format=fmt.name, success=False, output_path=None, error=str(e))
        logger.info(f"{fmt.name} export written to '{path}'.")
        return ExportResult(export_format=fmt.name, success=True, output_path=path)

    def export_many(self, formats: Iterable[str], output_dir: Optional[Union[str, Path]] = None) -> List[ExportResult]:
        """Writes several formats; all names are checked before anything is written."""
        resolved = [self.resolve_format(f) for f in formats]
        return [self.export(fmt.name, output_dir) for fmt in resolved]
