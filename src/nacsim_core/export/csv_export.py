# src/nacsim_core/export/csv_export.py
import csv
import logging
from pathlib import Path

from ..errors import EmissionError
from .context import ExportContext
from .tables import DEVICE_TABLE_HEADERS, device_row, issue_rows, parameter_rows, summary_rows

logger = logging.getLogger(__name__)


def write_csv_report(context: ExportContext, path: Path, export_format: str = "csv") -> None:
    """
    Writes the circuit report as sectioned delimited text: header, parameters,
    summary, device details and validation findings.
    """
    try:
        with Path(path).open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Circuit Analysis Report"])
            writer.writerow(["Project", context.project_name])
            writer.writerow(["Circuit", context.circuit_name])
            writer.writerow(["Generated", context.exported_at.strftime("%Y-%m-%d %H:%M:%S")])
            writer.writerow([])

            writer.writerow(["PARAMETERS"])
            writer.writerows(parameter_rows(context.parameters))
            writer.writerow([])

            writer.writerow(["SUMMARY"])
            writer.writerows(summary_rows(context.report))
            writer.writerow([])

            writer.writerow(["DEVICE DETAILS"])
            writer.writerow(DEVICE_TABLE_HEADERS)
            writer.writerows(device_row(r) for r in context.records)
            writer.writerow([])

            writer.writerow(["VALIDATION"])
            writer.writerow(["Status", "PASS" if context.report.is_valid else "FAIL"])
            writer.writerows(issue_rows(context.report))
    except (OSError, csv.Error) as e:
        raise EmissionError(export_format, str(e), path) from e
    logger.debug(f"Wrote {len(context.records)} device rows to '{path}'.")


def write_excel_fallback(context: ExportContext, path: Path) -> None:
    """Delimited text saved under a spreadsheet extension, for hosts without workbook support."""
    write_csv_report(context, path, export_format="excel_fallback")
