# src/nacsim_core/export/exceptions.py
from typing import Iterable

from ..errors import ConfigurationError, format_diagnostic_report


class UnsupportedFormatError(ConfigurationError):
    """Raised when an export is requested in a format no emitter handles."""
    def __init__(self, export_format: str, available_formats: Iterable[str]):
        self.export_format = export_format
        self.available_formats = sorted(available_formats)
        super().__init__(
            f"Unsupported export format '{export_format}'. Available formats: {', '.join(self.available_formats)}."
        )

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unsupported Export Format",
            details=str(self),
            suggestion="Request one of the listed formats.",
            context={'user_input': self.export_format}
        )
