"""Lookup of report writers by reporter name."""

from collections.abc import Mapping

from nightrunner.errors import ConfigurationError
from nightrunner.reporting.base import ReportWriter
from nightrunner.reporting.junit import JUnitReportWriter

REPORT_WRITERS: Mapping[str, type[ReportWriter]] = {
    "junit": JUnitReportWriter,
}


def get_report_writer(name: str) -> ReportWriter:
    """Instantiate the report writer registered under ``name``.

    Raises:
        ConfigurationError: If no writer is registered under ``name``

    """
    try:
        writer_cls = REPORT_WRITERS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown reporter '{name}'. Available reporters: {sorted(REPORT_WRITERS)}"
        ) from None
    return writer_cls()
