"""Report writers."""

from nightrunner.reporting.base import ReportWriter
from nightrunner.reporting.junit import JUnitReportWriter
from nightrunner.reporting.loading import get_report_writer

__all__ = ["JUnitReportWriter", "ReportWriter", "get_report_writer"]
