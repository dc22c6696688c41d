"""JUnit-style XML reports, one file per module.

Files are laid out under the output folder following the module's group
path, so ``simple/sample`` run on Firefox lands in
``<output>/simple/FIREFOX_TEST_TEST_sample.xml``. When no output folder is
configured, files go flat into ``tests_output``. Rendering depends only on
the recorded results, so writing the same results twice produces identical
files.
"""

import asyncio
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from nightrunner.models.result import ModuleResult, TestcaseResult
from nightrunner.models.settings import DEFAULT_OUTPUT_FOLDER
from nightrunner.reporting.base import ReportWriter
from nightrunner.results import Results

log = logging.getLogger(__name__)

XML_ESCAPES = {
    ord("&"): "&amp;",
    ord("<"): "&lt;",
    ord(">"): "&gt;",
    ord('"'): "&#34;",
    ord("'"): "&#39;",
}

INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")


def escape_xml(value: object) -> str:
    """Escape text for use in XML content and attribute values."""
    return INVALID_XML_CHARS.sub("", str(value)).translate(XML_ESCAPES)


def report_path(
    module: ModuleResult, output_folder: Path, *, flat: bool = False
) -> Path:
    """Destination of a module's report under ``output_folder``.

    Reports are nested by group path unless ``flat`` is set.
    """
    filename = f"{module.name}.xml"
    if module.report_prefix:
        filename = f"{module.report_prefix}_{filename}"
    if flat:
        return output_folder / filename
    return output_folder.joinpath(*module.group_path.split("/"), filename)


def render_module(module: ModuleResult) -> str:
    """Render the XML document for one module."""
    classname = escape_xml(module.classname)
    lines = [
        '<?xml version="1.0" encoding="UTF-8" ?>',
        f'<testsuites errors="{module.error_count}" '
        f'failures="{module.failure_count}" tests="{module.tests}">',
        f'  <testsuite name="{classname}" '
        f'errors="{module.error_count}" '
        f'failures="{module.failure_count}" '
        'hostname="" id="" '
        f'package="{escape_xml(module.name)}" '
        f'skipped="{module.skipped_count}" '
        f'tests="{module.tests}" '
        f'time="{_seconds(module.time)}">',
    ]

    for testcase in module.testcases:
        lines.extend(_render_testcase(testcase, classname))

    if module.module_errors:
        lines.append("    <system-err>")
        lines.extend(
            f"      {escape_xml(f'{type(error).__name__}: {error}')}"
            for error in module.module_errors
        )
        lines.append("    </system-err>")

    lines.append("  </testsuite>")
    lines.append("</testsuites>")
    return "\n".join(lines) + "\n"


def _render_testcase(testcase: TestcaseResult, classname: str) -> Sequence[str]:
    lines = [
        f'    <testcase name="{escape_xml(testcase.name)}" '
        f'classname="{classname}" '
        f'time="{_seconds(testcase.time)}" '
        f'assertions="{len(testcase.assertions)}">'
    ]
    trace = escape_xml(testcase.stack_trace or "")

    if testcase.status == "failed":
        for assertion in testcase.failed_assertions:
            lines.append(
                f'      <failure message="{escape_xml(assertion.failure_message)}">'
                f"{trace}</failure>"
            )
    elif testcase.status == "errored":
        error_type = type(testcase.error).__name__ if testcase.error else "Error"
        lines.append(
            f'      <error message="{escape_xml(testcase.message or "")}" '
            f'type="{escape_xml(error_type)}">{trace}</error>'
        )
    elif testcase.status == "skipped":
        lines.append("      <skipped />")

    lines.append("    </testcase>")
    return lines


def _seconds(value: float) -> str:
    return f"{value:.4f}"


class JUnitReportWriter(ReportWriter):
    """Writes one JUnit XML document per module."""

    async def write(
        self, results: Results, output_folder: Path | Literal[False] | None
    ) -> Sequence[Path]:
        """Write a report for every module, in the order they ran.

        Without an output folder, files go flat into ``DEFAULT_OUTPUT_FOLDER``.
        """
        if output_folder is False:
            log.debug("Report writing disabled")
            return ()

        flat = output_folder is None
        root = DEFAULT_OUTPUT_FOLDER if output_folder is None else Path(output_folder)

        written: list[Path] = []
        for module in results.modules.values():
            path = report_path(module, root, flat=flat)
            await asyncio.to_thread(_write_file, path, render_module(module))
            log.info("Wrote report for %s to %s", module.key, path)
            written.append(path)

        return written


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
