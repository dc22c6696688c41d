"""Tests for the JUnit report writer."""

import re
from pathlib import Path

import pytest

from nightrunner.errors import ConfigurationError
from nightrunner.models.result import AssertionResult
from nightrunner.models.settings import DEFAULT_OUTPUT_FOLDER
from nightrunner.reporting import JUnitReportWriter, get_report_writer
from nightrunner.reporting.junit import escape_xml, render_module, report_path
from nightrunner.results import Results
from nightrunner.testing.factories import ModuleResultFactory, TestcaseResultFactory


@pytest.fixture
def results() -> Results:
    """Results of one passing and one failing module."""
    results = Results()
    results.record(
        ModuleResultFactory.build(
            key="simple/sample",
            group_path="simple",
            name="sample",
            report_prefix="FIREFOX_TEST_TEST",
            testcases=(
                TestcaseResultFactory.build(
                    name="demoTest",
                    time=0.0123,
                    assertions=(
                        AssertionResult(
                            passed=True,
                            message="Testing if element <#weblogin> is present.",
                        ),
                    ),
                ),
            ),
        )
    )
    results.record(
        ModuleResultFactory.build(
            key="withfailures/sample",
            group_path="withfailures",
            name="sample",
            testcases=(
                TestcaseResultFactory.build(
                    name="demoTest",
                    status="failed",
                    time=0.0,
                    message="Testing if element <#badElement> is present.",
                    assertions=(
                        AssertionResult(
                            passed=False,
                            message="Testing if element <#badElement> is present.",
                        ),
                    ),
                    stack_trace='File "sample.py", line 2',
                ),
            ),
        )
    )
    return results


def test_escape_xml() -> None:
    """Escapes markup characters and drops invalid control characters."""
    assert escape_xml('<a href="x">&\'\x01') == "&lt;a href=&#34;x&#34;&gt;&amp;&#39;"


def test_report_path_with_prefix(results: Results) -> None:
    """Places reports under the group path, prefixed by the session prefix."""
    module = results.modules["simple/sample"]

    assert report_path(module, Path("out")) == Path(
        "out/simple/FIREFOX_TEST_TEST_sample.xml"
    )


def test_report_path_flat(results: Results) -> None:
    """Flat paths drop the group folders."""
    module = results.modules["simple/sample"]

    assert report_path(module, Path("out"), flat=True) == Path(
        "out/FIREFOX_TEST_TEST_sample.xml"
    )


def test_report_path_without_group() -> None:
    """Top-level modules without a prefix land directly in the folder."""
    module = ModuleResultFactory.build(key="sample", name="sample")

    assert report_path(module, Path("out")) == Path("out/sample.xml")


def test_render_passing_module(results: Results) -> None:
    """Renders suite and testcase attributes of a passing module."""
    content = render_module(results.modules["simple/sample"])

    assert content.startswith('<?xml version="1.0" encoding="UTF-8" ?>\n')
    assert re.search(
        r'<testsuite name="simple\.sample"\s+errors="0"\s+failures="0"\s+'
        r'hostname=""\s+id=""\s+package="sample"\s+skipped="0"\s+tests="1"',
        content,
    )
    assert (
        '<testcase name="demoTest" classname="simple.sample" '
        'time="0.0123" assertions="1">' in content
    )
    assert "<failure" not in content


def test_render_failing_module(results: Results) -> None:
    """Failed assertions become escaped failure elements."""
    content = render_module(results.modules["withfailures/sample"])

    assert 'failures="1"' in content
    assert (
        '<failure message="Testing if element &lt;#badElement&gt; is present.">'
        "File &#34;sample.py&#34;, line 2</failure>" in content
    )


def test_render_errored_and_skipped() -> None:
    """Errors render with their type; skipped testcases are marked."""
    error = KeyError("boom")
    module = ModuleResultFactory.build(
        key="sample",
        name="sample",
        testcases=(
            TestcaseResultFactory.build(
                name="bad", status="errored", message="KeyError: 'boom'", error=error
            ),
            TestcaseResultFactory.build(name="later", status="skipped"),
        ),
        errors=(error, RuntimeError("after hook failed")),
    )

    content = render_module(module)

    assert '<error message="KeyError: &#39;boom&#39;" type="KeyError">' in content
    assert "<skipped />" in content
    assert "RuntimeError: after hook failed" in content
    assert 'errors="2"' in content


async def test_writes_one_file_per_module(tmp_path: Path, results: Results) -> None:
    """Writes a report per module and returns their paths."""
    written = await JUnitReportWriter().write(results, tmp_path)

    assert written == [
        tmp_path / "simple" / "FIREFOX_TEST_TEST_sample.xml",
        tmp_path / "withfailures" / "sample.xml",
    ]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["simple", "withfailures"]


async def test_unset_output_writes_flat_default_folder(
    tmp_path: Path, results: Results, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without an output folder, reports go flat into the default folder."""
    monkeypatch.chdir(tmp_path)

    written = await JUnitReportWriter().write(results, None)

    assert written == [
        DEFAULT_OUTPUT_FOLDER / "FIREFOX_TEST_TEST_sample.xml",
        DEFAULT_OUTPUT_FOLDER / "sample.xml",
    ]
    assert sorted(p.name for p in (tmp_path / "tests_output").iterdir()) == [
        "FIREFOX_TEST_TEST_sample.xml",
        "sample.xml",
    ]


async def test_writing_twice_is_identical(tmp_path: Path, results: Results) -> None:
    """Writing the same results twice produces identical files."""
    writer = JUnitReportWriter()

    (path, _) = await writer.write(results, tmp_path)
    first = path.read_text()
    await writer.write(results, tmp_path)

    assert path.read_text() == first


async def test_disabled_output_writes_nothing(
    tmp_path: Path, results: Results, monkeypatch: pytest.MonkeyPatch
) -> None:
    """No files are written when the output folder is False."""
    monkeypatch.chdir(tmp_path)

    written = await JUnitReportWriter().write(results, False)

    assert written == ()
    assert list(tmp_path.iterdir()) == []


def test_get_report_writer() -> None:
    """Looks up report writers by name."""
    assert isinstance(get_report_writer("junit"), JUnitReportWriter)

    with pytest.raises(ConfigurationError, match="Unknown reporter"):
        get_report_writer("html")
