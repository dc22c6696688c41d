"""CLI entry point for the test runner."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from nightrunner.errors import NightrunnerError
from nightrunner.loader import read_test_source
from nightrunner.models.settings import ReporterConfig, Settings
from nightrunner.orchestrator import Runner
from nightrunner.results import Results

DEFAULT_CONFIG_FILE = Path("nightrunner.json")

STATUS_SYMBOLS = {
    "passed": "✓",
    "failed": "✗",
    "errored": "!",
    "skipped": "-",
}


def log_results_summary(log: logging.Logger, results: Results) -> None:
    """Log a formatted summary of testcase outcomes per module."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for module in results.modules.values():
        for testcase in module.testcases:
            symbol = STATUS_SYMBOLS.get(testcase.status, "?")
            log.info(
                "%s %s.%s: %s (%.2fs)",
                symbol,
                module.classname,
                testcase.name,
                testcase.status,
                testcase.time,
            )
            if testcase.message:
                log.info("  Message: %s", testcase.message)
        for error in module.module_errors:
            log.info("! %s: %s", module.classname, error)

    summary = results.summary()
    log.info(
        "%d module(s), %d test(s): %d passed, %d failed, %d errored, %d skipped",
        summary.modules,
        summary.tests,
        summary.passed,
        summary.failed,
        summary.errored,
        summary.skipped,
    )


def load_settings(config_path: Path | None, overrides: dict[str, Any]) -> Settings:
    """Load settings from a JSON file, then apply command-line overrides."""
    if config_path is None and DEFAULT_CONFIG_FILE.is_file():
        config_path = DEFAULT_CONFIG_FILE

    if config_path is None:
        return Settings.parse(overrides)

    base = Settings.model_validate_json(config_path.read_text())
    validated = Settings.parse(overrides)
    return base.model_copy(update={key: getattr(validated, key) for key in overrides})


async def run(
    sources: Sequence[str],
    settings: Settings,
    reporter: str = "junit",
) -> int:
    """Discover and run tests and return the exit code."""
    log = logging.getLogger("nightrunner")

    try:
        runner = Runner.create(settings, ReporterConfig(reporter=reporter))
        test_source = await read_test_source(list(sources) or None, settings)
        await runner.run(test_source)
    except (NightrunnerError, FileNotFoundError) as e:
        log.error("%s", e)
        return 2

    log_results_summary(log, runner.results)

    if runner.results.last_error is not None:
        log.error("Last error: %s", runner.results.last_error)

    return 1 if runner.results.has_failures else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run test modules and write reports")
    parser.add_argument(
        "sources",
        nargs="*",
        help="Test files or folders (default: src_folders from the config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"JSON settings file (default: {DEFAULT_CONFIG_FILE} if present)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Folder for report files",
    )
    parser.add_argument(
        "--reporter",
        default="junit",
        help="Report format",
    )
    parser.add_argument(
        "--backend",
        default=None,
        help="Session backend key (e.g. webdriver)",
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Only run modules with this tag (repeatable)",
    )
    parser.add_argument(
        "--skiptags",
        action="append",
        default=[],
        help="Skip modules with this tag (repeatable)",
    )

    args = parser.parse_args()

    overrides: dict[str, Any] = {}
    if args.output is not None:
        overrides["output_folder"] = args.output
    if args.backend is not None:
        overrides["backend"] = args.backend
    if args.tag:
        overrides["tag_filter"] = args.tag
    if args.skiptags:
        overrides["skip_tags"] = args.skiptags

    settings = load_settings(args.config, overrides)

    logging.basicConfig(
        level=logging.INFO if settings.output else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(run(args.sources, settings, reporter=args.reporter))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
