"""Models for test execution results."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

Status = Literal["passed", "failed", "errored", "skipped"]


@dataclass(frozen=True, kw_only=True)
class AssertionResult:
    """A single assertion evaluated by a testcase."""

    passed: bool
    message: str
    expected: str | None = None
    actual: str | None = None

    @property
    def failure_message(self) -> str:
        """Message as written to the report."""
        if self.expected is None:
            return self.message
        return f'{self.message} - expected "{self.expected}" but got: "{self.actual}"'


@dataclass(frozen=True, kw_only=True)
class TestcaseResult:
    """Outcome of one testcase execution attempt."""

    __test__ = False

    name: str
    status: Status
    time: float = 0.0
    assertions: Sequence[AssertionResult] = ()
    message: str | None = None
    error: BaseException | None = field(default=None, compare=False)
    stack_trace: str | None = None

    @property
    def failed_assertions(self) -> Sequence[AssertionResult]:
        return [assertion for assertion in self.assertions if not assertion.passed]


@dataclass(frozen=True, kw_only=True)
class ModuleResult:
    """Finalized results of one module.

    ``errors`` holds every exception captured while the module ran, in the
    order they occurred: errored testcases as well as hook and session
    failures.
    """

    key: str
    group_path: str
    name: str
    testcases: Sequence[TestcaseResult] = ()
    errors: Sequence[BaseException] = field(default=(), compare=False)
    report_prefix: str = ""

    @property
    def classname(self) -> str:
        return self.key.replace("/", ".")

    @property
    def time(self) -> float:
        return sum(testcase.time for testcase in self.testcases)

    @property
    def last_error(self) -> BaseException | None:
        return self.errors[-1] if self.errors else None

    @property
    def completed(self) -> Mapping[str, TestcaseResult]:
        """Testcases that passed, by name."""
        return self._by_status("passed")

    @property
    def failed(self) -> Mapping[str, TestcaseResult]:
        return self._by_status("failed")

    @property
    def errored(self) -> Mapping[str, TestcaseResult]:
        return self._by_status("errored")

    @property
    def skipped(self) -> Mapping[str, TestcaseResult]:
        return self._by_status("skipped")

    @property
    def tests(self) -> int:
        return len(self.testcases)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def module_errors(self) -> Sequence[BaseException]:
        """Errors not attributed to any testcase."""
        attributed = {id(testcase.error) for testcase in self.testcases}
        return [error for error in self.errors if id(error) not in attributed]

    def _by_status(self, status: Status) -> Mapping[str, TestcaseResult]:
        return {
            testcase.name: testcase
            for testcase in self.testcases
            if testcase.status == status
        }


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Totals over all modules of a run."""

    modules: int = 0
    tests: int = 0
    passed: int = 0
    failed: int = 0
    errored: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def has_failures(self) -> bool:
        return bool(self.failed or self.errors)
