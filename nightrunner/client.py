"""Client object handed to test steps."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from nightrunner.errors import AssertionFailure
from nightrunner.models.result import AssertionResult
from nightrunner.session import Session


@dataclass(kw_only=True)
class TestClient:
    """Gives steps the session handle, the globals and assertion helpers.

    Assertion helpers record every evaluation against the running testcase.
    A failing helper raises ``AssertionFailure`` so the testcase stops.
    """

    __test__ = False

    session: Session | None
    globals: Mapping[str, Any] = field(default_factory=dict)
    module_key: str = ""
    current_test: str | None = None
    _assertions: list[AssertionResult] = field(default_factory=list, repr=False)

    @property
    def assertions(self) -> Sequence[AssertionResult]:
        return tuple(self._assertions)

    def begin_testcase(self, name: str) -> None:
        """Start a fresh assertion log for ``name``."""
        self.current_test = name
        self._assertions = []

    def end_testcase(self) -> Sequence[AssertionResult]:
        """Close the current testcase and return its assertions."""
        recorded = self.assertions
        self.current_test = None
        self._assertions = []
        return recorded

    def record(self, assertion: AssertionResult) -> None:
        self._assertions.append(assertion)

    def assert_ok(self, value: Any, message: str | None = None) -> None:
        """Assert that ``value`` is truthy."""
        self._check(
            bool(value),
            message or f"{value!r} is truthy",
        )

    def assert_equal(
        self, actual: Any, expected: Any, message: str | None = None
    ) -> None:
        """Assert ``actual == expected``, reporting both on failure."""
        self._check(
            actual == expected,
            message or f"{actual} == {expected}",
            expected=str(expected),
            actual=str(actual),
        )

    def assert_not_equal(
        self, actual: Any, expected: Any, message: str | None = None
    ) -> None:
        self._check(
            actual != expected,
            message or f"{actual} != {expected}",
            expected=f"not {expected}",
            actual=str(actual),
        )

    def assert_in(
        self, member: Any, container: Any, message: str | None = None
    ) -> None:
        self._check(
            member in container,
            message or f"{member!r} in {container!r}",
            expected=f"to contain {member}",
            actual=str(container),
        )

    def _check(
        self,
        passed: bool,
        message: str,
        *,
        expected: str | None = None,
        actual: str | None = None,
    ) -> None:
        assertion = AssertionResult(
            passed=passed, message=message, expected=expected, actual=actual
        )
        self.record(assertion)
        if not passed:
            raise AssertionFailure(assertion.failure_message)
