"""Runner coordinating test execution module by module."""

import logging
import time
import traceback
from collections.abc import Mapping, Sequence
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from nightrunner.backends.loading import load_backend_manifest
from nightrunner.backends.manifest import BackendManifest
from nightrunner.client import TestClient
from nightrunner.completion import run_step
from nightrunner.errors import AssertionFailure, EmptySourceError, SessionError
from nightrunner.models.result import (
    AssertionResult,
    ModuleResult,
    RunSummary,
    Status,
    TestcaseResult,
)
from nightrunner.models.settings import ReporterConfig, Settings
from nightrunner.models.source import Step, TestModule, TestSource
from nightrunner.reporting import ReportWriter, get_report_writer
from nightrunner.results import Results
from nightrunner.session import Session, SessionManager

log = logging.getLogger(__name__)


class ModuleState(Enum):
    PENDING = "pending"
    HOOKS_BEFORE = "hooks_before"
    RUNNING_TESTCASES = "running_testcases"
    HOOKS_AFTER = "hooks_after"
    FINALIZED = "finalized"


class TestcaseState(Enum):
    __test__ = False

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"


def describe_error(error: BaseException) -> str:
    """One-line message for an error outcome."""
    text = str(error)
    if isinstance(error, TimeoutError) and text:
        return text
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


def format_trace(error: BaseException) -> str:
    return "".join(traceback.format_exception(error)).rstrip()


@dataclass(kw_only=True)
class ModuleExecution:
    """Runs one module's hooks and testcases and collects their outcomes.

    Outcomes are accumulated here while the module runs; ``finalize`` turns
    them into an immutable ``ModuleResult``.
    """

    module: TestModule
    client: TestClient
    timeout_ms: int
    skip_on_fail: bool = False
    report_prefix: str = ""
    state: ModuleState = ModuleState.PENDING
    testcases: list[TestcaseResult] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)

    async def run(self) -> None:
        self._transition(ModuleState.HOOKS_BEFORE)
        await self._run_module_hook("before")

        self._transition(ModuleState.RUNNING_TESTCASES)
        for testcase in self.module.testcases:
            if self.skip_on_fail and self._has_failed():
                self.skip(testcase)
                continue
            await self._run_testcase(testcase)

        self._transition(ModuleState.HOOKS_AFTER)
        await self._run_module_hook("after")
        self._transition(ModuleState.FINALIZED)

    def skip(self, testcase: Step) -> None:
        log.info("Skipping %s.%s", self.module.key, testcase.name)
        self.testcases.append(TestcaseResult(name=testcase.name, status="skipped"))

    def finalize(self) -> ModuleResult:
        return ModuleResult(
            key=self.module.key,
            group_path=self.module.group_path,
            name=self.module.name,
            testcases=tuple(self.testcases),
            errors=tuple(self.errors),
            report_prefix=self.report_prefix,
        )

    def _transition(self, state: ModuleState) -> None:
        log.debug(
            "Module %s: %s -> %s", self.module.key, self.state.value, state.value
        )
        self.state = state

    def _has_failed(self) -> bool:
        return any(
            result.status in {"failed", "errored"} for result in self.testcases
        )

    async def _run_module_hook(self, name: str) -> None:
        if (error := await self._run_hook(name)) is not None:
            self.errors.append(error)

    async def _run_hook(self, name: str) -> Exception | None:
        """Run a hook if the module defines it, returning what it raised."""
        hook = self.module.hooks.get(name)
        if hook is None:
            return None

        try:
            await run_step(hook, self.client, timeout_ms=self.timeout_ms)
        except Exception as e:
            log.error(
                "Error in %s hook of %s: %s", name, self.module.key, e, exc_info=e
            )
            return e
        return None

    async def _run_testcase(self, testcase: Step) -> None:
        """Run one testcase wrapped by the each-hooks and record its outcome."""
        self.client.begin_testcase(testcase.name)
        state = TestcaseState.PENDING
        failure: AssertionError | None = None
        elapsed = 0.0

        error = await self._run_hook("before_each")
        if error is None:
            state = TestcaseState.RUNNING
            log.debug("Running %s.%s", self.module.key, testcase.name)
            started = time.perf_counter()
            try:
                await run_step(testcase, self.client, timeout_ms=self.timeout_ms)
                state = TestcaseState.COMPLETED
            except AssertionError as e:
                failure = e
                state = TestcaseState.COMPLETED
                if not isinstance(e, AssertionFailure):
                    self.client.record(
                        AssertionResult(passed=False, message=describe_error(e))
                    )
            except TimeoutError as e:
                error = e
                state = TestcaseState.TIMED_OUT
            except Exception as e:
                error = e
                state = TestcaseState.ERRORED
            finally:
                elapsed = time.perf_counter() - started
        else:
            state = TestcaseState.ERRORED

        if (after_error := await self._run_hook("after_each")) is not None:
            self.errors.append(after_error)

        assertions = self.client.end_testcase()
        result = self._outcome(testcase.name, elapsed, assertions, failure, error)
        log.debug(
            "Testcase %s.%s %s as %s",
            self.module.key,
            testcase.name,
            state.value,
            result.status,
        )
        self.testcases.append(result)

    def _outcome(
        self,
        name: str,
        elapsed: float,
        assertions: Sequence[AssertionResult],
        failure: AssertionError | None,
        error: Exception | None,
    ) -> TestcaseResult:
        status: Status = "passed"
        message: str | None = None
        trace: str | None = None
        failed = [assertion for assertion in assertions if not assertion.passed]

        if error is not None:
            status = "errored"
            message = describe_error(error)
            trace = format_trace(error)
            self.errors.append(error)
            log.error(
                "%s.%s errored: %s", self.module.key, name, message, exc_info=error
            )
        elif failed:
            status = "failed"
            message = failed[0].failure_message
            trace = format_trace(failure) if failure is not None else None
            log.info("%s.%s failed: %s", self.module.key, name, message)

        return TestcaseResult(
            name=name,
            status=status,
            time=elapsed,
            assertions=tuple(assertions),
            message=message,
            error=error,
            stack_trace=trace,
        )


@dataclass(kw_only=True)
class Runner:
    """Runs discovered modules sequentially and reports their results."""

    settings: Settings
    report_writer: ReportWriter
    backend_manifest: BackendManifest[Any] | None = None
    results: Results = field(default_factory=Results)

    @classmethod
    def create(
        cls,
        settings: Settings,
        reporter_config: ReporterConfig | Mapping[str, Any] | None = None,
        *,
        backend_manifest: BackendManifest[Any] | None = None,
    ) -> "Runner":
        """Create a runner for ``settings`` using the configured reporter."""
        if not isinstance(reporter_config, ReporterConfig):
            reporter_config = ReporterConfig.model_validate(
                dict(reporter_config or {})
            )

        return cls(
            settings=settings,
            report_writer=get_report_writer(reporter_config.reporter),
            backend_manifest=backend_manifest,
        )

    async def run(self, test_source: TestSource) -> RunSummary:
        """Run all modules of ``test_source`` and write their reports.

        Testcase failures and errors do not make this raise; inspect
        ``results.last_error`` or the returned summary instead.

        Raises:
            EmptySourceError: If the source contains no modules

        """
        if not test_source.modules:
            raise EmptySourceError(test_source.source_folder)

        log.info("Running %d module(s)...", len(test_source.modules))
        async with AsyncExitStack() as stack:
            sessions: SessionManager | None = None
            for module in test_source.modules:
                if not module.unit_test and sessions is None:
                    sessions = await self._open_backend(stack)
                module_result = await self._run_module(
                    module, None if module.unit_test else sessions
                )
                self.results.record(module_result)

        await self.report_writer.write(self.results, self.settings.output_folder)

        summary = self.results.summary()
        log.info(
            "Run completed: %d passed, %d failed, %d errored, %d skipped",
            summary.passed,
            summary.failed,
            summary.errored,
            summary.skipped,
        )
        return summary

    async def _open_backend(self, stack: AsyncExitStack) -> SessionManager:
        manifest = self.backend_manifest or load_backend_manifest(
            self.settings.backend
        )
        config = manifest.config_cls.model_validate(self.settings.backend_options())
        backend = await stack.enter_async_context(manifest.backend_factory(config))
        return SessionManager(backend=backend)

    async def _run_module(
        self, module: TestModule, sessions: SessionManager | None
    ) -> ModuleResult:
        log.info(
            "Running module %s (%d testcase(s))", module.key, len(module.testcases)
        )

        if sessions is None:
            execution = self._execution(module, session=None)
            await execution.run()
            return execution.finalize()

        try:
            session = await sessions.start()
        except SessionError as e:
            log.error("Cannot run module %s: %s", module.key, e, exc_info=e)
            execution = self._execution(module, session=None)
            for testcase in module.testcases:
                execution.skip(testcase)
            execution.errors.append(e)
            return execution.finalize()

        execution = self._execution(module, session=session)
        try:
            await execution.run()
        finally:
            try:
                await sessions.stop(session)
            except SessionError as e:
                log.error("%s", e, exc_info=e)
                execution.errors.append(e)

        return execution.finalize()

    def _execution(
        self, module: TestModule, session: Session | None
    ) -> ModuleExecution:
        client = TestClient(
            session=session,
            globals=self.settings.globals.as_mapping(),
            module_key=module.key,
        )
        return ModuleExecution(
            module=module,
            client=client,
            timeout_ms=module.async_hook_timeout
            or self.settings.globals.async_hook_timeout,
            skip_on_fail=self.settings.skip_testcases_on_fail,
            report_prefix=session.report_prefix if session is not None else "",
        )
