"""Completion of test steps: the done() signal, bounded waits and
interception of uncaught exceptions.

A synchronous step is simply called. An asynchronous step (one taking a
``done`` parameter, or an ``async def``) opens a completion window: a
``CompletionSignal`` future is created, uncaught-exception handlers are
swapped in for the window only, and the future is awaited under a timeout.
The window resolves exactly once, either by completion (``done()``, task
result, or an intercepted exception) or by the timeout.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from nightrunner.errors import CompletionTimeoutError
from nightrunner.models.source import Step

log = logging.getLogger(__name__)


class CompletionSignal:
    """The done() callback handed to asynchronous steps.

    Safe to call from any thread. Calls after the first are ignored.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, step_name: str) -> None:
        self._loop = loop
        self._step_name = step_name
        self._future: asyncio.Future[None] = loop.create_future()

    def __call__(self, err: BaseException | str | None = None) -> None:
        """Signal completion; a non-None ``err`` fails the step."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._settle(err)
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._settle, err)
        else:
            log.warning("done() called for %s after the run ended", self._step_name)

    @property
    def settled(self) -> bool:
        return self._future.done()

    def fail(self, exc: BaseException) -> None:
        self._settle(exc)

    async def wait(self) -> None:
        await self._future

    def _settle(self, err: BaseException | str | None) -> None:
        if self._future.done():
            log.warning(
                "done() called for %s after it already completed, ignoring",
                self._step_name,
            )
            return

        if err is None:
            self._future.set_result(None)
        elif isinstance(err, BaseException):
            self._future.set_exception(err)
        else:
            self._future.set_exception(RuntimeError(str(err)))


@contextmanager
def intercept_uncaught(
    loop: asyncio.AbstractEventLoop, signal: CompletionSignal
) -> Iterator[None]:
    """Route uncaught exceptions to ``signal`` for the duration of the block.

    Covers exceptions reaching the event loop's exception handler (callbacks,
    unretrieved task exceptions) and exceptions escaping threads. The
    previous handlers are restored on exit.
    """
    previous_loop_handler = loop.get_exception_handler()
    previous_thread_hook = threading.excepthook

    def loop_handler(
        handler_loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exc = context.get("exception")
        if exc is None:
            handler_loop.default_exception_handler(context)
            return
        signal.fail(exc)

    def thread_hook(args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None or issubclass(args.exc_type, SystemExit):
            previous_thread_hook(args)
            return
        loop.call_soon_threadsafe(signal.fail, args.exc_value)

    loop.set_exception_handler(loop_handler)
    threading.excepthook = thread_hook
    try:
        yield
    finally:
        loop.set_exception_handler(previous_loop_handler)
        threading.excepthook = previous_thread_hook


def _call_arguments(
    step: Step, client: Any, done: Callable[..., None] | None
) -> tuple[list[Any], dict[str, Any]]:
    args = [client] if step.takes_client else []
    kwargs = {"done": done} if step.expects_done else {}
    return args, kwargs


async def run_step(step: Step, client: Any, *, timeout_ms: int) -> None:
    """Run a hook or testcase body until it completes.

    Raises:
        CompletionTimeoutError: If an asynchronous step does not complete
            within ``timeout_ms`` milliseconds
        Exception: Whatever the step raised, synchronously or through the
            completion window

    """
    if not step.is_async:
        args, kwargs = _call_arguments(step, client, None)
        step.func(*args, **kwargs)
        return

    loop = asyncio.get_running_loop()
    signal = CompletionSignal(loop, step.name)
    task: asyncio.Task[Any] | None = None

    def on_task_done(finished: asyncio.Task[Any]) -> None:
        if finished.cancelled() or signal.settled:
            return
        if (exc := finished.exception()) is not None:
            signal.fail(exc)
        elif not step.expects_done:
            signal()

    with intercept_uncaught(loop, signal):
        args, kwargs = _call_arguments(step, client, signal)
        result = step.func(*args, **kwargs)
        if step.is_coroutine:
            task = loop.create_task(result, name=f"step:{step.name}")
            task.add_done_callback(on_task_done)

        try:
            async with asyncio.timeout(timeout_ms / 1000) as deadline:
                await signal.wait()
        except TimeoutError:
            if deadline.expired():
                raise CompletionTimeoutError(step.name, timeout_ms) from None
            raise
        finally:
            if task is not None and not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
