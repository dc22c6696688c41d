"""Exceptions raised by the runner."""

TIMEOUT_MESSAGE = (
    'done() callback timeout of {timeout_ms} ms was reached while executing "{name}". '
    "Make sure to call the done() callback when the operation finishes."
)


class NightrunnerError(Exception):
    """Base class for runner errors."""


class ConfigurationError(NightrunnerError):
    """Raised when the runner is not configured well enough to start."""


class EmptySourceError(NightrunnerError):
    """Raised when discovery found no test modules."""

    def __init__(self, source_folder: str) -> None:
        super().__init__(f"No tests defined! using source folder: {source_folder}")
        self.source_folder = source_folder


class SourceLoadError(NightrunnerError):
    """Raised when a test module cannot be loaded."""


class SessionError(NightrunnerError):
    """Raised when a backend session cannot be started or stopped."""


class BackendNotFoundError(ConfigurationError):
    """Raised when the configured backend key has no registered backend."""


class CompletionTimeoutError(NightrunnerError, TimeoutError):
    """Raised when an asynchronous step never signalled completion."""

    def __init__(self, step_name: str, timeout_ms: int) -> None:
        super().__init__(TIMEOUT_MESSAGE.format(timeout_ms=timeout_ms, name=step_name))
        self.step_name = step_name
        self.timeout_ms = timeout_ms


class AssertionFailure(AssertionError):
    """Raised by client assertion helpers once the failure is recorded."""
