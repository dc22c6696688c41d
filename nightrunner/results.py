"""Aggregation of module results over a run."""

from collections.abc import Mapping
from types import MappingProxyType

from nightrunner.models.result import ModuleResult, RunSummary


class Results:
    """Append-only tree of module results, keyed by module key.

    ``last_error`` tracks the most recent error captured in any recorded
    module. Assertion failures are outcomes, not errors, and do not set it.
    """

    def __init__(self) -> None:
        self._modules: dict[str, ModuleResult] = {}
        self._last_error: BaseException | None = None

    @property
    def modules(self) -> Mapping[str, ModuleResult]:
        return MappingProxyType(self._modules)

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    def record(self, module_result: ModuleResult) -> None:
        """Add a finalized module result.

        Raises:
            ValueError: If a result for the same module was already recorded

        """
        if module_result.key in self._modules:
            raise ValueError(
                f"Results for module '{module_result.key}' already recorded"
            )

        self._modules[module_result.key] = module_result
        if module_result.last_error is not None:
            self._last_error = module_result.last_error

    def merge(self, other: "Results") -> "Results":
        """Combine with the results of a later run into a new tree.

        Modules present in both are taken from ``other``.
        """
        merged = Results()
        merged._modules = {**self._modules, **other._modules}
        merged._last_error = other._last_error or self._last_error
        return merged

    def summary(self) -> RunSummary:
        modules = self._modules.values()
        return RunSummary(
            modules=len(modules),
            tests=sum(module.tests for module in modules),
            passed=sum(len(module.completed) for module in modules),
            failed=sum(module.failure_count for module in modules),
            errored=sum(len(module.errored) for module in modules),
            skipped=sum(module.skipped_count for module in modules),
            errors=sum(module.error_count for module in modules),
        )

    @property
    def has_failures(self) -> bool:
        return self._last_error is not None or self.summary().has_failures
