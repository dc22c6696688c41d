"""Descriptors produced by test discovery."""

import inspect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any


@dataclass(frozen=True, kw_only=True)
class Step:
    """A callable unit run by the scheduler: a testcase or a hook."""

    name: str
    func: Callable[..., Any] = field(repr=False)

    @cached_property
    def _parameters(self) -> Sequence[str]:
        return list(inspect.signature(self.func).parameters)

    @property
    def expects_done(self) -> bool:
        """Whether the step completes through an explicit done() call."""
        return "done" in self._parameters

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.func)

    @property
    def is_async(self) -> bool:
        return self.expects_done or self.is_coroutine

    @property
    def takes_client(self) -> bool:
        return bool(self._parameters) and self._parameters[0] != "done"


@dataclass(frozen=True, kw_only=True)
class TestModule:
    """A discovered test file with its hooks and testcases."""

    __test__ = False

    key: str
    group_path: str
    name: str
    path: Path
    testcases: Sequence[Step] = ()
    hooks: Mapping[str, Step] = field(default_factory=dict)
    tags: frozenset[str] = frozenset()
    disabled: bool = False
    unit_test: bool = False
    async_hook_timeout: int | None = None

    @property
    def classname(self) -> str:
        """Dotted identity used in reports, e.g. ``simple.sample``."""
        return self.key.replace("/", ".")


@dataclass(frozen=True, kw_only=True)
class TestSource:
    """Ordered modules found under the given roots."""

    __test__ = False

    roots: Sequence[Path]
    modules: Sequence[TestModule] = ()

    @property
    def source_folder(self) -> str:
        return ", ".join(str(root) for root in self.roots)
