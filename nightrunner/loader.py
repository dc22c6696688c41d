"""Discovery of test modules under source folders."""

import asyncio
import fnmatch
import importlib.util
import inspect
import logging
from collections.abc import Coroutine, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any, TypeAlias

from nightrunner.errors import ConfigurationError, SourceLoadError
from nightrunner.models.settings import Settings
from nightrunner.models.source import Step, TestModule, TestSource

log = logging.getLogger(__name__)

HOOK_ALIASES = {
    "before": "before",
    "after": "after",
    "before_each": "before_each",
    "beforeEach": "before_each",
    "after_each": "after_each",
    "afterEach": "after_each",
}

SourcePaths: TypeAlias = str | Path | Sequence[str | Path]


def read_test_source(
    paths: SourcePaths | None = None, settings: Settings | None = None
) -> Coroutine[Any, Any, TestSource]:
    """Discover test modules under ``paths``.

    Falls back to ``settings.src_folders`` when no paths are given. The
    configuration check happens when this function is called, before any
    discovery is scheduled; the returned coroutine performs the discovery.

    Raises:
        ConfigurationError: If neither paths nor source folders are given

    """
    settings = settings or Settings()
    roots = resolve_source_roots(paths, settings)
    return load_test_source(roots, settings)


def resolve_source_roots(
    paths: SourcePaths | None, settings: Settings
) -> Sequence[Path]:
    """Normalize the discovery roots to absolute paths."""
    if paths is None:
        paths = settings.src_folders
    if isinstance(paths, (str, Path)):
        paths = [paths]
    if not paths:
        raise ConfigurationError(
            "No test source specified and no source folder defined. "
            "Check configuration."
        )
    return [Path(path).absolute() for path in paths]


async def load_test_source(roots: Sequence[Path], settings: Settings) -> TestSource:
    """Walk ``roots`` and load every test module found, in stable order."""
    modules = await asyncio.to_thread(discover_modules, roots, settings)
    source = TestSource(roots=tuple(roots), modules=tuple(modules))
    log.info(
        "Discovered %d test module(s) in %s", len(modules), source.source_folder
    )
    return source


def discover_modules(roots: Sequence[Path], settings: Settings) -> Sequence[TestModule]:
    """Find, load and filter modules under all roots."""
    modules: dict[str, TestModule] = {}

    for root in roots:
        for path, relative in find_module_files(root, settings):
            key = relative.with_suffix("").as_posix()
            if key in modules:
                raise SourceLoadError(
                    f"Duplicate test module '{key}' found in {path} "
                    f"and {modules[key].path}"
                )
            module = load_module(path, key)
            if is_selected(module, settings):
                modules[key] = module

    return list(modules.values())


def find_module_files(root: Path, settings: Settings) -> Sequence[tuple[Path, Path]]:
    """Return ``(path, relative path)`` of module files under ``root``.

    Results are ordered by relative path so runs are reproducible.

    Raises:
        FileNotFoundError: If ``root`` does not exist

    """
    if not root.exists() and root.with_suffix(".py").is_file():
        root = root.with_suffix(".py")

    if root.is_file():
        return [(root, Path(root.name))]

    if not root.is_dir():
        raise FileNotFoundError(f"Test source not found: {root}")

    found: list[tuple[Path, Path]] = []
    for path in root.rglob("*.py"):
        relative = path.relative_to(root)
        if _is_hidden(relative):
            continue
        if not _matches_filters(relative.as_posix(), settings):
            continue
        found.append((path, relative))

    return sorted(found, key=lambda item: item[1].as_posix())


def _is_hidden(relative: Path) -> bool:
    *folders, filename = relative.parts
    return filename.startswith("_") or any(
        folder.startswith(("_", ".")) for folder in folders
    )


def _matches_filters(relative: str, settings: Settings) -> bool:
    if any(fnmatch.fnmatch(relative, pattern) for pattern in settings.exclude):
        return False
    if settings.filter is not None:
        return fnmatch.fnmatch(relative, settings.filter)
    return True


def load_module(path: Path, key: str) -> TestModule:
    """Import the file at ``path`` and describe its hooks and testcases.

    Raises:
        SourceLoadError: If the file cannot be imported

    """
    module_name = "nightrunner_sources." + key.replace("/", ".").replace("-", "_")
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SourceLoadError(f"Cannot load test module from {path}")

    loaded = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(loaded)
    except Exception as e:
        raise SourceLoadError(f"Error loading test module {path}: {e}") from e

    group_path, _, name = key.rpartition("/")
    hooks, testcases = _collect_steps(loaded)
    timeout = getattr(loaded, "async_hook_timeout", None)

    return TestModule(
        key=key,
        group_path=group_path,
        name=name,
        path=path,
        testcases=testcases,
        hooks=hooks,
        tags=_read_tags(loaded),
        disabled=bool(getattr(loaded, "disabled", False)),
        unit_test=bool(getattr(loaded, "unit_test", False)),
        async_hook_timeout=int(timeout) if timeout is not None else None,
    )


def _read_tags(loaded: ModuleType) -> frozenset[str]:
    tags = getattr(loaded, "tags", ())
    if isinstance(tags, str):
        tags = [tags]
    return frozenset(str(tag).lower() for tag in tags)


def _collect_steps(loaded: ModuleType) -> tuple[dict[str, Step], list[Step]]:
    """Split a module's own functions into hooks and testcases.

    Testcases keep their definition order.
    """
    hooks: dict[str, Step] = {}
    testcases: list[Step] = []

    for attr, value in vars(loaded).items():
        if attr.startswith("_") or not inspect.isfunction(value):
            continue
        if value.__module__ != loaded.__name__:
            continue
        if attr in HOOK_ALIASES:
            hooks[HOOK_ALIASES[attr]] = Step(name=attr, func=value)
        else:
            testcases.append(Step(name=attr, func=value))

    return hooks, testcases


def is_selected(module: TestModule, settings: Settings) -> bool:
    """Apply the disabled flag and tag filters."""
    if module.disabled:
        log.info("Skipping disabled module %s", module.key)
        return False

    wanted = {tag.lower() for tag in settings.tag_filter}
    if wanted and not module.tags & wanted:
        log.debug("Module %s does not match tags %s", module.key, sorted(wanted))
        return False

    skipped = {tag.lower() for tag in settings.skip_tags}
    if module.tags & skipped:
        log.info(
            "Skipping module %s tagged with %s",
            module.key,
            sorted(module.tags & skipped),
        )
        return False

    return True
