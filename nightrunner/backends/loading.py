"""Loading of session backends registered as entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from nightrunner.backends.manifest import BackendManifest
from nightrunner.errors import BackendNotFoundError, ConfigurationError

ENTRY_POINT_GROUP = "nightrunner.backends"

log = logging.getLogger(__name__)


def load_backend_manifest(key: str) -> BackendManifest[Any]:
    """Load the manifest of the backend selected by ``settings.backend``.

    Args:
        key: The backend key as registered in pyproject.toml (e.g., "webdriver")

    Returns:
        The backend manifest instance

    Raises:
        BackendNotFoundError: If no backend is registered under ``key``
        ConfigurationError: If the registered object cannot be imported or
            is not a backend manifest

    """
    entries = {entry.name: entry for entry in entry_points(group=ENTRY_POINT_GROUP)}

    entry = entries.get(key)
    if entry is None:
        raise BackendNotFoundError(
            f"Backend '{key}' not found. Available backends: {sorted(entries)}"
        )

    try:
        manifest = entry.load()
    except Exception as e:
        raise ConfigurationError(
            f"Backend '{key}' could not be loaded from {entry.value}: {e}"
        ) from e

    if not isinstance(manifest, BackendManifest):
        raise ConfigurationError(
            f"Backend '{key}' entry point {entry.value} is not a backend manifest"
        )

    log.debug("Loaded backend '%s' from %s", key, entry.value)
    return manifest
