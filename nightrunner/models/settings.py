"""Runner settings, validated once at construction."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

from pydantic import ConfigDict, Field

from nightrunner.models.base import Model

DEFAULT_OUTPUT_FOLDER = Path("tests_output")
DEFAULT_ASYNC_HOOK_TIMEOUT = 10000


class GlobalsSettings(Model):
    """Values shared with every test step through ``client.globals``.

    Unknown keys are kept so test modules can read their own globals.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    async_hook_timeout: int = Field(
        default=DEFAULT_ASYNC_HOOK_TIMEOUT,
        alias="asyncHookTimeout",
        gt=0,
        description="Milliseconds an asynchronous step may take to call done()",
    )

    def as_mapping(self) -> Mapping[str, Any]:
        """Return all globals, user-defined ones included, keyed by alias."""
        return self.model_dump(by_alias=True)


class SeleniumSettings(Model):
    """Connection parameters for the session backend.

    Backend-specific keys (``start_process``, ``version2``, ...) are passed
    through untouched.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    host: str = "127.0.0.1"
    port: int = 4444
    default_path_prefix: str = ""


class ReporterConfig(Model):
    """Selects the report writer."""

    reporter: str = "junit"


class Settings(Model):
    """Settings consumed by discovery, the runner and the report writer."""

    src_folders: Sequence[Path] = Field(default_factory=tuple)
    output_folder: Path | Literal[False] | None = Field(
        default=None,
        description="Report folder; unset writes flat files under tests_output",
    )
    silent: bool = True
    output: bool = True
    globals: GlobalsSettings = Field(default_factory=GlobalsSettings)
    selenium: SeleniumSettings = Field(default_factory=SeleniumSettings)
    desired_capabilities: Mapping[str, Any] = Field(
        default_factory=lambda: {"browserName": "firefox"},
        alias="desiredCapabilities",
    )
    backend: str = Field(default="webdriver", description="Backend entry point key")
    exclude: Sequence[str] = Field(default_factory=tuple)
    filter: str | None = None
    tag_filter: Sequence[str] = Field(default_factory=tuple)
    skip_tags: Sequence[str] = Field(default_factory=tuple)
    skip_testcases_on_fail: bool = False

    @classmethod
    def parse(cls, values: Mapping[str, Any] | None = None) -> "Settings":
        """Build settings from a plain mapping, applying defaults."""
        return cls.model_validate(dict(values or {}))

    def backend_options(self) -> dict[str, Any]:
        """Options handed to the backend's config class."""
        return {
            **self.selenium.model_dump(),
            "desired_capabilities": dict(self.desired_capabilities),
        }
