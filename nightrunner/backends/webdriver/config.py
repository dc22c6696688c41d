"""Configuration for the WebDriver backend."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class WebDriverConfig(BaseModel):
    """Configuration for the WebDriver backend."""

    host: str = "127.0.0.1"
    port: int = 4444
    default_path_prefix: str = ""
    desired_capabilities: Mapping[str, Any] = Field(
        default_factory=lambda: {"browserName": "firefox"}
    )
    request_timeout: float = 60.0

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def path_prefix(self) -> str:
        return self.default_path_prefix.rstrip("/")
