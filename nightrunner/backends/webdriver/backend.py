"""WebDriver backend implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from nightrunner.backends.base import SessionBackend
from nightrunner.backends.webdriver.config import WebDriverConfig
from nightrunner.backends.webdriver.models import NewSessionResponse
from nightrunner.session import Session

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class WebDriverBackend(SessionBackend):
    """Opens and closes sessions on a WebDriver (Selenium) server."""

    config: WebDriverConfig
    http: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: WebDriverConfig
    ) -> AsyncGenerator["WebDriverBackend", None]:
        """Create backend with managed HTTP session lifecycle."""
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as http:
            yield cls(config=config, http=http)

    async def create_session(self) -> Session:
        """Request a new session with the configured capabilities."""
        url = f"{self.config.path_prefix}/session"
        capabilities = dict(self.config.desired_capabilities)
        payload = {
            "desiredCapabilities": capabilities,
            "capabilities": {"alwaysMatch": capabilities},
        }

        log.info(
            "Creating session: base_url=%s, url=%s, browserName=%s",
            self.config.base_url,
            url,
            capabilities.get("browserName"),
        )

        async with self.http.post(url, json=payload) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to create session: {response.status} {text}"
                )
            data = await response.json()

        session_id, granted = NewSessionResponse.model_validate(data).resolve()
        return Session(session_id=session_id, capabilities={**capabilities, **granted})

    async def delete_session(self, session: Session) -> None:
        """Delete the session on the server."""
        url = f"{self.config.path_prefix}/session/{session.session_id}"

        async with self.http.delete(url) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to delete session {session.session_id}: "
                    f"{response.status} {text}"
                )
