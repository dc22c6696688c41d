"""Lifecycle of backend sessions used while running modules."""

import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nightrunner.errors import SessionError

if TYPE_CHECKING:
    from nightrunner.backends.base import SessionBackend

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Session:
    """Opaque handle to a started backend session."""

    session_id: str
    capabilities: Mapping[str, Any] = field(default_factory=dict)

    @property
    def report_prefix(self) -> str:
        """Report file prefix, e.g. ``FIREFOX_TEST_TEST``."""
        caps = self.capabilities
        parts = [
            str(caps.get("browserName") or "").upper(),
            str(caps.get("version") or caps.get("browserVersion") or ""),
            str(caps.get("platform") or caps.get("platformName") or ""),
        ]
        return "_".join(part.replace(" ", "_") for part in parts if part)


@dataclass(kw_only=True)
class SessionManager:
    """Starts and stops sessions, stopping each started session exactly once."""

    backend: "SessionBackend"
    _active: set[str] = field(default_factory=set, repr=False)

    async def start(self) -> Session:
        """Start a new backend session.

        Raises:
            SessionError: If the backend could not create the session

        """
        try:
            session = await self.backend.create_session()
        except Exception as e:
            raise SessionError(f"Failed to start session: {e}") from e

        self._active.add(session.session_id)
        log.info("Session %s started", session.session_id)
        return session

    async def stop(self, session: Session) -> None:
        """Stop a session started by this manager; stopping twice is a no-op.

        Raises:
            SessionError: If the backend failed to end the session

        """
        if session.session_id not in self._active:
            log.warning("Session %s is not active, not stopping", session.session_id)
            return

        self._active.discard(session.session_id)
        try:
            await self.backend.delete_session(session)
        except Exception as e:
            raise SessionError(
                f"Failed to stop session {session.session_id}: {e}"
            ) from e
        log.info("Session %s stopped", session.session_id)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[Session, None]:
        """Yield a started session and stop it on exit, whatever happens."""
        session = await self.start()
        try:
            yield session
        finally:
            await self.stop(session)
