"""Abstract base class for session backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from nightrunner.session import Session


@dataclass(frozen=True, kw_only=True)
class SessionBackend(ABC):
    """Abstract base for the external automation backend.

    The backend only knows how to open and close sessions. What a test does
    with the session handle is up to the test.
    """

    @abstractmethod
    async def create_session(self) -> Session:
        """Create a session on the backend.

        Returns:
            Handle identifying the new session

        """

    @abstractmethod
    async def delete_session(self, session: Session) -> None:
        """End a session previously returned by ``create_session``.

        Args:
            session: Handle returned from create_session

        """
