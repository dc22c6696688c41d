"""Pydantic models for WebDriver session responses."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class W3CSessionValue(BaseModel):
    """The ``value`` object of a W3C new-session response."""

    session_id: str = Field(alias="sessionId")
    capabilities: Mapping[str, Any] = Field(default_factory=dict)


class NewSessionResponse(BaseModel):
    """Response from the new-session endpoint.

    Legacy (JSON wire protocol) servers put ``sessionId`` at the top level
    and the capabilities in ``value``; W3C servers nest both in ``value``.
    """

    session_id: str | None = Field(default=None, alias="sessionId")
    value: Mapping[str, Any] | None = None
    status: int | None = None

    def resolve(self) -> tuple[str, Mapping[str, Any]]:
        """Return the session id and the capabilities the server granted."""
        value = self.value or {}
        if "sessionId" in value:
            w3c = W3CSessionValue.model_validate(value)
            return w3c.session_id, w3c.capabilities
        if self.session_id is None:
            raise ValueError("New session response carries no sessionId")
        return self.session_id, value
