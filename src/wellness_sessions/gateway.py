"""
Save Gateway: the REST calls behind the editor and the session lists.

Stateless: every method maps to one request and returns parsed models.
Failures surface as WellnessError subclasses raised by the transport.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import pydantic

from wellness_sessions.errors import WellnessError
from wellness_sessions.models.session import Session, SessionFields, SessionPage
from wellness_sessions.transport.http import HttpClient

PAGE_SIZE = 9

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

logger = logging.getLogger(__name__)


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.error("Unexpected %s payload: %s", model.__name__, e)
        raise WellnessError("bad_response", f"Unexpected response from server for {model.__name__}")


class SaveGateway:
    def __init__(self, http: HttpClient):
        self._http = http

    async def list_public(self, page: int = 1, limit: int = PAGE_SIZE, tags: Optional[str] = None) -> SessionPage:
        """Published sessions, paginated by the backend over the tag-filtered set."""
        params: dict[str, Any] = {"page": page, "limit": limit}
        if tags and tags.strip():
            params["tags"] = tags.strip()
        return _parse(SessionPage, await self._http.get("/sessions", params=params))

    async def list_mine(self, status: Optional[str] = None) -> list[Session]:
        """All of the caller's sessions, optionally limited to one status."""
        params = {"status": status} if status and status != "all" else None
        data = await self._http.get("/my-sessions", params=params)
        items = data.get("sessions", []) if isinstance(data, dict) else data or []
        return [_parse(Session, item) for item in items]

    async def get_mine(self, session_id: str) -> Session:
        return _parse(Session, await self._http.get(f"/my-sessions/{session_id}"))

    async def save_draft(self, fields: SessionFields, session_id: Optional[str] = None) -> Session:
        """Create a draft, or update it in place when session_id is given."""
        return _parse(Session, await self._http.post("/my-sessions/save-draft", fields.to_payload(session_id)))

    async def publish(self, fields: SessionFields, session_id: Optional[str] = None) -> Session:
        return _parse(Session, await self._http.post("/my-sessions/publish", fields.to_payload(session_id)))

    async def delete(self, session_id: str) -> None:
        await self._http.delete(f"/my-sessions/{session_id}")
