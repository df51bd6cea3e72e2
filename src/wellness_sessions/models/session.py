"""
Session models: the persisted wellness session and its list envelopes.
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator


class SessionStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Session(BaseModel):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    title: str = ""
    tags: list[str] = Field(default_factory=list)
    data_url: str = Field(default="", validation_alias=AliasChoices("dataUrl", "data_url", "json_file_url"))
    status: SessionStatus = SessionStatus.DRAFT
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))
    updated_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("updatedAt", "updated_at"))
    owner_email: Optional[str] = Field(default=None, validation_alias=AliasChoices("ownerEmail", "owner_email"))

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _flatten_owner(cls, data: Any) -> Any:
        # Older payloads embed the creator as {"user_id": {"email": ...}} or {"owner": {...}}
        if isinstance(data, dict) and "ownerEmail" not in data and "owner_email" not in data:
            for key in ("owner", "user_id"):
                owner = data.get(key)
                if isinstance(owner, dict) and owner.get("email"):
                    return {**data, "ownerEmail": owner["email"]}
        return data

    @property
    def is_published(self) -> bool:
        return self.status == SessionStatus.PUBLISHED

    def editable_fields(self) -> "SessionFields":
        return SessionFields(title=self.title, tags=list(self.tags), data_url=self.data_url)


class SessionFields(BaseModel):
    """The user-editable part of a session."""

    title: str = ""
    tags: list[str] = Field(default_factory=list)
    data_url: str = ""

    def snapshot(self) -> str:
        """Serialized form used to compare against the last persisted state."""
        return json.dumps({"title": self.title, "tags": self.tags, "dataUrl": self.data_url})

    def to_payload(self, session_id: Optional[str] = None) -> dict[str, Any]:
        body: dict[str, Any] = {"title": self.title, "tags": list(self.tags), "dataUrl": self.data_url}
        if session_id:
            body["sessionId"] = session_id
        return body


class Pagination(BaseModel):
    current_page: int = Field(default=1, validation_alias=AliasChoices("current", "currentPage", "current_page"))
    total_pages: int = Field(default=1, validation_alias=AliasChoices("pages", "totalPages", "total_pages"))
    total_count: int = Field(default=0, validation_alias=AliasChoices("total", "totalCount", "total_count"))

    model_config = {"populate_by_name": True}


class SessionPage(BaseModel):
    sessions: list[Session] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
