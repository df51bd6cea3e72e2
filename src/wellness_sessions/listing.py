"""
Session list controllers.

PublicBrowser pages through published sessions. The backend paginates and
applies the tag filter; the title search runs client-side and only narrows
the page that was fetched, not the whole filtered set.

MySessions loads every session the caller owns for one status tab and keeps
tab counts and deletions local to that list.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from wellness_sessions.errors import WellnessError, user_message
from wellness_sessions.gateway import PAGE_SIZE, SaveGateway
from wellness_sessions.models.session import Pagination, Session, SessionStatus
from wellness_sessions.notices import Notice

logger = logging.getLogger(__name__)


def filter_by_title(sessions: list[Session], search_text: str) -> list[Session]:
    """Case-insensitive substring match on the title."""
    if not search_text.strip():
        return list(sessions)
    needle = search_text.lower()
    return [s for s in sessions if needle in s.title.lower()]


class ListQueryState(BaseModel):
    page: int = 1
    page_size: int = PAGE_SIZE
    tag_filter_text: str = ""
    search_text: str = ""
    results: list[Session] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class PublicBrowser:
    def __init__(
        self,
        gateway: SaveGateway,
        page_size: int = PAGE_SIZE,
        on_notice: Optional[Callable[[Notice], None]] = None,
    ):
        self._gateway = gateway
        self._on_notice = on_notice
        self._latest_seq = 0
        self.state = ListQueryState(page_size=page_size)
        self.loading = False
        self.last_error: Optional[WellnessError] = None

    @property
    def results(self) -> list[Session]:
        return list(self.state.results)

    @property
    def pagination(self) -> Pagination:
        return self.state.pagination

    @property
    def displayed_range(self) -> tuple[int, int, int]:
        """(first, last, total) item numbers of the current page, 1-based."""
        meta = self.state.pagination
        if meta.total_count <= 0:
            return (0, 0, 0)
        first = (meta.current_page - 1) * self.state.page_size + 1
        last = min(meta.current_page * self.state.page_size, meta.total_count)
        return (first, last, meta.total_count)

    @property
    def has_previous(self) -> bool:
        return self.state.pagination.current_page > 1

    @property
    def has_next(self) -> bool:
        meta = self.state.pagination
        return meta.current_page < meta.total_pages

    async def query(self, page: int = 1, tag_filter_text: str = "", search_text: str = "") -> bool:
        """Fetch one page and apply the title search to it.

        Query parameters, results and pagination are committed together on
        success. A response to a query that has since been superseded is
        dropped.
        """
        self._latest_seq += 1
        seq = self._latest_seq
        self.loading = True
        try:
            fetched = await self._gateway.list_public(
                page=page, limit=self.state.page_size, tags=tag_filter_text or None,
            )
        except WellnessError as e:
            if seq != self._latest_seq:
                return False
            self.loading = False
            self.last_error = e
            logger.warning("Fetching public sessions (page %d) failed: %s", page, e)
            self._notify(Notice.error(user_message(e, "Failed to fetch sessions")))
            return False

        if seq != self._latest_seq:
            logger.debug("Dropping results of superseded query #%d", seq)
            return False
        self.loading = False
        self.last_error = None
        self.state = self.state.model_copy(update={
            "page": page,
            "tag_filter_text": tag_filter_text,
            "search_text": search_text,
            "results": filter_by_title(fetched.sessions, search_text),
            "pagination": fetched.pagination,
        })
        return True

    async def search(self, search_text: str, tag_filter_text: str) -> bool:
        return await self.query(1, tag_filter_text, search_text)

    async def change_page(self, page: int) -> bool:
        return await self.query(page, self.state.tag_filter_text, self.state.search_text)

    async def reset(self) -> bool:
        return await self.query(1, "", "")

    def _notify(self, notice: Notice) -> None:
        if self._on_notice:
            self._on_notice(notice)


class StatusFilter(str, Enum):
    ALL = "all"
    DRAFT = "draft"
    PUBLISHED = "published"


class PendingDeletion(BaseModel):
    """What the confirmation prompt shows, captured when deletion is requested."""

    session_id: str
    title: str

    model_config = {"frozen": True}


class MySessions:
    def __init__(self, gateway: SaveGateway, on_notice: Optional[Callable[[Notice], None]] = None):
        self._gateway = gateway
        self._on_notice = on_notice
        self._latest_seq = 0
        self._sessions: list[Session] = []
        self.status_filter = StatusFilter.ALL
        self.loading = False
        self.pending_delete: Optional[PendingDeletion] = None

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    @property
    def counts(self) -> dict[str, int]:
        """Tab counts derived from whichever list was loaded last."""
        return {
            StatusFilter.ALL.value: len(self._sessions),
            StatusFilter.DRAFT.value: sum(1 for s in self._sessions if s.status == SessionStatus.DRAFT),
            StatusFilter.PUBLISHED.value: sum(1 for s in self._sessions if s.status == SessionStatus.PUBLISHED),
        }

    async def load_mine(self, status_filter: StatusFilter | str = StatusFilter.ALL) -> bool:
        status_filter = StatusFilter(status_filter)
        self._latest_seq += 1
        seq = self._latest_seq
        self.loading = True
        try:
            sessions = await self._gateway.list_mine(
                None if status_filter == StatusFilter.ALL else status_filter.value,
            )
        except WellnessError as e:
            if seq != self._latest_seq:
                return False
            self.loading = False
            logger.warning("Fetching own sessions (%s) failed: %s", status_filter.value, e)
            self._notify(Notice.error(user_message(e, "Failed to fetch your sessions")))
            return False

        if seq != self._latest_seq:
            logger.debug("Dropping results of superseded load #%d", seq)
            return False
        self.loading = False
        self.status_filter = status_filter
        self._sessions = sessions
        return True

    def request_delete(self, session: Session) -> PendingDeletion:
        if not session.id:
            raise ValueError("Cannot delete a session that has no id")
        self.pending_delete = PendingDeletion(session_id=session.id, title=session.title)
        return self.pending_delete

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        pending = self.pending_delete
        if pending is None:
            return False
        self.pending_delete = None
        try:
            await self._gateway.delete(pending.session_id)
        except WellnessError as e:
            logger.warning("Deleting session %s failed: %s", pending.session_id, e)
            self._notify(Notice.error(user_message(e, "Failed to delete session")))
            return False

        self._sessions = [s for s in self._sessions if s.id != pending.session_id]
        logger.info("Deleted session %s", pending.session_id)
        self._notify(Notice.success("Session deleted successfully"))
        return True

    def _notify(self, notice: Notice) -> None:
        if self._on_notice:
            self._on_notice(notice)
