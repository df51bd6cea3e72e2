"""
AsyncWellnessClient: entry point wiring transport, gateway and controllers.
"""

from typing import Callable, Optional

from wellness_sessions.autosave import DraftEditor, autosave_delay_from_env
from wellness_sessions.gateway import PAGE_SIZE, SaveGateway
from wellness_sessions.listing import MySessions, PublicBrowser
from wellness_sessions.models.session import Session
from wellness_sessions.notices import Notice
from wellness_sessions.status import STATUS_DISPLAY_S, SaveStatus
from wellness_sessions.transport.http import DEFAULT_BASE_URL, REQUEST_TIMEOUT_S, HttpClient


class AsyncWellnessClient:
    """Async client for the wellness sessions backend."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        autosave_delay: Optional[float] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        http: Optional[HttpClient] = None,
    ):
        self.http = http or HttpClient(
            base_url=base_url, token=access_token, timeout=timeout, on_unauthorized=on_unauthorized,
        )
        self.sessions = SaveGateway(self.http)
        self._autosave_delay = autosave_delay if autosave_delay is not None else autosave_delay_from_env()

    def editor(
        self,
        session: Optional[Session] = None,
        *,
        on_status: Optional[Callable[[SaveStatus], None]] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        status_display_s: float = STATUS_DISPLAY_S,
    ) -> DraftEditor:
        """New editor for a fresh draft, or for an existing session when given."""
        return DraftEditor(
            self.sessions,
            session,
            autosave_delay=self._autosave_delay,
            status_display_s=status_display_s,
            on_status=on_status,
            on_notice=on_notice,
        )

    async def edit_existing(self, session_id: str, **kwargs) -> DraftEditor:
        """Load one of the caller's sessions and open an editor seeded with it."""
        session = await self.sessions.get_mine(session_id)
        return self.editor(session, **kwargs)

    def browser(self, on_notice: Optional[Callable[[Notice], None]] = None) -> PublicBrowser:
        return PublicBrowser(self.sessions, page_size=PAGE_SIZE, on_notice=on_notice)

    def my_sessions(self, on_notice: Optional[Callable[[Notice], None]] = None) -> MySessions:
        return MySessions(self.sessions, on_notice=on_notice)

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "AsyncWellnessClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
