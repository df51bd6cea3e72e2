"""
Draft autosave engine: keeps one backend record in sync with form edits.

Triggers:
- Edit: reschedules the single debounce timer (cancel, then call_later).
- Timer expiry: autosave tick, skipped when nothing changed since the last
  persisted snapshot or when title / data URL are still empty.
- save_draft_now(): manual save, bypasses the debounce and the dirty check.
- publish(): validates locally, then asks the backend to publish.

Identity is assigned once, from the first successful save. Saves issued
while no identity exists are serialized on a lock so the second one carries
the identifier returned by the first. Every save is tagged with a sequence
number; a response older than the newest applied one is discarded.
"""

import asyncio
import logging
import os
import re
from enum import Enum
from typing import Any, Callable, Optional

from wellness_sessions.errors import EditorClosedError, ValidationError, WellnessError, user_message
from wellness_sessions.gateway import SaveGateway
from wellness_sessions.models.session import Session, SessionFields
from wellness_sessions.notices import Notice
from wellness_sessions.status import STATUS_DISPLAY_S, SaveStatus, StatusIndicator

DEFAULT_AUTOSAVE_DELAY_S = 5.0
AUTOSAVE_DELAY_ENV = "WELLNESS_AUTOSAVE_DELAY_MS"
TITLE_MAX_LENGTH = 200
URL_PATTERN = re.compile(r"^https?://.+")
EDITABLE_FIELDS = ("title", "tags", "data_url")

logger = logging.getLogger(__name__)


def autosave_delay_from_env(default: float = DEFAULT_AUTOSAVE_DELAY_S) -> float:
    """Debounce delay in seconds, overridable in milliseconds via the environment."""
    raw = os.environ.get(AUTOSAVE_DELAY_ENV, "").strip()
    if not raw:
        return default
    try:
        millis = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", AUTOSAVE_DELAY_ENV, raw)
        return default
    if millis <= 0:
        logger.warning("Ignoring non-positive %s=%r", AUTOSAVE_DELAY_ENV, raw)
        return default
    return millis / 1000.0


def parse_tags(text: str) -> list[str]:
    """Split comma-separated tag text. Order and duplicates are kept."""
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def validate_fields(fields: SessionFields) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not fields.title.strip():
        errors["title"] = "Title is required"
    elif len(fields.title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be at most {TITLE_MAX_LENGTH} characters"
    if not fields.data_url.strip():
        errors["data_url"] = "Data URL is required"
    elif not URL_PATTERN.match(fields.data_url):
        errors["data_url"] = "Please enter a valid URL"
    return errors


class EditorMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class DraftEditor:
    def __init__(
        self,
        gateway: SaveGateway,
        session: Optional[Session] = None,
        *,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY_S,
        status_display_s: float = STATUS_DISPLAY_S,
        on_status: Optional[Callable[[SaveStatus], None]] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
    ):
        self._gateway = gateway
        self._delay = autosave_delay
        self._on_notice = on_notice
        self._indicator = StatusIndicator(status_display_s, on_status)
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._create_lock = asyncio.Lock()
        self._issued_seq = 0
        self._applied_seq = 0
        self._busy = False
        self._closed = False
        self.published: Optional[Session] = None
        self.initialize(session)

    def initialize(self, session: Optional[Session] = None) -> None:
        """Seed the form. Loading an existing session does not make it dirty."""
        self._cancel_timer()
        # responses to saves issued before re-seeding must not touch the new form
        self._applied_seq = self._issued_seq + 1
        self._closed = False
        self.published = None
        self._indicator.reset()
        self._errors: dict[str, str] = {}
        if session is not None:
            self._fields = session.editable_fields()
            self._session_id: Optional[str] = session.id
            self._last_snapshot = self._fields.snapshot()
        else:
            self._fields = SessionFields()
            self._session_id = None
            self._last_snapshot = ""

    @property
    def fields(self) -> SessionFields:
        return self._fields.model_copy(deep=True)

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def mode(self) -> EditorMode:
        return EditorMode.UPDATE if self._session_id else EditorMode.CREATE

    @property
    def save_status(self) -> SaveStatus:
        return self._indicator.status

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._errors)

    @property
    def last_persisted_snapshot(self) -> str:
        return self._last_snapshot

    @property
    def has_unsaved_changes(self) -> bool:
        return self._fields.snapshot() != self._last_snapshot

    @property
    def autosave_pending(self) -> bool:
        return self._timer is not None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    def on_field_change(self, field: str, value: Any) -> None:
        if self._closed:
            raise EditorClosedError()
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown field {field!r}; expected one of {', '.join(EDITABLE_FIELDS)}")
        if field == "tags" and isinstance(value, str):
            value = parse_tags(value)
        self._fields = SessionFields.model_validate({**self._fields.model_dump(), field: value})
        self._errors.pop(field, None)
        self._reschedule()

    def on_tags_text_change(self, text: str) -> None:
        self.on_field_change("tags", parse_tags(text))

    def validate(self) -> dict[str, str]:
        self._errors = validate_fields(self._fields)
        return dict(self._errors)

    def _check_publishable(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

    async def autosave_tick(self) -> bool:
        """Persist pending edits if there are any. Returns True when a save was applied."""
        if self._closed:
            return False
        fields = self._fields
        snapshot = fields.snapshot()
        if snapshot == self._last_snapshot:
            logger.debug("Autosave skipped: no changes since last save")
            return False
        if not fields.title or not fields.data_url:
            logger.debug("Autosave skipped: title or data URL is empty")
            return False
        return await self._persist(fields, snapshot, manual=False)

    async def save_draft_now(self) -> bool:
        if self._closed:
            raise EditorClosedError()
        self._cancel_timer()
        self._busy = True
        try:
            fields = self._fields
            return await self._persist(fields, fields.snapshot(), manual=True)
        finally:
            self._busy = False
            if not self._closed:
                self._reschedule()

    async def publish(self) -> bool:
        if self._closed:
            raise EditorClosedError()
        try:
            self._check_publishable()
        except ValidationError as e:
            logger.debug("Publish blocked by validation errors: %s", sorted(e.errors))
            return False

        self._cancel_timer()
        self._busy = True
        try:
            if self._session_id is None:
                async with self._create_lock:
                    published = await self._gateway.publish(self._fields, self._session_id)
            else:
                published = await self._gateway.publish(self._fields, self._session_id)
        except WellnessError as e:
            logger.warning("Publish failed for session %s: %s", self._session_id, e)
            self._notify(Notice.error(user_message(e, "Failed to publish session")))
            self._reschedule()
            return False
        finally:
            self._busy = False

        self.published = published
        self._closed = True
        self._indicator.close()
        logger.info("Published session %s", published.id or self._session_id)
        self._notify(Notice.success("Session published successfully!"))
        return True

    async def _persist(self, fields: SessionFields, snapshot: str, manual: bool) -> bool:
        self._indicator.set(SaveStatus.SAVING)
        if self._session_id is None:
            async with self._create_lock:
                return await self._send_draft(fields, snapshot, manual)
        return await self._send_draft(fields, snapshot, manual)

    async def _send_draft(self, fields: SessionFields, snapshot: str, manual: bool) -> bool:
        self._issued_seq += 1
        seq = self._issued_seq
        try:
            saved = await self._gateway.save_draft(fields, self._session_id)
        except WellnessError as e:
            if self._closed:
                return False
            if seq < self._applied_seq:
                logger.debug("Dropping failure of superseded save #%d", seq)
                return False
            logger.warning("%s save #%d failed: %s", "Manual" if manual else "Auto", seq, e)
            self._indicator.set(SaveStatus.FAILED)
            if manual:
                self._notify(Notice.error(user_message(e, "Failed to save draft")))
            return False

        if self._closed:
            return False
        if seq < self._applied_seq:
            logger.debug("Dropping response of superseded save #%d (newest applied #%d)", seq, self._applied_seq)
            return False
        self._applied_seq = seq
        if self._session_id is None and saved.id:
            self._session_id = saved.id
            logger.info("Draft created with id %s", saved.id)
        self._last_snapshot = snapshot
        self._indicator.set(SaveStatus.SAVED)
        if manual:
            self._notify(Notice.success("Draft saved successfully!"))
        return True

    def _reschedule(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.autosave_tick())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _notify(self, notice: Notice) -> None:
        if self._on_notice:
            self._on_notice(notice)

    async def drain(self) -> None:
        """Wait for autosaves already started by the timer."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        self._cancel_timer()
        await self.drain()
        self._indicator.close()
