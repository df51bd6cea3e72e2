import asyncio
from typing import Optional

import pytest

from wellness_sessions.models.session import Session, SessionFields, SessionPage, SessionStatus


class FakeGateway:
    """In-memory stand-in for SaveGateway that records every call.

    With hold=True each call parks on a future in `blockers` until the test
    resolves it, so responses can be completed in any order.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.fail_with: Optional[Exception] = None
        self.hold = False
        self.blockers: list[asyncio.Future] = []
        self.public_page = SessionPage()
        self.mine: list[Session] = []
        self._ids = 0

    def _new_id(self) -> str:
        self._ids += 1
        return f"s{self._ids}"

    async def _gate(self) -> None:
        if self.hold:
            fut = asyncio.get_running_loop().create_future()
            self.blockers.append(fut)
            result = await fut
            if isinstance(result, Exception):
                raise result
        if self.fail_with is not None:
            raise self.fail_with

    async def wait_parked(self, count: int) -> None:
        for _ in range(500):
            if len(self.blockers) >= count:
                return
            await asyncio.sleep(0.001)
        raise AssertionError(f"expected {count} parked calls, got {len(self.blockers)}")

    def calls_to(self, op: str) -> list[dict]:
        return [payload for name, payload in self.calls if name == op]

    async def save_draft(self, fields: SessionFields, session_id: Optional[str] = None) -> Session:
        self.calls.append(("save_draft", fields.to_payload(session_id)))
        await self._gate()
        return Session(id=session_id or self._new_id(), title=fields.title, tags=fields.tags, data_url=fields.data_url)

    async def publish(self, fields: SessionFields, session_id: Optional[str] = None) -> Session:
        self.calls.append(("publish", fields.to_payload(session_id)))
        await self._gate()
        return Session(
            id=session_id or self._new_id(), title=fields.title, tags=fields.tags,
            data_url=fields.data_url, status=SessionStatus.PUBLISHED,
        )

    async def list_public(self, page: int = 1, limit: int = 9, tags: Optional[str] = None) -> SessionPage:
        self.calls.append(("list_public", {"page": page, "limit": limit, "tags": tags}))
        await self._gate()
        return self.public_page

    async def list_mine(self, status: Optional[str] = None) -> list[Session]:
        self.calls.append(("list_mine", {"status": status}))
        await self._gate()
        if status:
            return [s for s in self.mine if s.status.value == status]
        return list(self.mine)

    async def delete(self, session_id: str) -> None:
        self.calls.append(("delete", {"id": session_id}))
        await self._gate()
        self.mine = [s for s in self.mine if s.id != session_id]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notices() -> list:
    return []
