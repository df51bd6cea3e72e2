"""
One-shot user-visible notices raised by manual actions.
"""

from enum import Enum


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notice:
    __slots__ = ("kind", "message")

    def __init__(self, kind: NoticeKind, message: str):
        self.kind = kind
        self.message = message

    @classmethod
    def success(cls, message: str) -> "Notice":
        return cls(NoticeKind.SUCCESS, message)

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls(NoticeKind.ERROR, message)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Notice) and (self.kind, self.message) == (other.kind, other.message)

    def __repr__(self) -> str:
        return f"Notice(kind={self.kind.value!r}, message={self.message!r})"
