"""
wellness-sessions: SDK and CLI for authoring and browsing wellness sessions.

Draft editor with debounced autosave, publish, and session list controllers
over the wellness sessions REST backend.
"""

from wellness_sessions.client import AsyncWellnessClient
from wellness_sessions.autosave import DraftEditor, EditorMode
from wellness_sessions.gateway import SaveGateway
from wellness_sessions.listing import MySessions, PublicBrowser, StatusFilter
from wellness_sessions.models.session import Session, SessionFields, SessionStatus
from wellness_sessions.notices import Notice
from wellness_sessions.status import SaveStatus
from wellness_sessions.errors import (
    WellnessError,
    ValidationError,
    TransientNetworkError,
    ServerRejection,
    AuthExpiry,
    EditorClosedError,
)

__version__ = "0.1.0"
__all__ = [
    "AsyncWellnessClient",
    "DraftEditor",
    "EditorMode",
    "SaveGateway",
    "MySessions",
    "PublicBrowser",
    "StatusFilter",
    "Session",
    "SessionFields",
    "SessionStatus",
    "Notice",
    "SaveStatus",
    "WellnessError",
    "ValidationError",
    "TransientNetworkError",
    "ServerRejection",
    "AuthExpiry",
    "EditorClosedError",
]
