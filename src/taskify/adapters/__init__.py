"""Adapters - I/O implementations of ports."""

from .json_task_store import JsonTaskStore
from .local_identity import LocalIdentity, StaticIdentity, AuthenticationError
from .google_calendar import GoogleCalendarSync

__all__ = [
    "JsonTaskStore",
    "LocalIdentity",
    "StaticIdentity",
    "AuthenticationError",
    "GoogleCalendarSync",
]
