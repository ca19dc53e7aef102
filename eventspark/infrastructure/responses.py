"""
Normalization of the API's response envelopes.

The server wraps the same collection differently depending on the endpoint
and the caller's role. Every accepted shape is listed here and nowhere else,
so the rest of the client only ever sees plain lists and records.
"""

from typing import Any

from eventspark.core.errors import MalformedResponseError


def _dig(body: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(body, dict) or key not in body:
            return None
        body = body[key]
    return body


def unwrap_events(body: Any) -> list[dict]:
    """``{data: {events}}`` (admin) or ``{events}``."""
    for path in (("data", "events"), ("events",)):
        events = _dig(body, *path)
        if isinstance(events, list):
            return events
    raise MalformedResponseError("Events response has no events list")


def unwrap_event(body: Any) -> dict:
    """``{data: {event}}``, ``{event}``, ``{data: <event>}`` or a bare event."""
    for path in (("data", "event"), ("event",), ("data",)):
        event = _dig(body, *path)
        if isinstance(event, dict):
            return event
    if isinstance(body, dict) and ("_id" in body or "id" in body):
        return body
    raise MalformedResponseError("Event response has no event record")


def unwrap_bookings(body: Any) -> list[dict]:
    """``{data: [...]}``, ``{bookings: [...]}`` or a bare list."""
    if isinstance(body, list):
        return body
    for path in (("data",), ("bookings",), ("data", "bookings")):
        bookings = _dig(body, *path)
        if isinstance(bookings, list):
            return bookings
    raise MalformedResponseError("Bookings response has no bookings list")


def unwrap_users(body: Any) -> dict:
    """``{users: {admin, organizer, user}}``."""
    users = _dig(body, "users")
    if isinstance(users, dict):
        return users
    raise MalformedResponseError("Users response has no role map")


def unwrap_current_user(body: Any) -> dict:
    """``{data: {user}}`` or ``{user}``."""
    for path in (("data", "user"), ("user",)):
        user = _dig(body, *path)
        if isinstance(user, dict):
            return user
    raise MalformedResponseError("Profile response has no user record")
