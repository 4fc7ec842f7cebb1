"""Builders for catalog entries and a controllable clock, shared by the tests."""

from datetime import datetime, timedelta, timezone

from discovery.models import ContentClass, ContentItem, UserAccount

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


def content(
    content_id: str,
    creator_id: str,
    content_class: ContentClass = ContentClass.VIDEO,
    age_hours: float = 2.0,
    **fields,
) -> ContentItem:
    return ContentItem(
        id=content_id,
        creator_id=creator_id,
        content_class=content_class,
        created_at=NOW - timedelta(hours=age_hours),
        **fields,
    )


def user(user_id: str, age_days: float = 365, **fields) -> UserAccount:
    fields.setdefault("username", user_id)
    return UserAccount(id=user_id, created_at=NOW - timedelta(days=age_days), **fields)


def event(viewer_id: str, content_id: str, kind: str, **fields) -> dict:
    """Raw interaction payload as an API caller would send it."""
    fields.setdefault("content_class", "VIDEO")
    return {"viewer_id": viewer_id, "content_id": content_id, "kind": kind, **fields}
