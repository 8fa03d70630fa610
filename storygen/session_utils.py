"""Helpers binding the browser session cookie to an in-memory story session."""
from __future__ import annotations

from typing import Optional
from uuid import uuid4

from flask import current_app, flash, session

from .extensions import story_sessions
from .services.gemini_client import get_story_client
from .services.story_session import DESTRUCTIVE_VARIANT, Notification, StorySession

SESSION_COOKIE_KEY = "story_session_id"

FLASH_CATEGORIES = {
    DESTRUCTIVE_VARIANT: "danger",
}


def _build_story_session() -> StorySession:
    return StorySession(
        client=get_story_client(),
        composer_mode=current_app.config["STORY_COMPOSER_MODE"],
    )


def current_story_session() -> StorySession:
    """Return the story session for this browser, creating one on first visit."""

    session_id = session.get(SESSION_COOKIE_KEY)
    if not session_id:
        session_id = uuid4().hex
        session[SESSION_COOKIE_KEY] = session_id
    return story_sessions.get_or_create(session_id, _build_story_session)


def reset_story_session() -> bool:
    session_id: Optional[str] = session.pop(SESSION_COOKIE_KEY, None)
    if not session_id:
        return False
    return story_sessions.discard(session_id)


def flash_notification(notification: Optional[Notification]) -> None:
    if notification is None:
        return
    flash(notification.to_dict(), FLASH_CATEGORIES.get(notification.variant, "success"))
