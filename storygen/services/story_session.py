"""Presentation state for the story page.

A :class:`StorySession` holds the draft, the loading flag and the last story
for one browser session.  Input surfaces (the HTML form, the JSON API, the
page script) drive it through explicit commands; it hands back
:class:`Notification` values for the page to display.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from flask import Flask, current_app

from .catalog import SUGGESTED_PROMPTS
from .errors import GenerationError, ValidationError
from .prompt_composer import PLAIN_MODE, StorySelections, compose_instruction

IDLE = "idle"
SUBMITTING = "submitting"
SUCCESS = "success"
FAILED = "failed"

SUBMIT_KEY = "Enter"

DEFAULT_VARIANT = "default"
DESTRUCTIVE_VARIANT = "destructive"


class StoryClient(Protocol):
    requires_caller_key: bool

    def generate(self, instruction_text: str, api_key: Optional[str] = None) -> Any:
        ...


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT_VARIANT

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


EMPTY_PROMPT_NOTICE = Notification(
    "Please enter a story prompt",
    "We need a creative prompt to generate your story!",
    DESTRUCTIVE_VARIANT,
)
MISSING_KEY_NOTICE = Notification(
    "API Key Required",
    "Please enter your Gemini API key to generate stories.",
    DESTRUCTIVE_VARIANT,
)
SUCCESS_NOTICE = Notification("Story Generated!", "Your creative story is ready to read.")
CALLER_KEY_FAILURE_NOTICE = Notification(
    "Error generating story",
    "Please check your API key and try again.",
    DESTRUCTIVE_VARIANT,
)
OPERATOR_KEY_FAILURE_NOTICE = Notification(
    "Error generating story",
    "Please try again with a different prompt.",
    DESTRUCTIVE_VARIANT,
)


@dataclass
class RequestDraft:
    prompt_text: str = ""
    api_key: str = ""
    story_type: Optional[str] = None
    character: Optional[str] = None
    setting: Optional[str] = None

    @property
    def selections(self) -> StorySelections:
        return StorySelections(story_type=self.story_type, character=self.character, setting=self.setting)


@dataclass
class SubmissionOutcome:
    """What a single ``submit`` call did.

    ``status`` is one of ``"ignored"`` (already loading), ``"rejected"``
    (validation failed), ``"success"``, ``"failed"`` or ``"discarded"`` (the
    session was disposed while the request was in flight).
    """

    status: str
    notification: Optional[Notification] = None
    story: Optional[str] = None
    error: Optional[Exception] = None


def key_submits(key: str, *, shift: bool = False) -> bool:
    """Return ``True`` when a key press should submit instead of inserting a newline."""

    return key == SUBMIT_KEY and not shift


@dataclass
class StorySession:
    client: StoryClient
    composer_mode: str = PLAIN_MODE
    draft: RequestDraft = field(default_factory=RequestDraft)
    story: Optional[str] = None
    state: str = IDLE
    last_outcome: Optional[SubmissionOutcome] = None
    _disposed: bool = field(default=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def is_loading(self) -> bool:
        return self.state == SUBMITTING

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def requires_api_key(self) -> bool:
        return bool(getattr(self.client, "requires_caller_key", False))

    # ---------------- commands ----------------
    def set_draft_prompt(self, text: Optional[str]) -> None:
        self.draft.prompt_text = text or ""

    def set_api_key(self, key: Optional[str]) -> None:
        self.draft.api_key = key or ""

    def select(
        self,
        *,
        story_type: Optional[str] = None,
        character: Optional[str] = None,
        setting: Optional[str] = None,
    ) -> None:
        self.draft.story_type = story_type or None
        self.draft.character = character or None
        self.draft.setting = setting or None

    def apply_suggestion(self, index: int) -> str:
        if index < 0 or index >= len(SUGGESTED_PROMPTS):
            raise IndexError(f"No suggested prompt at position {index}.")
        suggestion = SUGGESTED_PROMPTS[index]
        self.set_draft_prompt(suggestion)
        return suggestion

    def handle_key(self, key: str, *, shift: bool = False) -> tuple[bool, Optional[SubmissionOutcome]]:
        """Apply the keyboard contract.

        Returns ``(suppress_default, outcome)``; ``outcome`` is ``None`` when the
        key press did not submit.
        """

        if not key_submits(key, shift=shift):
            return False, None
        return True, self.submit()

    def submit(self) -> SubmissionOutcome:
        with self._lock:
            if self._disposed or self.state == SUBMITTING:
                return SubmissionOutcome("ignored")
            try:
                self._validate_draft()
            except ValidationError as exc:
                notice = MISSING_KEY_NOTICE if exc.field == "api_key" else EMPTY_PROMPT_NOTICE
                outcome = SubmissionOutcome("rejected", notification=notice, error=exc)
                self.last_outcome = outcome
                return outcome
            instruction = compose_instruction(
                self.draft.prompt_text,
                self.draft.selections,
                mode=self.composer_mode,
            )
            api_key = self.draft.api_key.strip() or None
            self.state = SUBMITTING

        result = None
        try:
            result = self.client.generate(instruction, api_key)
        finally:
            outcome = self._settle(result)
        return outcome

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True

    # ---------------- internals ----------------
    def _validate_draft(self) -> None:
        if not self.draft.prompt_text.strip():
            raise ValidationError("A story prompt is required.", field="prompt")
        if self.requires_api_key and not self.draft.api_key.strip():
            raise ValidationError("An API key is required.", field="api_key")

    def _settle(self, result: Any) -> SubmissionOutcome:
        with self._lock:
            if self._disposed:
                self.state = IDLE
                return SubmissionOutcome("discarded")

            if result is not None and result.ok:
                self.story = result.story
                self.state = SUCCESS
                outcome = SubmissionOutcome(SUCCESS, notification=SUCCESS_NOTICE, story=result.story)
            else:
                error = result.error if result is not None else GenerationError("Generation did not complete.")
                self.state = FAILED
                outcome = SubmissionOutcome(FAILED, notification=self._failure_notice(), story=self.story, error=error)

            self.last_outcome = outcome
            self.state = IDLE
            return outcome

    def _failure_notice(self) -> Notification:
        return CALLER_KEY_FAILURE_NOTICE if self.requires_api_key else OPERATOR_KEY_FAILURE_NOTICE


class _SessionTable:
    def __init__(self, limit: int) -> None:
        self.limit = max(1, int(limit))
        self.sessions: "OrderedDict[str, StorySession]" = OrderedDict()
        self.lock = threading.Lock()


class StorySessionStore:
    """Keep one :class:`StorySession` per browser session in process memory.

    The oldest sessions are disposed once ``STORY_SESSION_LIMIT`` is exceeded.
    """

    extension_key = "story_sessions"

    def __init__(self, app: Optional[Flask] = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.config.setdefault("STORY_SESSION_LIMIT", 500)
        app.extensions[self.extension_key] = _SessionTable(app.config["STORY_SESSION_LIMIT"])

    def _table(self) -> _SessionTable:
        return current_app.extensions[self.extension_key]

    def get_or_create(self, session_id: str, factory: Callable[[], StorySession]) -> StorySession:
        table = self._table()
        evicted = []
        with table.lock:
            story_session = table.sessions.get(session_id)
            if story_session is not None:
                table.sessions.move_to_end(session_id)
                return story_session
            story_session = factory()
            table.sessions[session_id] = story_session
            while len(table.sessions) > table.limit:
                _, oldest = table.sessions.popitem(last=False)
                evicted.append(oldest)
        for oldest in evicted:
            oldest.dispose()
        if evicted:
            current_app.logger.info("Disposed %d idle story session(s) over the limit", len(evicted))
        return story_session

    def discard(self, session_id: str) -> bool:
        table = self._table()
        with table.lock:
            story_session = table.sessions.pop(session_id, None)
        if story_session is None:
            return False
        story_session.dispose()
        return True

    def __len__(self) -> int:
        table = self._table()
        with table.lock:
            return len(table.sessions)
