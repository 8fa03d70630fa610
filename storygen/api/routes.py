from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app, jsonify, request

from ..services.catalog import CATALOGS, SUGGESTED_PROMPTS
from ..services.prompt_composer import PROMPT_MAX_LENGTH
from ..services.story_session import DESTRUCTIVE_VARIANT, FAILED, SUCCESS, Notification
from ..session_utils import current_story_session
from . import bp

OUTCOME_STATUS_CODES = {
    SUCCESS: 200,
    "rejected": 400,
    "ignored": 409,
    FAILED: 502,
    "discarded": 409,
}

UNEXPECTED_ERROR_NOTICE = Notification(
    "Error generating story",
    "We couldn't generate a story right now. Please try again.",
    DESTRUCTIVE_VARIANT,
)


def _json_object() -> Optional[Dict[str, Any]]:
    """Return the JSON body as a dict, ``{}`` when absent, ``None`` when it is not an object."""

    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def _text(payload: dict, key: str) -> Optional[str]:
    value: Any = payload.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _rejected(description: str):
    notice = Notification("Please check your input", description, DESTRUCTIVE_VARIANT)
    return jsonify({"status": "rejected", "story": None, "notification": notice.to_dict()}), 400


@bp.route("/story", methods=["POST"])
def generate_story():
    payload = _json_object()
    if payload is None:
        return _rejected("Send the story request as a JSON object.")

    prompt = _text(payload, "prompt")
    if prompt is not None and len(prompt) > PROMPT_MAX_LENGTH:
        return _rejected(f"Field cannot be longer than {PROMPT_MAX_LENGTH} characters.")

    story_session = current_story_session()
    if "prompt" in payload:
        story_session.set_draft_prompt(prompt)
    api_key = _text(payload, "apiKey")
    if story_session.requires_api_key and api_key and api_key.strip():
        story_session.set_api_key(api_key)
    if any(key in payload for key in ("storyType", "character", "setting")):
        story_session.select(
            story_type=_text(payload, "storyType"),
            character=_text(payload, "character"),
            setting=_text(payload, "setting"),
        )

    try:
        outcome = story_session.submit()
    except Exception:
        current_app.logger.exception("Unexpected error during story generation")
        return (
            jsonify(
                {
                    "status": FAILED,
                    "story": story_session.story,
                    "notification": UNEXPECTED_ERROR_NOTICE.to_dict(),
                }
            ),
            500,
        )

    return (
        jsonify(
            {
                "status": outcome.status,
                "story": story_session.story,
                "notification": outcome.notification.to_dict() if outcome.notification else None,
            }
        ),
        OUTCOME_STATUS_CODES.get(outcome.status, 200),
    )


@bp.route("/draft", methods=["POST"])
def update_draft():
    payload = _json_object()
    if payload is None:
        return jsonify({"error": "Send the draft as a JSON object."}), 400

    story_session = current_story_session()
    if "suggestion" in payload:
        try:
            story_session.apply_suggestion(int(payload["suggestion"]))
        except (TypeError, ValueError, IndexError):
            return jsonify({"error": "Select a valid suggestion."}), 400
    else:
        prompt = _text(payload, "prompt")
        if prompt is not None and len(prompt) > PROMPT_MAX_LENGTH:
            return jsonify({"error": f"Field cannot be longer than {PROMPT_MAX_LENGTH} characters."}), 400
        story_session.set_draft_prompt(prompt)
    return jsonify({"prompt": story_session.draft.prompt_text, "is_loading": story_session.is_loading})


@bp.route("/catalog", methods=["GET"])
def catalog():
    return jsonify(
        {
            "catalogs": {kind: [option.to_dict() for option in options] for kind, options in CATALOGS.items()},
            "suggestions": list(SUGGESTED_PROMPTS),
        }
    )
