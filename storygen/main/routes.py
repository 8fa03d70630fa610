from __future__ import annotations

from flask import abort, current_app, flash, redirect, render_template, url_for

from ..services.catalog import SUGGESTED_PROMPTS
from ..services.prompt_composer import CONFIGURED_MODE
from ..session_utils import current_story_session, flash_notification, reset_story_session
from . import bp
from .forms import StoryRequestForm

API_KEY_HELP_URL = "https://makersuite.google.com/app/apikey"


@bp.route("/", methods=["GET", "POST"])
def index():
    story_session = current_story_session()
    form = StoryRequestForm()

    if form.submit.data and form.validate_on_submit():
        story_session.set_draft_prompt(form.prompt.data)
        # The key field is never echoed back, so a blank field keeps the stored key.
        if story_session.requires_api_key and form.api_key.data:
            story_session.set_api_key(form.api_key.data)
        story_session.select(
            story_type=form.story_type.data,
            character=form.character.data,
            setting=form.setting.data,
        )
        try:
            outcome = story_session.submit()
        except Exception:  # pragma: no cover - defensive logging for unexpected states
            current_app.logger.exception("Unexpected error while generating a story")
            flash(
                {
                    "title": "Error generating story",
                    "description": "We couldn't generate a story right now. Please try again.",
                },
                "danger",
            )
        else:
            flash_notification(outcome.notification)
        return redirect(url_for("main.index"))

    for field_errors in form.errors.values():
        for message in field_errors:
            flash({"title": "Please check your input", "description": message}, "warning")

    draft = story_session.draft
    if not form.is_submitted():
        form.prompt.data = draft.prompt_text
        form.story_type.data = draft.story_type or ""
        form.character.data = draft.character or ""
        form.setting.data = draft.setting or ""

    return render_template(
        "main/index.html",
        form=form,
        story=story_session.story,
        is_loading=story_session.is_loading,
        requires_api_key=story_session.requires_api_key,
        api_key_saved=bool(draft.api_key.strip()),
        show_selectors=story_session.composer_mode == CONFIGURED_MODE,
        suggestions=list(enumerate(SUGGESTED_PROMPTS)),
        api_key_help_url=API_KEY_HELP_URL,
    )


@bp.route("/suggestions/<int:index>", methods=["POST"])
def use_suggestion(index: int):
    story_session = current_story_session()
    try:
        story_session.apply_suggestion(index)
    except IndexError:
        abort(404)
    return redirect(url_for("main.index"))


@bp.route("/reset", methods=["POST"])
def reset():
    if reset_story_session():
        flash({"title": "Started over", "description": "Your draft and story were cleared."}, "info")
    return redirect(url_for("main.index"))
