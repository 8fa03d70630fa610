"""Build the instruction text sent to the generative model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .catalog import CHARACTERS, SETTINGS, STORY_TYPES, StoryOption, find_option

PLAIN_MODE = "plain"
CONFIGURED_MODE = "configured"
COMPOSER_MODES = (PLAIN_MODE, CONFIGURED_MODE)

STORY_AUDIENCE = "young readers"
STORY_LENGTH = "300-500 words"

PROMPT_MAX_LENGTH = 2000

PLAIN_TEMPLATE = (
    'Write a creative, engaging short story ({length}) for {audience} based on this prompt: "{prompt}". '
    "Make it vivid, with interesting characters and a compelling narrative. "
    "Include dialogue and descriptive details to bring the story to life."
)

CONFIGURED_OPENING = (
    'Write a creative, engaging short story ({length}) for {audience} based on this prompt: "{prompt}".'
)
STORY_TYPE_CLAUSE = "Story type: {name} ({description}). Frame the plot as this kind of story."
CHARACTER_CLAUSE = "Main character: {name} ({description}). Use this character archetype as the hero."
SETTING_CLAUSE = "Setting: {name} ({description}). Set the story in this place and bring it to life."
CONFIGURED_CLOSING = (
    "Include 2-3 supporting characters who help or challenge the hero. "
    "End the story with a clear lesson the reader can take away. "
    "Use dialogue and descriptive details to make it vivid."
)


@dataclass(frozen=True)
class StorySelections:
    story_type: Optional[str] = None
    character: Optional[str] = None
    setting: Optional[str] = None


def compose_instruction(
    prompt_text: str,
    selections: Optional[StorySelections] = None,
    *,
    mode: str = PLAIN_MODE,
) -> str:
    """Return the instruction string for ``prompt_text``.

    Callers validate that the prompt is non-empty before composing. Selection
    ids that are not in the catalogs are dropped from the instruction.
    """

    prompt = (prompt_text or "").strip()
    if mode != CONFIGURED_MODE:
        return PLAIN_TEMPLATE.format(length=STORY_LENGTH, audience=STORY_AUDIENCE, prompt=prompt)

    selections = selections or StorySelections()
    sentences: List[str] = [
        CONFIGURED_OPENING.format(length=STORY_LENGTH, audience=STORY_AUDIENCE, prompt=prompt)
    ]
    for template, option in (
        (STORY_TYPE_CLAUSE, find_option(STORY_TYPES, selections.story_type)),
        (CHARACTER_CLAUSE, find_option(CHARACTERS, selections.character)),
        (SETTING_CLAUSE, find_option(SETTINGS, selections.setting)),
    ):
        clause = _format_clause(template, option)
        if clause:
            sentences.append(clause)
    sentences.append(CONFIGURED_CLOSING)
    return " ".join(sentences)


def _format_clause(template: str, option: Optional[StoryOption]) -> Optional[str]:
    if option is None:
        return None
    return template.format(name=option.name, description=option.description)
