"""Fixed option catalogs offered by the story page."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence


@dataclass(frozen=True)
class StoryOption:
    id: str
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


STORY_TYPES: Sequence[StoryOption] = (
    StoryOption("adventure", "Adventure", "An exciting journey full of challenges and discoveries"),
    StoryOption("mystery", "Mystery", "A puzzle to solve with clues hidden along the way"),
    StoryOption("fairy-tale", "Fairy Tale", "A magical tale with wonder, wishes and a happy ending"),
    StoryOption("friendship", "Friendship", "A heartwarming story about making and keeping friends"),
    StoryOption("funny", "Funny", "A silly story packed with jokes and surprises"),
    StoryOption("bedtime", "Bedtime", "A calm, gentle story for winding down at night"),
)

CHARACTERS: Sequence[StoryOption] = (
    StoryOption("brave-knight", "Brave Knight", "A courageous knight who protects others"),
    StoryOption("curious-robot", "Curious Robot", "A friendly robot learning about the world"),
    StoryOption("clever-fox", "Clever Fox", "A quick-thinking fox who solves problems"),
    StoryOption("young-wizard", "Young Wizard", "An apprentice wizard still mastering spells"),
    StoryOption("space-explorer", "Space Explorer", "An astronaut who visits faraway planets"),
    StoryOption("kind-dragon", "Kind Dragon", "A gentle dragon misunderstood by the village"),
)

SETTINGS: Sequence[StoryOption] = (
    StoryOption("enchanted-forest", "Enchanted Forest", "A glowing forest where trees whisper secrets"),
    StoryOption("underwater-kingdom", "Underwater Kingdom", "A coral city beneath the waves"),
    StoryOption("outer-space", "Outer Space", "A starry sky full of planets and comets"),
    StoryOption("magical-castle", "Magical Castle", "A castle with moving staircases and hidden rooms"),
    StoryOption("busy-city", "Busy City", "A bustling town with tall buildings and crowded streets"),
    StoryOption("snowy-mountain", "Snowy Mountain", "A frosty peak with caves and icy slopes"),
)

CATALOGS: Dict[str, Sequence[StoryOption]] = {
    "story_type": STORY_TYPES,
    "character": CHARACTERS,
    "setting": SETTINGS,
}

SUGGESTED_PROMPTS: Sequence[str] = (
    "A robot learns to paint emotions",
    "The last bookstore in a digital world",
    "A chef who can taste memories in food",
    "Two strangers share an umbrella during a meteor shower",
)


def find_option(options: Sequence[StoryOption], option_id: Optional[str]) -> Optional[StoryOption]:
    """Return the option with ``option_id`` or ``None`` when it is unknown."""

    if not option_id:
        return None
    for option in options:
        if option.id == option_id:
            return option
    return None


def catalog_choices(kind: str, *, blank_label: str = "Surprise me") -> List[tuple[str, str]]:
    return [("", blank_label)] + [(option.id, option.name) for option in CATALOGS[kind]]
