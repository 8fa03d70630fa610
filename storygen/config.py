import os

from .services.gemini_client import CALLER_KEY_MODE, DEFAULT_API_BASE, DEFAULT_MODEL, OPERATOR_KEY_MODE
from .services.prompt_composer import PLAIN_MODE


def _default_key_mode() -> str:
    return OPERATOR_KEY_MODE if os.environ.get("GEMINI_API_KEY") else CALLER_KEY_MODE


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    WTF_CSRF_TIME_LIMIT = None

    GEMINI_API_BASE = os.environ.get("GEMINI_API_BASE", DEFAULT_API_BASE)
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
    STORY_KEY_MODE = os.environ.get("STORY_KEY_MODE", _default_key_mode())
    STORY_COMPOSER_MODE = os.environ.get("STORY_COMPOSER_MODE", PLAIN_MODE)
    STORY_SESSION_LIMIT = int(os.environ.get("STORY_SESSION_LIMIT", "500"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    GEMINI_API_KEY = None
    STORY_KEY_MODE = CALLER_KEY_MODE
    STORY_COMPOSER_MODE = PLAIN_MODE
