from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from .extensions import csrf, story_sessions
from .services.gemini_client import KEY_MODES, OPERATOR_KEY_MODE
from .services.prompt_composer import COMPOSER_MODES


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# Config reads os.environ at import time.
from .config import Config  # noqa: E402


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder=str(BASE_DIR / "static"),
        static_url_path="/static",
    )
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    validate_story_settings(app)
    register_extensions(app)
    register_blueprints(app)

    return app


def validate_story_settings(app: Flask) -> None:
    key_mode = app.config.get("STORY_KEY_MODE")
    if key_mode not in KEY_MODES:
        raise RuntimeError(f"STORY_KEY_MODE must be one of {', '.join(KEY_MODES)}; got {key_mode!r}.")
    composer_mode = app.config.get("STORY_COMPOSER_MODE")
    if composer_mode not in COMPOSER_MODES:
        raise RuntimeError(
            f"STORY_COMPOSER_MODE must be one of {', '.join(COMPOSER_MODES)}; got {composer_mode!r}."
        )
    if key_mode == OPERATOR_KEY_MODE and not (app.config.get("GEMINI_API_KEY") or "").strip():
        raise RuntimeError("GEMINI_API_KEY must be set when STORY_KEY_MODE is 'operator'.")


def register_extensions(app: Flask) -> None:
    csrf.init_app(app)
    story_sessions.init_app(app)


def register_blueprints(app: Flask) -> None:
    from .api import bp as api_bp
    from .main import bp as main_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)
