"""Utility script to configure development environment variables for the story generator."""
from __future__ import annotations

import argparse
import secrets
import shutil
import sys
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"
KEY_MODES = ("caller", "operator")
COMPOSER_MODES = ("plain", "configured")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create or update a .env file with the Flask and Gemini settings required for local "
            "development, then check that the application starts with them."
        )
    )
    parser.add_argument(
        "--flask-app",
        default="wsgi.py",
        help="Entry point used by Flask (default: wsgi.py)",
    )
    parser.add_argument(
        "--secret-key",
        required=False,
        help=(
            "Secret key for Flask sessions. If omitted, the current value in .env is preserved or a "
            "random key is generated."
        ),
    )
    parser.add_argument(
        "--gemini-api-key",
        help="Server-side Gemini API key. Required for the 'operator' key mode.",
    )
    parser.add_argument(
        "--gemini-model",
        help="Gemini model identifier (optional, default: gemini-pro).",
    )
    parser.add_argument(
        "--key-mode",
        choices=KEY_MODES,
        help="Who supplies the API key: the browser user ('caller') or the server ('operator').",
    )
    parser.add_argument(
        "--composer-mode",
        choices=COMPOSER_MODES,
        help="Prompt template: 'plain' or 'configured' (with story type, character and setting).",
    )
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="Path to the .env file that should be created/updated.",
    )
    parser.add_argument(
        "--skip-check",
        action="store_true",
        help="Only update the .env file without building the application.",
    )
    return parser.parse_args(argv)


def read_env(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    data: Dict[str, str] = {}
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        data[key.strip()] = value.strip()
    return data


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Existing {path.name} backed up to {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Updated environment variables written to {path}.")


def build_env_updates(args: argparse.Namespace, current: Dict[str, str]) -> Dict[str, str]:
    env_updates = {"FLASK_APP": args.flask_app}
    if args.secret_key:
        env_updates["SECRET_KEY"] = args.secret_key
    elif not current.get("SECRET_KEY"):
        env_updates["SECRET_KEY"] = secrets.token_hex(32)
    if args.gemini_api_key:
        env_updates["GEMINI_API_KEY"] = args.gemini_api_key
    if args.gemini_model:
        env_updates["GEMINI_MODEL"] = args.gemini_model
    if args.key_mode:
        env_updates["STORY_KEY_MODE"] = args.key_mode
    if args.composer_mode:
        env_updates["STORY_COMPOSER_MODE"] = args.composer_mode
    return env_updates


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    env_data = read_env(args.env_path)
    env_data.update(build_env_updates(args, env_data))
    if env_data.get("STORY_KEY_MODE") == "operator" and not env_data.get("GEMINI_API_KEY"):
        raise SystemExit("The 'operator' key mode needs --gemini-api-key (or GEMINI_API_KEY in .env).")
    write_env(args.env_path, env_data)
    return env_data


def check_application() -> None:
    from storygen import create_app

    app = create_app()
    print(
        "Application configured: "
        f"key mode '{app.config['STORY_KEY_MODE']}', composer mode '{app.config['STORY_COMPOSER_MODE']}'."
    )


def _redact(key: str, value: str) -> str:
    if key in {"SECRET_KEY", "GEMINI_API_KEY"} and value:
        return value[:4] + "…"
    return value


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if not args.skip_check:
        check_application()
    else:
        print("Application check skipped.")

    print("\nSetup complete! Summary:")
    for key in sorted(env_values):
        print(f"  {key}={_redact(key, env_values[key])}")


if __name__ == "__main__":
    main()
