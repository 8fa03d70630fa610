"""Thin client for the Gemini ``generateContent`` endpoint.

The page sends exactly one request per submission.  The wire body and the
generation parameters are fixed; only the instruction text and the API key
vary between calls.  Remote failures are returned as values inside
:class:`GenerationResult` instead of being raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from flask import current_app

from .errors import EnvelopeError, GenerationError, TransportError

LOGGER = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-pro"

CALLER_KEY_MODE = "caller"
OPERATOR_KEY_MODE = "operator"
KEY_MODES = (CALLER_KEY_MODE, OPERATOR_KEY_MODE)

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.9,
    "topK": 1,
    "topP": 1,
    "maxOutputTokens": 2048,
}

CLIENT_CACHE_KEY = "_STORY_CLIENT_INSTANCE"


@dataclass(frozen=True)
class GenerationRequest:
    instruction_text: str

    @property
    def generation_config(self) -> Dict[str, Any]:
        return dict(GENERATION_CONFIG)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": self.instruction_text}]}],
            "generationConfig": self.generation_config,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class GenerationResult:
    story: Optional[str] = None
    error: Optional[GenerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, story: str) -> "GenerationResult":
        return cls(story=story)

    @classmethod
    def failure(cls, error: GenerationError) -> "GenerationResult":
        return cls(error=error)


def decode_generation_response(payload: Any) -> GenerationResult:
    """Read ``candidates[0].content.parts[0].text`` from a decoded response body."""

    if not isinstance(payload, dict):
        return GenerationResult.failure(EnvelopeError())
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return GenerationResult.failure(EnvelopeError())
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return GenerationResult.failure(EnvelopeError())
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return GenerationResult.failure(EnvelopeError())
    text = parts[0].get("text")
    if not isinstance(text, str):
        return GenerationResult.failure(EnvelopeError())
    return GenerationResult.success(text)


class GeminiStoryClient:
    """Issue ``generateContent`` calls for a single configured model.

    ``key_mode`` selects where the API key comes from: ``"caller"`` uses the
    key passed to :meth:`generate`, ``"operator"`` uses ``api_key`` given to
    the constructor and ignores any caller key.
    """

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        model: str = DEFAULT_MODEL,
        key_mode: str = CALLER_KEY_MODE,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if key_mode not in KEY_MODES:
            raise ValueError(f"Unsupported key mode: {key_mode!r}")
        self.api_base = (api_base or DEFAULT_API_BASE).rstrip("/")
        self.model = (model or DEFAULT_MODEL).strip()
        self.key_mode = key_mode
        self._operator_key = (api_key or "").strip() or None
        if key_mode == OPERATOR_KEY_MODE and not self._operator_key:
            raise ValueError("An API key is required when the key mode is 'operator'.")
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    @property
    def requires_caller_key(self) -> bool:
        return self.key_mode == CALLER_KEY_MODE

    def generate(self, instruction_text: str, api_key: Optional[str] = None) -> GenerationResult:
        if not isinstance(instruction_text, str) or not instruction_text.strip():
            raise ValueError("instruction_text must be a non-empty string.")
        key = self._resolve_key(api_key)
        request = GenerationRequest(instruction_text)

        LOGGER.info("Starting story generation (%d characters) with model %s", len(instruction_text), self.model)
        try:
            response = self._session.post(
                self.endpoint,
                params={"key": key},
                data=request.to_json().encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except requests.RequestException as exc:
            LOGGER.error("Story generation request failed before a response arrived: %s", exc)
            return GenerationResult.failure(TransportError(None))

        LOGGER.info("API response status: %s", response.status_code)

        if not 200 <= response.status_code < 300:
            LOGGER.error("API error (%s): %s", response.status_code, _error_detail(response))
            return GenerationResult.failure(TransportError(response.status_code))

        try:
            payload = response.json()
        except ValueError:
            LOGGER.error("API returned a non-JSON body: %s", _shorten(response.text))
            return GenerationResult.failure(EnvelopeError())

        LOGGER.debug("API response data: %s", _shorten(json.dumps(payload, ensure_ascii=False)))
        result = decode_generation_response(payload)
        if not result.ok:
            LOGGER.error("Unexpected response format: %s", _shorten(json.dumps(payload, ensure_ascii=False)))
        return result

    def _resolve_key(self, api_key: Optional[str]) -> str:
        if self.key_mode == OPERATOR_KEY_MODE:
            return self._operator_key  # type: ignore[return-value]
        key = (api_key or "").strip()
        if not key:
            raise ValueError("An API key must be supplied by the caller.")
        return key


def _error_detail(response: requests.Response) -> str:
    try:
        return _shorten(json.dumps(response.json(), ensure_ascii=False))
    except ValueError:
        return _shorten(response.text or "")


def _shorten(text: str, limit: int = 1200) -> str:
    text = text.replace("\n", " ")
    return (text[:limit] + "…") if len(text) > limit else text


def get_story_client() -> GeminiStoryClient:
    """Return the application's shared client, building it on first use."""

    app = current_app
    client = app.config.get(CLIENT_CACHE_KEY)
    if client is not None:
        return client

    client = GeminiStoryClient(
        api_base=app.config.get("GEMINI_API_BASE", DEFAULT_API_BASE),
        model=app.config.get("GEMINI_MODEL", DEFAULT_MODEL),
        key_mode=app.config.get("STORY_KEY_MODE", CALLER_KEY_MODE),
        api_key=app.config.get("GEMINI_API_KEY"),
    )
    app.logger.info("Initialised Gemini story client for model %s (%s key mode)", client.model, client.key_mode)
    app.config[CLIENT_CACHE_KEY] = client
    return client
