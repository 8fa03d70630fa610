import sys
import threading
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from storygen import create_app, session_utils
from storygen.config import TestConfig
from storygen.services.errors import EnvelopeError, TransportError
from storygen.services.gemini_client import GenerationResult


class DummyClient:
    def __init__(self, *, requires_caller_key=True):
        self.requires_caller_key = requires_caller_key
        self.results = []
        self.calls = []

    def generate(self, instruction_text, api_key=None):
        self.calls.append((instruction_text, api_key))
        return self.results.pop(0)


class OperatorConfiguredConfig(TestConfig):
    GEMINI_API_KEY = "server-key"
    STORY_KEY_MODE = "operator"
    STORY_COMPOSER_MODE = "configured"


@pytest.fixture
def story_client():
    return DummyClient()


@pytest.fixture
def app_instance(monkeypatch, story_client):
    monkeypatch.setattr(session_utils, "get_story_client", lambda: story_client)
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


def _submit(client, prompt, api_key="user-key", **extra):
    data = {"prompt": prompt, "api_key": api_key, "submit": "Generate Story"}
    data.update(extra)
    return client.post("/", data=data, follow_redirects=True)


def test_index_renders_key_field_and_suggestions(client):
    response = client.get("/")

    assert response.status_code == 200
    assert b"AI Story Generator" in response.data
    assert b"Gemini API Key" in response.data
    assert b'type="password"' in response.data
    assert b"A robot learns to paint emotions" in response.data
    assert b'id="storyType"' not in response.data


def test_empty_prompt_shows_validation_notification(client, story_client):
    response = _submit(client, "   ")

    assert b"Please enter a story prompt" in response.data
    assert story_client.calls == []


def test_missing_key_shows_key_required(client, story_client):
    response = _submit(client, "A chef who can taste memories in food", api_key="")

    assert b"API Key Required" in response.data
    assert story_client.calls == []


def test_successful_submission_displays_story(client, story_client):
    story_client.results.append(GenerationResult.success("The robot painted joy in yellow."))

    response = _submit(client, "A robot learns to paint emotions")

    assert b"Story Generated!" in response.data
    assert b"The robot painted joy in yellow." in response.data
    instruction, api_key = story_client.calls[0]
    assert '"A robot learns to paint emotions"' in instruction
    assert api_key == "user-key"


def test_failure_leaves_previous_story_in_place(client, story_client):
    story_client.results.extend(
        [GenerationResult.success("The first story."), GenerationResult.failure(TransportError(400))]
    )
    _submit(client, "A first idea")

    response = _submit(client, "A second idea")

    assert b"Error generating story" in response.data
    assert b"Please check your API key and try again." in response.data
    assert b"The first story." in response.data
    assert b"API Error: 400" not in response.data


def test_suggestion_sets_draft_prompt(client):
    response = client.post("/suggestions/2", follow_redirects=True)

    assert response.status_code == 200
    assert b"A chef who can taste memories in food</textarea>" in response.data


def test_unknown_suggestion_returns_404(client):
    assert client.post("/suggestions/9").status_code == 404


def test_reset_clears_story(client, story_client):
    story_client.results.append(GenerationResult.success("Short-lived story."))
    _submit(client, "A fleeting idea")

    response = client.post("/reset", follow_redirects=True)

    assert b"Started over" in response.data
    assert b"Short-lived story." not in response.data


def test_api_story_success(client, story_client):
    story_client.results.append(GenerationResult.success("X"))

    response = client.post("/api/story", json={"prompt": "A quiet harbour", "apiKey": "user-key"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "success"
    assert payload["story"] == "X"
    assert payload["notification"]["title"] == "Story Generated!"


def test_api_story_validation_error(client, story_client):
    response = client.post("/api/story", json={"prompt": " ", "apiKey": "user-key"})

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["status"] == "rejected"
    assert payload["notification"]["variant"] == "destructive"
    assert story_client.calls == []


def test_api_story_failure_keeps_story(client, story_client):
    story_client.results.extend([GenerationResult.success("Kept"), GenerationResult.failure(EnvelopeError())])
    client.post("/api/story", json={"prompt": "First", "apiKey": "user-key"})

    response = client.post("/api/story", json={"prompt": "Second", "apiKey": "user-key"})

    assert response.status_code == 502
    payload = response.get_json()
    assert payload["status"] == "failed"
    assert payload["story"] == "Kept"


def test_api_draft_and_catalog(client):
    response = client.post("/api/draft", json={"suggestion": 0})
    assert response.get_json()["prompt"] == "A robot learns to paint emotions"

    response = client.post("/api/draft", json={"prompt": "My own idea"})
    assert response.get_json()["prompt"] == "My own idea"

    assert client.post("/api/draft", json={"suggestion": "x"}).status_code == 400

    catalog = client.get("/api/catalog").get_json()
    assert {"story_type", "character", "setting"} == set(catalog["catalogs"])
    assert len(catalog["suggestions"]) == 4


def test_operator_configured_mode(monkeypatch):
    story_client = DummyClient(requires_caller_key=False)
    story_client.results.extend([GenerationResult.success("A dragon story."), GenerationResult.success("Again.")])
    monkeypatch.setattr(session_utils, "get_story_client", lambda: story_client)
    app = create_app(OperatorConfiguredConfig)
    client = app.test_client()

    page = client.get("/")
    assert b"Gemini API Key" not in page.data
    assert b"server-key" not in page.data
    assert b'id="storyType"' in page.data

    response = client.post(
        "/",
        data={
            "prompt": "A dragon afraid of the dark",
            "story_type": "bedtime",
            "character": "kind-dragon",
            "setting": "snowy-mountain",
            "submit": "Generate Story",
        },
        follow_redirects=True,
    )
    assert b"A dragon story." in response.data
    instruction, api_key = story_client.calls[0]
    assert api_key is None
    assert "Kind Dragon" in instruction
    assert "Snowy Mountain" in instruction

    response = client.post("/api/story", json={"prompt": "Another", "storyType": "space-opera"})
    assert response.status_code == 200
    assert "Story type:" not in story_client.calls[1][0]


def test_operator_mode_without_key_is_rejected():
    class MissingKeyConfig(TestConfig):
        STORY_KEY_MODE = "operator"
        GEMINI_API_KEY = ""

    with pytest.raises(RuntimeError):
        create_app(MissingKeyConfig)


def test_unknown_composer_mode_is_rejected():
    class BadModeConfig(TestConfig):
        STORY_COMPOSER_MODE = "fancy"

    with pytest.raises(RuntimeError):
        create_app(BadModeConfig)


class GatedClient:
    """Holds ``generate`` open until the test releases it."""

    def __init__(self):
        self.requires_caller_key = True
        self.calls = []
        self.entered = threading.Event()
        self.release = threading.Event()

    def generate(self, instruction_text, api_key=None):
        self.calls.append((instruction_text, api_key))
        self.entered.set()
        self.release.wait(timeout=5)
        return GenerationResult.success("A story that took its time.")


def _post_in_background(client, results, key):
    def run():
        results[key] = client.post("/api/story", json={"prompt": "A slow idea", "apiKey": "user-key"})

    thread = threading.Thread(target=run)
    thread.start()
    return thread


@pytest.fixture
def gated_client(monkeypatch):
    story_client = GatedClient()
    monkeypatch.setattr(session_utils, "get_story_client", lambda: story_client)
    app = create_app(TestConfig)
    client = app.test_client()
    client.get("/")
    yield client, story_client
    story_client.release.set()


def test_api_story_submit_while_loading_returns_conflict(gated_client):
    client, story_client = gated_client
    results = {}
    thread = _post_in_background(client, results, "first")
    try:
        assert story_client.entered.wait(timeout=5)

        second = client.post("/api/story", json={"prompt": "An impatient idea", "apiKey": "user-key"})
    finally:
        story_client.release.set()
        thread.join(timeout=5)

    assert second.status_code == 409
    assert second.get_json()["status"] == "ignored"
    assert second.get_json()["notification"] is None
    assert results["first"].status_code == 200
    assert results["first"].get_json()["story"] == "A story that took its time."
    assert len(story_client.calls) == 1


def test_api_story_result_after_reset_is_discarded(gated_client):
    client, story_client = gated_client
    results = {}
    thread = _post_in_background(client, results, "first")
    try:
        assert story_client.entered.wait(timeout=5)

        client.post("/reset")
    finally:
        story_client.release.set()
        thread.join(timeout=5)

    response = results["first"]
    assert response.status_code == 409
    payload = response.get_json()
    assert payload["status"] == "discarded"
    assert payload["story"] is None
    assert len(story_client.calls) == 1


@pytest.mark.parametrize("url,body", [("/api/story", "prompt"), ("/api/story", ["prompt"]), ("/api/draft", ["prompt"])])
def test_api_rejects_non_object_json(client, story_client, url, body):
    response = client.post(url, json=body)

    assert response.status_code == 400
    assert story_client.calls == []


def test_api_story_non_object_json_carries_notification(client):
    payload = client.post("/api/story", json=42).get_json()

    assert payload["status"] == "rejected"
    assert payload["notification"]["variant"] == "destructive"


def test_api_story_applies_prompt_length_limit(client, story_client):
    response = client.post("/api/story", json={"prompt": "x" * 2001, "apiKey": "user-key"})

    assert response.status_code == 400
    assert "2000" in response.get_json()["notification"]["description"]
    assert story_client.calls == []
    assert client.post("/api/draft", json={"prompt": "x" * 2001}).status_code == 400


def test_caller_key_is_not_rendered_and_is_reused(client, story_client):
    story_client.results.extend([GenerationResult.success("One."), GenerationResult.success("Two.")])
    _submit(client, "A lighthouse keeper", api_key="secret-user-key")

    page = client.get("/")
    assert b"secret-user-key" not in page.data
    assert b"Key saved for this session" in page.data

    response = _submit(client, "A second lighthouse", api_key="")
    assert b"Two." in response.data
    assert story_client.calls[1][1] == "secret-user-key"


def test_api_story_unexpected_error_returns_notification(client, story_client):
    def broken_generate(instruction_text, api_key=None):
        raise RuntimeError("boom")

    story_client.generate = broken_generate

    response = client.post("/api/story", json={"prompt": "A broken clock", "apiKey": "user-key"})

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["status"] == "failed"
    assert payload["notification"]["title"] == "Error generating story"
