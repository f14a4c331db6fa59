"""Shared fixtures for PixelPrompt tests."""

import json

import httpx
import pytest

from pixelprompt.generators import ImageGenerationResponse, PromptEnhancementResponse
from pixelprompt.generators.chat import AIClient
from pixelprompt.storage import HistoryStore, MemoryStore, SettingsStore


def chat_response(content, status_code: int = 200) -> httpx.Response:
    """A chat-completions response whose first choice carries ``content``."""
    return httpx.Response(status_code, json={"choices": [{"message": {"content": content}}]})


class RecordingTransport(httpx.MockTransport):
    """MockTransport that replays scripted responses and records requests."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def payload(self, n: int = 0) -> dict:
        return json.loads(self.requests[n].content)


class ScriptedClient:
    """Stands in for AIClient, returning queued image responses in order."""

    image_timeout_ms = 300_000
    text_timeout_ms = 30_000

    def __init__(self, outcomes=(), enhancement=None):
        self.outcomes = list(outcomes)
        self.enhancement = enhancement or PromptEnhancementResponse(success=True, enhanced_prompt="enhanced")
        self.calls = []
        self.enhance_calls = []

    def generate_image(self, prompt, size=None, style=None, system_prompt=None):
        self.calls.append({"prompt": prompt, "size": size, "style": style, "system_prompt": system_prompt})
        outcome = self.outcomes.pop(0)
        if outcome is True:
            n = len(self.calls)
            return ImageGenerationResponse(success=True, image_url=f"https://img.example/{n}.png", generation_time=100 * n)
        return ImageGenerationResponse(success=False, error=outcome or "HTTP error! status: 500", generation_time=5)

    def enhance_prompt(self, original_prompt, style_context=None, system_prompt=None):
        self.enhance_calls.append({
            "original_prompt": original_prompt,
            "style_context": style_context,
            "system_prompt": system_prompt,
        })
        return self.enhancement


@pytest.fixture
def make_client():
    """Build an AIClient backed by a RecordingTransport."""
    clients = []

    def factory(*responses, **kwargs):
        transport = RecordingTransport(responses)
        client = AIClient(api_key="test-key", customer_id="cus_test", transport=transport, **kwargs)
        clients.append(client)
        return client, transport

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def history(store):
    return HistoryStore(store, max_items=50)


@pytest.fixture
def settings_store(store):
    return SettingsStore(store)
