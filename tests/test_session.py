"""Tests for the generation session state machine."""

from conftest import ScriptedClient
from pixelprompt.generators import PromptEnhancementResponse
from pixelprompt.models import GenerationOptions
from pixelprompt.session import GenerationSession


class TestGenerate:
    """Tests for generate method."""

    def test_success(self, history, settings_store):
        """Should fill images and finish at 100%."""
        client = ScriptedClient([True, True])
        session = GenerationSession(client, history=history, settings=settings_store)

        state = session.generate(GenerationOptions(prompt="a cat", style="realistic", batch_count=2))

        assert state.status == "succeeded"
        assert state.error is None
        assert state.progress == 100
        assert state.total_batches == 2
        assert state.current_batch == 2
        assert [i.url for i in state.images] == ["https://img.example/1.png", "https://img.example/2.png"]
        assert all(i.style == "realistic" for i in state.images)

    def test_soft_error_keeps_images(self):
        """Should keep successful images and report a partial failure."""
        client = ScriptedClient([True, None, True])
        session = GenerationSession(client)

        state = session.generate(GenerationOptions(prompt="a cat", batch_count=3))

        assert len(state.images) == 2
        assert state.error == "Generated 2/3 images successfully"
        assert state.has_soft_error

    def test_total_failure(self):
        """Should clear images and surface the first error."""
        client = ScriptedClient(["HTTP error! status: 500"])
        session = GenerationSession(client)

        state = session.generate(GenerationOptions(prompt="a cat", batch_count=3))

        assert state.status == "failed"
        assert state.images == []
        assert state.error == "HTTP error! status: 500"
        assert not state.is_generating

    def test_validation_failure(self):
        """Should fail without calling the client."""
        client = ScriptedClient()
        session = GenerationSession(client)

        state = session.generate(GenerationOptions(prompt="x" * 501))

        assert state.status == "failed"
        assert "500 characters" in state.error
        assert client.calls == []

    def test_unexpected_error_ends_generation(self):
        """Should leave the generating state with the error message when the client raises."""
        class Exploding(ScriptedClient):
            def generate_image(self, *args, **kwargs):
                raise RuntimeError("kaboom")

        session = GenerationSession(Exploding())

        state = session.generate(GenerationOptions(prompt="a cat"))

        assert state.status == "failed"
        assert not state.is_generating
        assert state.progress == 0
        assert state.error == "kaboom"

    def test_unexpected_error_without_message(self):
        """Should fall back to a generic message for a silent exception."""
        class Exploding(ScriptedClient):
            def generate_image(self, *args, **kwargs):
                raise RuntimeError()

        state = GenerationSession(Exploding()).generate(GenerationOptions(prompt="a cat"))

        assert state.error == "Unknown error occurred"

    def test_new_request_replaces_state(self):
        """Should replace the previous state wholesale."""
        client = ScriptedClient([True, "HTTP error! status: 500"])
        session = GenerationSession(client)

        session.generate(GenerationOptions(prompt="a cat"))
        state = session.generate(GenerationOptions(prompt="a dog"))

        assert state.images == []
        assert state.error == "HTTP error! status: 500"


class TestRetry:
    """Tests for retry method."""

    def test_replays_last_options(self):
        """Should resend the last request unchanged."""
        client = ScriptedClient(["HTTP error! status: 503", True])
        session = GenerationSession(client)
        options = GenerationOptions(prompt="a cat", size="512x512", style="vintage", system_prompt="sys")

        session.generate(options)
        state = session.retry()

        assert state.status == "succeeded"
        assert client.calls[0] == client.calls[1]

    def test_retry_without_request(self):
        """Should return None when nothing has been generated."""
        assert GenerationSession(ScriptedClient()).retry() is None


class TestClear:
    """Tests for clear_images and clear_error."""

    def test_clear_images_and_error(self):
        """Should clear the error without touching images, then reset to idle."""
        session = GenerationSession(ScriptedClient([True, None]))
        session.generate(GenerationOptions(prompt="a cat", batch_count=2))

        session.clear_error()
        assert session.state.error is None
        assert session.state.images

        session.clear_images()
        assert session.state.images == []
        assert session.state.status == "idle"


class TestHistoryRecording:
    """Tests for recording successful images to history."""

    def test_successes_added_to_history(self, history, settings_store):
        """Should prepend generated images to history."""
        session = GenerationSession(ScriptedClient([True, True]), history=history, settings=settings_store)

        state = session.generate(GenerationOptions(prompt="a cat", batch_count=2))

        assert [i.id for i in history.get_history()] == [i.id for i in state.images]

    def test_save_history_disabled(self, history, settings_store):
        """Should skip history when saveHistory is off."""
        settings_store.update(saveHistory=False)
        session = GenerationSession(ScriptedClient([True]), history=history, settings=settings_store)

        session.generate(GenerationOptions(prompt="a cat"))

        assert history.get_history() == []

    def test_failures_not_recorded(self, history):
        """Should not record anything for a failed batch."""
        session = GenerationSession(ScriptedClient([None]), history=history)
        session.generate(GenerationOptions(prompt="a cat"))
        assert history.get_history() == []


class TestEnhance:
    """Tests for enhance method."""

    def test_uses_style_context_and_system_prompt_override(self, settings_store):
        """Should pass the style context and stored system prompt."""
        settings_store.set_system_prompt("Be poetic")
        client = ScriptedClient(enhancement=PromptEnhancementResponse(success=True, enhanced_prompt="a regal cat"))
        session = GenerationSession(client, settings=settings_store)

        result = session.enhance("a cat", "realistic")

        assert result.enhanced_prompt == "a regal cat"
        assert client.enhance_calls == [{
            "original_prompt": "a cat",
            "style_context": "Realistic style: Lifelike and natural appearance",
            "system_prompt": "Be poetic",
        }]

    def test_default_system_prompt_when_no_override(self):
        """Should leave the system prompt to the client default."""
        client = ScriptedClient()
        GenerationSession(client).enhance("a cat")
        assert client.enhance_calls[0]["system_prompt"] is None
        assert client.enhance_calls[0]["style_context"] == ""

    def test_invalid_prompt(self):
        """Should reject an empty prompt without calling the client."""
        client = ScriptedClient()
        result = GenerationSession(client).enhance("")
        assert not result.success
        assert client.enhance_calls == []
