"""Unit tests for script drafting."""

from unittest.mock import MagicMock, patch

import pytest

from scenestitch.services.script_writer import (
    DEFAULT_TAGS,
    PLACEHOLDER_LINE,
    ScriptGenerationError,
    ScriptWriter,
    default_title,
    parse_script_response,
)
from scenestitch.utils.retry import APIRateLimitError

MODEL_ANSWER = """Did you know famous landmarks hide wild secrets?
The Eiffel Tower has a tiny apartment at the top.

The Statue of Liberty once had a torch balcony.
Title: The Wildest Secret Rooms Inside Landmarks
Description: Uncover secret spaces hidden inside famous landmarks.
Tags: secrets landmarks travel viral history
"""


@pytest.mark.unit
class TestParseScriptResponse:
    def test_splits_lines_and_metadata(self):
        draft = parse_script_response(MODEL_ANSWER, "landmark secrets")

        assert draft.lines == [
            "Did you know famous landmarks hide wild secrets?",
            "The Eiffel Tower has a tiny apartment at the top.",
            "The Statue of Liberty once had a torch balcony.",
        ]
        assert draft.title == "The Wildest Secret Rooms Inside Landmarks"
        assert draft.description == "Uncover secret spaces hidden inside famous landmarks."
        assert draft.tags == "secrets landmarks travel viral history"
        assert draft.script.count("\n") == 2

    def test_caps_scene_lines(self):
        raw = "\n".join(f"Scene line {i}" for i in range(14)) + "\nTitle: Many"

        draft = parse_script_response(raw, "idea")

        assert len(draft.lines) == 10
        assert draft.lines[-1] == "Scene line 9"

    def test_metadata_labels_are_case_insensitive(self):
        draft = parse_script_response("Hook line\nTITLE: Big\ntag: one two", "idea")

        assert draft.lines == ["Hook line"]
        assert draft.title == "Big"
        assert draft.tags == "one two"

    def test_missing_metadata_uses_defaults(self):
        draft = parse_script_response("Just one line", "cats in space")

        assert draft.title == "cats in space"
        assert "cats in space" in draft.description
        assert draft.tags == DEFAULT_TAGS

    def test_empty_answer_gives_placeholder(self):
        draft = parse_script_response(None, "idea")

        assert draft.lines == [PLACEHOLDER_LINE]
        assert draft.script == PLACEHOLDER_LINE

    def test_code_fences_are_dropped(self):
        draft = parse_script_response("```\nHook line\n```\nTitle: T", "idea")
        assert draft.lines == ["Hook line"]

    def test_to_dict(self):
        draft = parse_script_response(MODEL_ANSWER, "idea")
        body = draft.to_dict()

        assert body["success"] is True
        assert body["script"] == draft.script
        assert set(body) == {"success", "script", "title", "description", "tags"}


@pytest.mark.unit
class TestDefaultTitle:
    def test_short_idea_is_kept(self):
        assert default_title("short idea") == "short idea"

    def test_long_idea_is_cut(self):
        title = default_title("x" * 80)

        assert len(title) == 60
        assert title.endswith("...")
        assert title[:57] == "x" * 57


@pytest.mark.unit
class TestScriptWriter:
    def _writer_with(self, response_text=None, error=None):
        with patch("scenestitch.services.script_writer.Client") as mock_client_cls:
            client = MagicMock()
            if error:
                client.models.generate_content.side_effect = error
            else:
                client.models.generate_content.return_value = MagicMock(text=response_text)
            mock_client_cls.return_value = client
            writer = ScriptWriter(api_key="test_key")
        return writer, client

    def test_unconfigured_without_key(self):
        writer = ScriptWriter(api_key=None)

        assert writer.is_configured() is False
        with pytest.raises(ScriptGenerationError):
            writer.write("an idea")

    def test_blank_idea(self):
        writer, client = self._writer_with(MODEL_ANSWER)

        with pytest.raises(ValueError, match="Missing idea"):
            writer.write("   ")
        client.models.generate_content.assert_not_called()

    def test_write(self):
        writer, client = self._writer_with(MODEL_ANSWER)

        draft = writer.write("  landmark secrets ")

        assert draft.title == "The Wildest Secret Rooms Inside Landmarks"
        call = client.models.generate_content.call_args
        assert "Write a viral script about: landmark secrets" in call.kwargs["contents"]
        assert call.kwargs["config"].max_output_tokens == 900

    @pytest.mark.asyncio
    async def test_write_async(self):
        writer, _ = self._writer_with(MODEL_ANSWER)

        draft = await writer.write_async("landmark secrets")

        assert len(draft.lines) == 3

    def test_model_error(self):
        writer, _ = self._writer_with(error=RuntimeError("bad request"))

        with pytest.raises(ScriptGenerationError, match="bad request"):
            writer.write("idea")

    def test_rate_limit_is_retried(self):
        writer, client = self._writer_with(error=RuntimeError("429 rate limit exceeded"))

        with patch("scenestitch.utils.retry.time.sleep"):
            with pytest.raises(APIRateLimitError):
                writer.write("idea")

        assert client.models.generate_content.call_count == 4
