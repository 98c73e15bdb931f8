import json

import ollama
import pytest
import requests
from unittest.mock import MagicMock, patch

from copyreuse.agents.rewriter import IRewriter, MockRewriter, OllamaRewriter, OpenAIRewriter
from copyreuse.core.errors import GenerationUnavailableError
from copyreuse.core.prompts import build_user_prompt, parse_suggestions


def _response(payload, status_code=200):
    response = MagicMock()
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestOpenAIRewriter:

    def test_sends_system_and_user_messages(self):
        rewriter = OpenAIRewriter(api_key="sk-test", base_url="https://example.test/v1")
        reply = {"choices": [{"message": {"content": "1. Save\n2. Keep"}}]}

        with patch("copyreuse.agents.rewriter.requests.post", return_value=_response(reply)) as post:
            content = rewriter.rewrite("system text", "user text")

        assert content == "1. Save\n2. Keep"
        assert post.call_args.args[0] == "https://example.test/v1/chat/completions"
        body = json.loads(post.call_args.kwargs["data"])
        assert body["model"] == "gpt-4"
        assert body["temperature"] == 0.5
        assert body["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    def test_null_content_is_empty(self):
        rewriter = OpenAIRewriter(api_key="sk-test")
        reply = {"choices": [{"message": {"content": None}}]}

        with patch("copyreuse.agents.rewriter.requests.post", return_value=_response(reply)):
            assert rewriter.rewrite("s", "u") == ""

    def test_http_failure(self):
        rewriter = OpenAIRewriter(api_key="sk-test")

        with patch("copyreuse.agents.rewriter.requests.post", return_value=_response({}, 500)):
            with pytest.raises(GenerationUnavailableError):
                rewriter.rewrite("s", "u")

    def test_unexpected_shape(self):
        rewriter = OpenAIRewriter(api_key="sk-test")

        with patch("copyreuse.agents.rewriter.requests.post", return_value=_response({"choices": []})):
            with pytest.raises(GenerationUnavailableError):
                rewriter.rewrite("s", "u")


class TestOllamaRewriter:

    def test_returns_message_content(self):
        rewriter = OllamaRewriter(model_name="llama3", temperature=0.2)

        with patch("copyreuse.agents.rewriter.ollama.chat",
                   return_value={"message": {"content": "1. Save"}}) as chat:
            assert rewriter.rewrite("s", "u") == "1. Save"

        assert chat.call_args.kwargs["model"] == "llama3"
        assert chat.call_args.kwargs["options"] == {"temperature": 0.2}

    def test_model_error(self):
        rewriter = OllamaRewriter()

        with patch("copyreuse.agents.rewriter.ollama.chat", side_effect=ollama.ResponseError("model not found")):
            with pytest.raises(GenerationUnavailableError):
                rewriter.rewrite("s", "u")

    def test_connection_error(self):
        rewriter = OllamaRewriter()

        with patch("copyreuse.agents.rewriter.ollama.chat", side_effect=ConnectionError("refused")):
            with pytest.raises(GenerationUnavailableError):
                rewriter.rewrite("s", "u")


def test_mock_rewriter_echoes_text():
    rewriter = MockRewriter(count=3)
    assert isinstance(rewriter, IRewriter)

    raw = rewriter.rewrite("system", build_user_prompt("Save changes", None))

    assert parse_suggestions(raw) == ["Save changes", "Save changes now", "Go to Save changes"]
