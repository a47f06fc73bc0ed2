"""
Tests for the Gemini text generator and chat history conversion.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from hearth.bots.generation import ChatTurn, GeminiGenerator, GenerationRequest
from hearth.core.errors import UpstreamGenerationError

REQUEST = httpx.Request("POST", "https://generativelanguage.googleapis.com/v1beta/models/m:generateContent")


def gemini_response(text: str, status: int = 200) -> httpx.Response:
    body = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return httpx.Response(status, json=body, request=REQUEST)


def error_response(status: int) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status}}, request=REQUEST)


@pytest.fixture
def request_() -> GenerationRequest:
    return GenerationRequest(
        system_instruction="Be helpful.",
        message="Hello",
        history=[ChatTurn(role="user", text="Hi"), ChatTurn(role="model", text="Hello!")],
        temperature=0.9,
    )


class TestChatTurn:
    """Tests for ChatTurn.from_client."""

    def test_text_shape(self):
        """Test {role, text} items."""
        assert ChatTurn.from_client({"role": "user", "text": "hi"}) == ChatTurn("user", "hi")

    def test_parts_shape(self):
        """Test {role, parts} items."""
        item = {"role": "model", "parts": [{"text": "hello"}]}
        assert ChatTurn.from_client(item) == ChatTurn("model", "hello")

    def test_unknown_role_is_model(self):
        """Test that anything but 'user' maps to the model role."""
        assert ChatTurn.from_client({"role": "assistant", "text": "x"}).role == "model"

    def test_missing_text(self):
        """Test an empty item."""
        assert ChatTurn.from_client({"role": "user"}).text == ""


class TestGeminiGenerator:
    """Tests for GeminiGenerator."""

    @pytest.mark.asyncio
    async def test_generate(self, request_):
        """Test a successful call and the request payload."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = gemini_response("Sure!")
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key", model="primary")
            await generator.connect()
            text = await generator.generate(request_)

        assert text == "Sure!"
        url = mock_client.post.call_args.args[0]
        payload = mock_client.post.call_args.kwargs["json"]
        assert url == "/models/primary:generateContent"
        assert payload["systemInstruction"] == {"parts": [{"text": "Be helpful."}]}
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["contents"][-1]["parts"] == [{"text": "Hello"}]
        assert payload["generationConfig"]["temperature"] == 0.9

    @pytest.mark.asyncio
    async def test_fallback_model_on_404(self, request_):
        """Test that a 404 from the primary model retries the fallback."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.side_effect = [error_response(404), gemini_response("From fallback")]
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key", model="primary", fallback_model="backup")
            await generator.connect()
            text = await generator.generate(request_)

        assert text == "From fallback"
        urls = [call.args[0] for call in mock_client.post.call_args_list]
        assert urls == ["/models/primary:generateContent", "/models/backup:generateContent"]

    @pytest.mark.asyncio
    async def test_server_error(self, request_):
        """Test that HTTP errors become UpstreamGenerationError."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = error_response(500)
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key")
            await generator.connect()
            with pytest.raises(UpstreamGenerationError):
                await generator.generate(request_)

    @pytest.mark.asyncio
    async def test_timeout(self, request_):
        """Test that transport errors become UpstreamGenerationError."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.ReadTimeout("timed out")
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key")
            await generator.connect()
            with pytest.raises(UpstreamGenerationError):
                await generator.generate(request_)

    @pytest.mark.asyncio
    async def test_no_candidates(self, request_):
        """Test an empty candidate list."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = httpx.Response(200, json={"candidates": []}, request=REQUEST)
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key")
            await generator.connect()
            with pytest.raises(UpstreamGenerationError, match="no candidates"):
                await generator.generate(request_)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"<html>Bad Gateway</html>", b"", b"{\"candidates\": ["])
    async def test_non_json_body(self, request_, body):
        """Test that a 200 with a non-JSON body becomes UpstreamGenerationError."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = httpx.Response(200, content=body, request=REQUEST)
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key")
            await generator.connect()
            with pytest.raises(UpstreamGenerationError, match="not JSON"):
                await generator.generate(request_)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, request_):
        """Test that an unconfigured key fails before any call."""
        generator = GeminiGenerator(api_key="")
        with pytest.raises(UpstreamGenerationError, match="not configured"):
            await generator.generate(request_)

    @pytest.mark.asyncio
    async def test_not_connected(self, request_):
        """Test use before connect."""
        generator = GeminiGenerator(api_key="key")
        with pytest.raises(RuntimeError):
            await generator.generate(request_)

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self):
        """Test that disconnect closes the HTTP client."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value = mock_client

            generator = GeminiGenerator(api_key="key")
            await generator.connect()
            await generator.disconnect()

        mock_client.aclose.assert_awaited_once()
