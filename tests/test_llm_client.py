"""Tests for the LLM client with mocked API responses."""

from typing import Optional
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
from openai import OpenAI

from src.generators.llm_client import GenerationResult, LLMClient, TokenUsage
from src.security.cipher import Credential
from src.utils.config import APIConfig
from src.utils.errors import (
    HttpStatusError,
    MalformedResponseError,
    NetworkError,
    RequestError,
)


@pytest.fixture
def config() -> APIConfig:
    """Create a test API config."""
    return APIConfig(
        base_url="https://llm.example.test/v1",
        model="gpt-5-mini",
        timeout_seconds=5.0,
    )


@pytest.fixture
def client(config: APIConfig) -> LLMClient:
    """Create an LLMClient with a test config."""
    return LLMClient(config=config)


@pytest.fixture
def credential() -> Credential:
    return Credential("sk-test-123")


def _mock_response(
    text: Optional[str] = "---\nauthor: x\n---\n# Beschrijving\n",
    choices: Optional[list] = None,
    prompt_tokens: int = 50,
    completion_tokens: int = 100,
) -> MagicMock:
    """Create a mock chat-completions response."""
    response = MagicMock()
    if choices is None:
        choice = MagicMock()
        choice.message.content = text
        choice.finish_reason = "stop"
        choices = [choice]
    response.choices = choices
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    response.model = "gpt-5-mini-2025-08-07"
    return response


def _status_error(status_code: int) -> openai.APIStatusError:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.headers = {}
    return openai.APIStatusError(
        message=f"Error code: {status_code}",
        response=mock_response,
        body={"error": {"message": "rejected"}},
    )


class TestTokenUsage:
    """Tests for TokenUsage dataclass."""

    def test_total_tokens(self) -> None:
        usage = TokenUsage(input_tokens=100, output_tokens=50)
        assert usage.total_tokens == 150

    def test_defaults(self) -> None:
        usage = TokenUsage()
        assert usage.total_tokens == 0


class TestLLMClientInit:
    """Tests for LLMClient initialization."""

    def test_default_config(self) -> None:
        client = LLMClient()
        assert client.config.model == "gpt-5-mini"

    def test_holds_no_credential(self, client: LLMClient) -> None:
        assert "sk-test-123" not in repr(vars(client))

    def test_build_client_disables_retries(self, client: LLMClient) -> None:
        with patch("src.generators.llm_client.OpenAI") as sdk:
            client._build_client("sk-test-123")
        sdk.assert_called_once_with(
            api_key="sk-test-123",
            base_url="https://llm.example.test/v1",
            timeout=5.0,
            max_retries=0,
        )


class TestComplete:
    """Tests for the complete method with a mocked SDK."""

    def test_returns_first_choice(
        self, client: LLMClient, credential: Credential
    ) -> None:
        second = MagicMock()
        second.message.content = "ignored"
        first = MagicMock()
        first.message.content = "# Eerste\n"
        first.finish_reason = "stop"
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response(
            choices=[first, second]
        )
        with patch.object(client, "_build_client", return_value=sdk):
            result = client.complete(credential, "prompt")

        assert isinstance(result, GenerationResult)
        assert result.content == "# Eerste\n"
        assert result.finish_reason == "stop"
        assert result.usage.input_tokens == 50
        assert result.usage.output_tokens == 100
        assert result.model == "gpt-5-mini-2025-08-07"

    def test_request_shape(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response()
        with patch.object(client, "_build_client", return_value=sdk) as build:
            client.complete(credential, "Documenteer dit")

        build.assert_called_once_with("sk-test-123")
        sdk.chat.completions.create.assert_called_once_with(
            model="gpt-5-mini",
            messages=[{"role": "user", "content": "Documenteer dit"}],
        )
        sdk.close.assert_called_once()

    def test_model_override(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response()
        with patch.object(client, "_build_client", return_value=sdk):
            client.complete(credential, "p", model="gpt-4o-mini")

        call_kwargs = sdk.chat.completions.create.call_args[1]
        assert call_kwargs["model"] == "gpt-4o-mini"

    def test_missing_usage(self, client: LLMClient, credential: Credential) -> None:
        response = _mock_response()
        response.usage = None
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = response
        with patch.object(client, "_build_client", return_value=sdk):
            result = client.complete(credential, "p")
        assert result.usage.total_tokens == 0

    def test_cleared_credential_rejected(self, client: LLMClient) -> None:
        credential = Credential("sk-test-123")
        credential.clear()
        with patch.object(client, "_build_client") as build:
            with pytest.raises(RuntimeError):
                client.complete(credential, "p")
        build.assert_not_called()


class TestMalformedResponses:
    """Tests for responses without a usable first choice."""

    def test_empty_choices(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response(choices=[])
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")

    def test_none_content(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response(text=None)
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")

    def test_missing_message(self, client: LLMClient, credential: Credential) -> None:
        choice = MagicMock()
        choice.message = None
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = _mock_response(choices=[choice])
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")

    def test_response_validation_error(
        self, client: LLMClient, credential: Credential
    ) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = openai.APIResponseValidationError(
            response=MagicMock(), body="<html>", message="not json"
        )
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")


class TestErrorClassification:
    """Tests for mapping SDK exceptions onto RequestError."""

    @pytest.mark.parametrize("status_code", [401, 404, 429, 500])
    def test_http_status(
        self, client: LLMClient, credential: Credential, status_code: int
    ) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = _status_error(status_code)
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(HttpStatusError) as exc_info:
                client.complete(credential, "p")

        assert exc_info.value.status_code == status_code
        assert str(status_code) in str(exc_info.value)
        assert sdk.chat.completions.create.call_count == 1

    def test_connection_error(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(NetworkError) as exc_info:
                client.complete(credential, "p")
        assert exc_info.value.retryable
        sdk.close.assert_called_once()

    def test_timeout(self, client: LLMClient, credential: Credential) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = openai.APITimeoutError(
            request=MagicMock()
        )
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(NetworkError, match="timed out after 5 seconds"):
                client.complete(credential, "p")

    def test_credential_not_in_error(
        self, client: LLMClient, credential: Credential
    ) -> None:
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = _status_error(401)
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(RequestError) as exc_info:
                client.complete(credential, "p")
        assert "sk-test-123" not in str(exc_info.value)


def _wire_sdk(config: APIConfig, response: httpx.Response) -> OpenAI:
    """Create a real SDK client whose transport answers with ``response``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return response

    return OpenAI(
        api_key="sk-test-123",
        base_url=config.base_url,
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class TestWireResponses:
    """Tests that run raw HTTP bodies through the SDK's own parsing."""

    def test_valid_completion(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        body = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-5-mini",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": "# Beschrijving"},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }
        sdk = _wire_sdk(config, httpx.Response(200, json=body))
        with patch.object(client, "_build_client", return_value=sdk):
            result = client.complete(credential, "p")

        assert result.content == "# Beschrijving"
        assert result.usage.total_tokens == 15

    def test_invalid_json_body(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        sdk = _wire_sdk(
            config,
            httpx.Response(
                200,
                content=b"{not json",
                headers={"content-type": "application/json"},
            ),
        )
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError, match="not valid JSON"):
                client.complete(credential, "p")

    def test_html_body(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        sdk = _wire_sdk(
            config,
            httpx.Response(
                200,
                content=b"<html>maintenance</html>",
                headers={"content-type": "text/html"},
            ),
        )
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")

    def test_choices_not_a_list(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        sdk = _wire_sdk(config, httpx.Response(200, json={"choices": {"a": 1}}))
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError):
                client.complete(credential, "p")

    def test_empty_choices(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        sdk = _wire_sdk(config, httpx.Response(200, json={"choices": []}))
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(MalformedResponseError, match="empty choices"):
                client.complete(credential, "p")

    def test_unauthorized(
        self, client: LLMClient, config: APIConfig, credential: Credential
    ) -> None:
        body = {"error": {"message": "Incorrect API key provided", "code": "invalid_api_key"}}
        sdk = _wire_sdk(config, httpx.Response(401, json=body))
        with patch.object(client, "_build_client", return_value=sdk):
            with pytest.raises(HttpStatusError) as exc_info:
                client.complete(credential, "p")
        assert exc_info.value.status_code == 401
