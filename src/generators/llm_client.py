"""Chat-completions client for documentation generation.

Wraps the OpenAI SDK to send a single prompt as one user turn and
return the first choice's text. Every call is a single attempt with a
bounded timeout; failures are classified into the RequestError family
so callers never see SDK exceptions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import openai
from openai import OpenAI

from src.security.cipher import Credential
from src.utils.config import APIConfig
from src.utils.errors import HttpStatusError, MalformedResponseError, NetworkError

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    """Token usage statistics for a single API call.

    Attributes:
        input_tokens: Number of tokens in the prompt.
        output_tokens: Number of tokens in the response.
    """

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed."""
        return self.input_tokens + self.output_tokens


@dataclass
class GenerationResult:
    """Result of an LLM generation call.

    Attributes:
        content: The generated text of the first choice.
        usage: Token usage statistics.
        model: Model that produced the result.
        finish_reason: Reason the generation stopped.
    """

    content: str
    usage: TokenUsage
    model: str
    finish_reason: Optional[str] = None


class LLMClient:
    """Client for an OpenAI-compatible chat-completions endpoint.

    The client holds no credential. An SDK client is built for each call
    from the credential passed in and discarded when the call returns.
    """

    def __init__(self, config: Optional[APIConfig] = None) -> None:
        """Initialize the LLM client.

        Args:
            config: API configuration. Uses defaults if not provided.
        """
        self.config = config or APIConfig()

    def complete(
        self,
        credential: Credential,
        prompt: str,
        model: Optional[str] = None,
    ) -> GenerationResult:
        """Send ``prompt`` as a single user message and return the reply.

        Args:
            credential: Bearer credential for the service.
            prompt: The complete prompt.
            model: Model name. Uses the configured model by default.

        Returns:
            A GenerationResult holding the first choice's text.

        Raises:
            NetworkError: If the connection failed or timed out.
            HttpStatusError: If the service returned a non-success status.
            MalformedResponseError: If the body is not valid JSON or has no
                usable choice.
        """
        model_name = model or self.config.model
        logger.info(
            "Sending completion request: model=%s, prompt_length=%d",
            model_name,
            len(prompt),
        )

        client = self._build_client(credential.reveal())
        try:
            response = client.chat.completions.create(
                model=model_name,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APITimeoutError as e:
            raise NetworkError(
                f"Request timed out after {self.config.timeout_seconds:g} seconds"
            ) from e
        except openai.APIConnectionError as e:
            raise NetworkError(f"Request error: {e}") from e
        except openai.APIStatusError as e:
            raise HttpStatusError(e.status_code, e.message) from e
        except openai.APIResponseValidationError as e:
            raise MalformedResponseError(f"Unexpected response body: {e}") from e
        except ValueError as e:
            raise MalformedResponseError(f"Response body is not valid JSON: {e}") from e
        finally:
            client.close()

        result = self._parse_response(response, model_name)
        logger.info(
            "Generated %d tokens (input: %d, output: %d)",
            result.usage.total_tokens,
            result.usage.input_tokens,
            result.usage.output_tokens,
        )
        return result

    def _build_client(self, api_key: str) -> OpenAI:
        """Create a single-use SDK client with retries disabled."""
        return OpenAI(
            api_key=api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            max_retries=0,
        )

    @staticmethod
    def _parse_response(response: Any, model_name: str) -> GenerationResult:
        """Extract the first choice from a chat-completions response.

        Raises:
            MalformedResponseError: If choices are missing, empty or not a
                list, or the first choice carries no text.
        """
        choices = getattr(response, "choices", None)
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError("No output received from API: empty choices")

        choice = choices[0]
        message = getattr(choice, "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise MalformedResponseError(
                "No output received from API: first choice has no text"
            )

        usage = TokenUsage()
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            usage = TokenUsage(
                input_tokens=getattr(raw_usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(raw_usage, "completion_tokens", 0) or 0,
            )

        return GenerationResult(
            content=content,
            usage=usage,
            model=getattr(response, "model", None) or model_name,
            finish_reason=getattr(choice, "finish_reason", None),
        )
