import logging
from typing import Any, List, Literal, Optional, TypedDict

import openai

from WillChat.config import (COMPLETION_MAX_TOKENS, COMPLETION_MODEL, COMPLETION_PROVIDER, COMPLETION_TEMPERATURE)
from WillChat.services.exceptions import (CompletionAPIError, CompletionEmptyResponseError, CompletionError, CompletionTransportError)
from WillChat.services.openai_compatible_client import get_async_openai_compatible_client

logger = logging.getLogger(__name__)


class ChatCompletionMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


# Pull the provider's own error message out of an APIStatusError body, if it sent one
def _remote_error_message(exc: openai.APIStatusError) -> Optional[str]:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict):
            message = inner.get("message")
            if isinstance(message, str) and message:
                return message
        elif isinstance(inner, str) and inner:
            return inner
    return None


class CompletionClient:
    """Single-shot chat completion against an OpenAI-compatible endpoint.

    Returns the text of the first choice. Every failure is raised as a
    ``CompletionError`` subclass; nothing is retried.
    """

    def __init__(self, provider: Optional[str] = None, model: Optional[str] = None,
                 temperature: Optional[float] = None, max_tokens: Optional[int] = None,
                 client: Any = None) -> None:
        self.provider = (provider or COMPLETION_PROVIDER).lower()
        self.model = model or COMPLETION_MODEL
        self.temperature = COMPLETION_TEMPERATURE if temperature is None else temperature
        self.max_tokens = COMPLETION_MAX_TOKENS if max_tokens is None else max_tokens
        self._client = client

    async def complete(self, messages: List[ChatCompletionMessage]) -> str:
        owns_client = self._client is None
        client = self._client if not owns_client else get_async_openai_compatible_client(self.provider)
        try:
            try:
                response = await client.chat.completions.create(
                    model = self.model,
                    messages = messages,
                    temperature = self.temperature,
                    max_tokens = self.max_tokens,
                )
            except openai.APIStatusError as e:
                raise CompletionAPIError(e.status_code, _remote_error_message(e)) from e
            except openai.APIConnectionError as e:
                raise CompletionTransportError(f"Completion request failed: {e}") from e
            except openai.APIError as e:
                # Includes APIResponseValidationError for bodies the SDK cannot parse
                raise CompletionTransportError(f"Completion request failed: {e}") from e

            choices = getattr(response, "choices", None)
            if not choices:
                raise CompletionEmptyResponseError("No response from completion API")

            message = getattr(choices[0], "message", None)
            content = getattr(message, "content", None)
            if not isinstance(content, str):
                raise CompletionEmptyResponseError("Completion API returned a choice without text")
            return content
        except CompletionError as e:
            logger.error("completion.error: provider=%s model=%s: %s", self.provider, self.model, e)
            raise
        finally:
            if owns_client:
                try:
                    await client.close()
                except Exception:
                    pass
