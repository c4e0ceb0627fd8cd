"""
OpenAI chat client for project generation.

Turns transport and HTTP outcomes into classified ModelClientError kinds.
Provider text never travels beyond a short truncated detail.
"""

import logging
from typing import Dict, List, Optional

from openai import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    OpenAI,
    OpenAIError,
)

from ..config.loader import ModelConfig
from ..core.errors import ErrorKind, ModelClientError

logger = logging.getLogger(__name__)


def classify_status_code(status_code: int) -> ErrorKind:
    """Map an HTTP status from the model endpoint to an error kind."""
    if status_code in (401, 403):
        return ErrorKind.AUTH_ERROR
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if 500 <= status_code < 600:
        return ErrorKind.SERVICE_UNAVAILABLE
    return ErrorKind.TRANSPORT_ERROR


class ModelClient:
    """Chat completion client with classified failures.

    No automatic retries are performed; retry policy belongs to the caller.
    """

    def __init__(self, config: Optional[ModelConfig] = None, api_key: Optional[str] = None):
        """Initialize the model client.

        Args:
            config: Model settings (defaults when omitted)
            api_key: Explicit credential; read from the configured
                environment variable when omitted
        """
        self.config = config or ModelConfig()
        self.api_key = api_key or self.config.resolve_api_key()
        self.client = None
        if self.api_key:
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                max_retries=0
            )
        else:
            logger.warning("No API key found in %s; generation is disabled", self.config.api_key_env)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def generate(self, prompt: str, system_message: Optional[str] = None) -> str:
        """Send the prompt and return the reply text.

        Args:
            prompt: Instruction for the model
            system_message: Optional system message sent before the prompt

        Returns:
            Content of the first choice

        Raises:
            ModelClientError: Classified failure of the call
        """
        messages: List[Dict[str, str]] = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": prompt})
        return self.complete(messages)

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Run a chat completion over prepared messages."""
        if not self.configured:
            raise ModelClientError(ErrorKind.UNCONFIGURED, "API key is not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.config.name,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens
            )
        except APIStatusError as e:
            kind = classify_status_code(e.status_code)
            logger.error("Model endpoint returned HTTP %s (%s)", e.status_code, kind.value)
            raise ModelClientError(kind, f"HTTP {e.status_code}: {e.message}") from e
        except APIResponseValidationError as e:
            logger.error("Model endpoint returned an unreadable body")
            raise ModelClientError(ErrorKind.MALFORMED_UPSTREAM_RESPONSE, str(e)) from e
        except APIConnectionError as e:
            logger.error("Could not reach model endpoint: %s", type(e).__name__)
            raise ModelClientError(ErrorKind.TRANSPORT_ERROR, str(e)) from e
        except OpenAIError as e:
            logger.error("Model call failed: %s", type(e).__name__)
            raise ModelClientError(ErrorKind.TRANSPORT_ERROR, str(e)) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ModelClientError(
                ErrorKind.MALFORMED_UPSTREAM_RESPONSE, "reply has no choices[0].message.content"
            ) from e

        if not isinstance(content, str):
            raise ModelClientError(
                ErrorKind.MALFORMED_UPSTREAM_RESPONSE, "reply content is missing"
            )
        return content
