"""Text-completion API client.

This module wraps the hosted text-completion endpoint that produces the raw
sentiment commentary. It handles authentication, request timeouts and a
single retry, and reduces every failure to UpstreamFailure so the caller can
route to the keyword fallback.
"""

import time
from typing import Any, List, Optional

import requests

from src.utils.config import Config
from src.utils.exceptions import ConfigurationError, UpstreamFailure
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.together.xyz/v1"
DEFAULT_MODEL = "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free"


def extract_completion_text(payload: Any) -> str:
    """Return the text of the first completion choice.

    Args:
        payload: Decoded JSON response body

    Returns:
        Text of ``choices[0]``, stripped

    Raises:
        UpstreamFailure: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise UpstreamFailure(f"Unexpected completion response type: {type(payload).__name__}")

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise UpstreamFailure(f"Invalid completion response: {payload}")

    first = choices[0]
    text = first.get("text") if isinstance(first, dict) else None
    if not isinstance(text, str):
        raise UpstreamFailure("Completion response has no text in first choice")

    return text.strip()


class CompletionClient:
    """Client for a Together-style ``/completions`` endpoint.

    Example:
        >>> client = CompletionClient(api_key="...")
        >>> text = client.complete("Analyze the following market news...")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 800,
        temperature: float = 0.1,
        stop: Optional[List[str]] = None,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 2,
        retry_delay: float = 1.0,
    ):
        """Initialize completion client.

        Args:
            api_key: API key sent as a bearer token
            base_url: API base URL
            model: Model identifier
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            stop: Stop sequences (default: blank line)
            timeout_seconds: Per-request timeout
            retry_attempts: Total attempts per call (default 2: one retry)
            retry_delay: Delay in seconds before retrying

        Raises:
            ConfigurationError: If the API key or retry settings are invalid
        """
        if not api_key:
            raise ConfigurationError("Completion API key is required")
        if retry_attempts < 1:
            raise ConfigurationError(f"retry_attempts must be >= 1, got {retry_attempts}")
        if timeout_seconds <= 0:
            raise ConfigurationError(f"timeout_seconds must be > 0, got {timeout_seconds}")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.stop = list(stop) if stop is not None else ["\n\n"]
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

        logger.info("CompletionClient initialized (model: %s)", model)

    @classmethod
    def from_config(cls, config: Config, api_key: str) -> "CompletionClient":
        """Build a client from the ``completion`` section of a Config."""
        return cls(
            api_key=api_key,
            base_url=config.get("completion.base_url", DEFAULT_BASE_URL),
            model=config.get("completion.model", DEFAULT_MODEL),
            max_tokens=config.get("completion.max_tokens", 800),
            temperature=config.get("completion.temperature", 0.1),
            stop=config.get("completion.stop"),
            timeout_seconds=config.get("completion.timeout_seconds", 30.0),
            retry_attempts=config.get("completion.retry_attempts", 2),
            retry_delay=config.get("completion.retry_delay", 1.0),
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/completions"

    def complete(self, prompt: str) -> str:
        """Request a completion and return its text.

        Transport errors and non-2xx responses are retried; a malformed
        response body is not.

        Args:
            prompt: Prompt text

        Returns:
            Text of the first completion choice

        Raises:
            UpstreamFailure: If every attempt fails or the response is malformed
        """
        body = {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stop": self.stop,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        last_exception = None

        for attempt in range(self.retry_attempts):
            try:
                response = requests.post(
                    self.endpoint,
                    json=body,
                    headers=headers,
                    timeout=self.timeout_seconds,
                )
                response.raise_for_status()
                break
            except requests.RequestException as e:
                last_exception = e
                logger.warning(
                    "Completion request failed (attempt %d/%d): %s",
                    attempt + 1,
                    self.retry_attempts,
                    e,
                )
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.retry_delay)
        else:
            raise UpstreamFailure(
                f"Completion request failed after {self.retry_attempts} attempts: "
                f"{last_exception}"
            ) from last_exception

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFailure(f"Completion response is not valid JSON: {e}") from e

        text = extract_completion_text(payload)
        logger.debug("Raw completion text: %s", text)
        return text
