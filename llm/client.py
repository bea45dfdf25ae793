"""
OpenAI client using direct REST API calls.
Handles chat completion calls with retries on transport errors.
"""
from typing import Any, Dict, Optional

import requests
import urllib3
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Settings, get_settings
from core.exceptions import ClassificationError, ConfigurationError
from core.logger import setup_logger

logger = setup_logger(__name__)

TRANSIENT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class OpenAIClientWrapper:
    """Wrapper for the OpenAI chat completions REST API with retry logic."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        """Initialize REST API client."""
        settings = settings or get_settings()
        if not settings.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY environment variable not set",
                details={"required_key": "OPENAI_API_KEY"}
            )

        self.base_url = settings.openai_base_url
        self.model = settings.openai_model
        self.timeout = settings.openai_timeout
        self.verify_ssl = settings.openai_verify_ssl

        if not self.verify_ssl:
            # Self-signed internal gateways
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.openai_api_key}"
        })

        logger.info(f"Initialized OpenAI REST client with model: {self.model}, base url: {self.base_url}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True
    )
    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        return self.session.post(
            f"{self.base_url}/chat/completions",
            json=payload,
            timeout=self.timeout,
            verify=self.verify_ssl
        )

    def complete(self, prompt: str) -> str:
        """
        Send a single user message and return the assistant's reply.

        Args:
            prompt: User message

        Returns:
            Trimmed assistant reply (empty string if the model returned nothing)

        Raises:
            ClassificationError: On transport, HTTP or response-shape errors
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}]
        }

        try:
            response = self._post(payload)
            response.raise_for_status()

        except requests.exceptions.Timeout as e:
            logger.error(f"OpenAI request timeout after {self.timeout}s: {e}")
            raise ClassificationError(
                f"OpenAI request timeout after {self.timeout}s",
                details={"base_url": self.base_url, "timeout": self.timeout}
            )

        except requests.exceptions.HTTPError as e:
            status_code = getattr(e.response, "status_code", None)
            logger.error(f"OpenAI HTTP error: {e}")
            raise ClassificationError(
                f"Error while communicating with OpenAI: {status_code} - {getattr(e.response, 'text', '')}",
                details={"base_url": self.base_url, "response_text": getattr(e.response, "text", None)},
                status_code=status_code
            )

        except requests.exceptions.RequestException as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ClassificationError(
                f"Failed to connect to OpenAI: {str(e)}",
                details={"base_url": self.base_url, "error": str(e)}
            )

        try:
            completion = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse OpenAI response as JSON: {e}")
            raise ClassificationError(
                f"OpenAI returned invalid JSON: {e}",
                details={"raw_response": response.text}
            )

        try:
            content = completion["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.error(f"Unexpected OpenAI response structure: {completion}")
            raise ClassificationError(
                "Unexpected response structure: could not find content in 'choices'",
                details={"response": completion}
            )

        if isinstance(completion, dict) and "usage" in completion:
            usage = completion["usage"]
            logger.debug(
                f"Token usage - Input: {usage.get('prompt_tokens', 'N/A')}, "
                f"Output: {usage.get('completion_tokens', 'N/A')}"
            )

        return content.strip()
