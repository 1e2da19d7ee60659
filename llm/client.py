"""
OpenAI-compatible client using direct REST calls.
Sends one chat completion with structured output per request; no retries.
"""
import json
from typing import Any, Dict, List, Optional

import requests
import urllib3

from core.config import Settings, get_settings
from core.exceptions import ConfigurationError, LLMError
from core.logger import setup_logger

logger = setup_logger(__name__)


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ``` markdown block if the model added one."""
    stripped = content.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.split("\n")
    if lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def extract_message_content(completion_data: Dict[str, Any]) -> Optional[str]:
    """
    Find the assistant text in a completion payload.

    Handles both chat-completions ("choices") and responses-style ("output") bodies.
    """
    if "choices" in completion_data:
        try:
            return completion_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            pass

    for item in completion_data.get("output", []) or []:
        if item.get("type") == "message" and item.get("role") == "assistant":
            for content_item in item.get("content", []):
                if content_item.get("type") == "output_text":
                    return content_item.get("text")
    return None


class LLMClient:
    """Wrapper for an OpenAI-compatible chat completions endpoint."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        """Initialize REST API client."""
        self.settings = settings or get_settings()
        if not self.settings.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY environment variable not set",
                details={"required_key": "OPENAI_API_KEY"}
            )

        self.gateway_url = self.settings.openai_gateway_url
        self.api_key = self.settings.openai_api_key
        self.model = self.settings.openai_model
        self.timeout = self.settings.openai_timeout
        self.verify_ssl = self.settings.openai_verify_ssl
        self.session = session or requests.Session()

        if not self.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        logger.info(f"Initialized LLM client with model: {self.model}, gateway: {self.gateway_url}")

    def build_payload(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Dict[str, Any],
        temperature: float,
    ) -> Dict[str, Any]:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "category_suggestion",
                    "strict": True,
                    "schema": response_schema
                }
            }
        }

        # Reasoning models reject an explicit temperature
        if not self.model.lower().startswith(("o1", "o3", "o4", "gpt-5")):
            payload["temperature"] = temperature

        return payload

    def call_with_structured_output(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Dict[str, Any],
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Call the completions API with structured output.

        Args:
            system_prompt: System instruction
            user_message: User message with transaction details
            response_schema: JSON schema for structured output
            temperature: Model temperature (defaults to configured value)

        Returns:
            Parsed JSON object returned by the model

        Raises:
            LLMError: If the call fails or the response cannot be parsed
        """
        if temperature is None:
            temperature = self.settings.openai_temperature

        payload = self.build_payload(system_prompt, user_message, response_schema, temperature)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}"
        }

        try:
            response = self.session.post(
                self.gateway_url,
                headers=headers,
                data=json.dumps(payload),
                verify=self.verify_ssl,
                timeout=self.timeout
            )
            response.raise_for_status()
            completion_data = response.json()

            content = extract_message_content(completion_data)
            if not content:
                logger.error(f"Response keys: {list(completion_data.keys())}")
                raise ValueError(
                    "Unexpected response structure: could not find content in 'choices' or 'output'"
                )

            result = json.loads(strip_code_fences(content))
            if not isinstance(result, dict):
                raise ValueError(f"Expected a JSON object, got {type(result).__name__}")

            if "usage" in completion_data:
                usage = completion_data["usage"]
                logger.debug(
                    f"Token usage - Input: {usage.get('prompt_tokens', 'N/A')}, "
                    f"Output: {usage.get('completion_tokens', 'N/A')}"
                )

            return result

        except requests.exceptions.Timeout as e:
            raise LLMError(
                f"Request timeout after {self.timeout}s",
                details={"gateway_url": self.gateway_url, "timeout": self.timeout, "error": str(e)}
            )

        except requests.exceptions.HTTPError as e:
            raise LLMError(
                f"Gateway returned HTTP error: {e}",
                details={
                    "gateway_url": self.gateway_url,
                    "status_code": getattr(e.response, "status_code", None),
                }
            )

        except requests.exceptions.JSONDecodeError as e:
            raise LLMError(
                f"Gateway returned invalid JSON: {e}",
                details={"gateway_url": self.gateway_url, "error": str(e)}
            )

        except requests.exceptions.RequestException as e:
            raise LLMError(
                f"Failed to connect to gateway: {e}",
                details={"gateway_url": self.gateway_url, "error": str(e)}
            )

        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise LLMError(
                f"Gateway response parsing error: {e}",
                details={"error": str(e)}
            )


def create_response_schema(candidate_labels: List[str]) -> Dict[str, Any]:
    """
    Create the JSON schema for a single category suggestion.

    Args:
        candidate_labels: Labels the model may choose from

    Returns:
        JSON schema dictionary
    """
    return {
        "type": "object",
        "properties": {
            "label": {
                "type": "string",
                "enum": list(candidate_labels),
                "description": "The most appropriate category for the transaction"
            }
        },
        "required": ["label"],
        "additionalProperties": False
    }


# Singleton client instance
_client: Optional[LLMClient] = None


def get_client() -> LLMClient:
    """
    Get or create the LLM client singleton.

    Raises:
        ConfigurationError: If no API key is configured
    """
    global _client
    if _client is None:
        _client = LLMClient()
    return _client


def reset_client() -> None:
    """Drop the client singleton (useful for testing)."""
    global _client
    _client = None
