"""
Category suggestion with a random fallback.

Whatever happens on the way to the model, the caller always gets back one of
the candidate labels. When the model call fails or answers with a label that
is not a candidate, a candidate is picked uniformly at random instead. The
fallback is only visible in the server log; to the end user it looks like a
normal suggestion.
"""
import random
from typing import Any, List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import LLMError, TaggerException, ValidationError
from core.logger import setup_logger
from core.schema import SuggestionRequest, SuggestionResponse
from llm.client import create_response_schema, get_client
from llm.prompts import build_system_prompt, build_user_message

logger = setup_logger(__name__)


class StructuredOutputClient(Protocol):
    def call_with_structured_output(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: dict,
        temperature: Optional[float] = None,
    ) -> dict:
        ...


class CategorySuggester:
    """Suggests one category label per transaction description."""

    def __init__(
        self,
        client: Optional[StructuredOutputClient] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Args:
            client: Model client; the configured singleton is used when omitted
            rng: Random source for the fallback pick
        """
        self._client = client
        self.rng = rng or random.Random()

    @property
    def client(self) -> StructuredOutputClient:
        if self._client is None:
            self._client = get_client()
        return self._client

    def request_label(self, request: SuggestionRequest) -> str:
        """
        Ask the model for a label.

        Raises:
            LLMError: If the call fails or returns a label outside the candidates
        """
        raw: Any = self.client.call_with_structured_output(
            system_prompt=build_system_prompt(),
            user_message=build_user_message(request.description, request.candidate_labels),
            response_schema=create_response_schema(request.candidate_labels),
        )

        try:
            response = SuggestionResponse.model_validate(raw)
        except PydanticValidationError as e:
            raise LLMError("Malformed suggestion response", details={"error": str(e)})

        if response.label not in request.candidate_labels:
            raise LLMError(
                f"Suggested label '{response.label}' is not a candidate",
                details={"label": response.label}
            )
        return response.label

    def suggest(self, description: str, candidate_labels: List[str]) -> str:
        """
        Suggest a category label for a transaction description.

        Args:
            description: Transaction details text
            candidate_labels: Labels to choose from

        Returns:
            One of candidate_labels

        Raises:
            ValidationError: If there are no candidate labels to choose from
        """
        if not candidate_labels:
            raise ValidationError("At least one candidate category is required")

        request = SuggestionRequest(description=description, candidate_labels=list(candidate_labels))

        try:
            return self.request_label(request)
        except TaggerException as e:
            logger.warning(f"Category suggestion failed, using random fallback: {e.message}")
        except Exception as e:
            logger.warning(f"Unexpected suggestion error, using random fallback: {e}")

        return self.rng.choice(request.candidate_labels)


def suggest_category(description: str, candidate_labels: List[str]) -> str:
    """Suggest a label with the default client and a fresh random source."""
    return CategorySuggester().suggest(description, candidate_labels)
