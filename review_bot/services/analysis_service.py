"""
Analysis service component.

Single entry point to the language model with two call shapes: free-text
completion and schema-constrained structured completion.
"""

from typing import List, Optional, Type, TypeVar

from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from review_bot.config import Settings
from review_bot.models.analysis import ContentBlock
from review_bot.utils.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

AZURE_API_VERSION = "2024-08-01-preview"


class AnalysisServiceError(Exception):
    """Raised when the language model call fails."""
    pass


class AnalysisService:
    """Wrapper for the OpenAI/Azure OpenAI chat completions API."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        """Initialize the client based on configuration."""
        self.max_tokens = settings.analysis_max_tokens

        if client is not None:
            self.client = client
            self.model = settings.analysis_model
        elif settings.azure_openai_endpoint and settings.azure_openai_api_key:
            self.client = AsyncAzureOpenAI(
                api_key=settings.azure_openai_api_key,
                api_version=AZURE_API_VERSION,
                azure_endpoint=settings.azure_openai_endpoint,
            )
            self.model = settings.azure_openai_deployment or settings.analysis_model
            logger.info("Initialized Azure OpenAI client")
        else:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key)
            self.model = settings.analysis_model
            logger.info("Initialized OpenAI client")

    async def complete_text(self, prompt: str) -> List[ContentBlock]:
        """
        Submit a prompt and return the response as typed content blocks.

        Args:
            prompt: User prompt

        Returns:
            One block per choice: 'text' for content, 'refusal' for a refusal

        Raises:
            AnalysisServiceError: If the API call fails
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise AnalysisServiceError(f"Completion failed: {e}") from e

        blocks: List[ContentBlock] = []
        for choice in response.choices:
            message = choice.message
            if message.content:
                blocks.append(ContentBlock(type="text", text=message.content))
            elif getattr(message, "refusal", None):
                blocks.append(ContentBlock(type="refusal", text=message.refusal))
        return blocks

    async def complete_structured(self, prompt: str, schema: Type[ModelT]) -> Optional[ModelT]:
        """
        Submit a prompt constrained to ``schema`` and return the parsed object.

        Args:
            prompt: User prompt
            schema: Pydantic model describing the expected output

        Returns:
            Parsed and validated instance, or None when the model refused,
            returned nothing, or returned output that fails validation

        Raises:
            AnalysisServiceError: If the API call fails
        """
        try:
            response = await self.client.chat.completions.parse(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                response_format=schema,
            )
        except ValidationError as e:
            logger.warning(f"Structured output failed validation: {e}")
            return None
        except OpenAIError as e:
            raise AnalysisServiceError(f"Structured completion failed: {e}") from e

        if not response.choices:
            return None

        message = response.choices[0].message
        if getattr(message, "refusal", None):
            logger.warning(f"Structured completion refused: {message.refusal}")
            return None
        return message.parsed
