"""OpenAI drafting adapter.

Uses the OpenAI Responses API with the file_search tool so that drafting is
grounded in pre-populated vector stores (contract templates and statutes).
Every call is a fresh generation: no caching, no SDK retries.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from app.core.config import GenerationConfig
from app.core.errors import UpstreamGenerationError

logger = logging.getLogger(__name__)

# Models occasionally wrap the document in a Markdown fence despite instructions
_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group("body").strip() if match else text


class ContractDrafter:
    """Drafts contract markup with a retrieval-grounded generative model."""

    def __init__(self, config: GenerationConfig, client: Optional[AsyncOpenAI] = None):
        self._config = config
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = AsyncOpenAI(timeout=self._config.llm_timeout_s, max_retries=0)
        return self._client

    async def draft(
        self,
        system_instructions: str,
        user_instructions: str,
        grounding_store_ids: Sequence[str],
    ) -> str:
        """Draft a document and return its raw markup.

        Raises:
            UpstreamGenerationError: API failure or empty response.
        """
        request = {
            "model": self._config.model,
            "input": [
                {"role": "system", "content": system_instructions},
                {"role": "user", "content": user_instructions},
            ],
            "tools": [
                {
                    "type": "file_search",
                    "vector_store_ids": list(grounding_store_ids),
                }
            ],
        }
        if self._config.llm_service_tier:
            request["service_tier"] = self._config.llm_service_tier

        logger.info(
            "Requesting draft from %s grounded on %s",
            self._config.model,
            ", ".join(grounding_store_ids),
        )

        try:
            response = await self._get_client().responses.create(**request)
        except OpenAIError as e:
            logger.warning("Drafting request failed: %s", e)
            raise UpstreamGenerationError(f"drafting request failed: {e}") from e

        text = (getattr(response, "output_text", None) or "").strip()
        if not text:
            raise UpstreamGenerationError("empty response from drafting model")

        markup = _strip_code_fence(text)
        logger.info("Draft received: %d chars", len(markup))
        return markup


__all__ = ["ContractDrafter"]
