"""Tests for the OpenAI drafting adapter (client mocked)."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError

from app.core.errors import UpstreamGenerationError
from app.services.drafting import ContractDrafter


def _client(output_text=None, side_effect=None):
    client = MagicMock()
    client.responses.create = AsyncMock(
        return_value=MagicMock(output_text=output_text),
        side_effect=side_effect,
    )
    return client


@pytest.mark.asyncio
async def test_draft_sends_grounded_request(generation_config, sample_html):
    client = _client(output_text=sample_html)
    drafter = ContractDrafter(generation_config, client=client)

    markup = await drafter.draft("system", "user", ["vs_nda", "vs_statutes"])

    assert markup == sample_html.strip()
    kwargs = client.responses.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["input"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"},
    ]
    assert kwargs["tools"] == [{"type": "file_search", "vector_store_ids": ["vs_nda", "vs_statutes"]}]
    assert "service_tier" not in kwargs


@pytest.mark.asyncio
async def test_draft_strips_markdown_fence(generation_config):
    client = _client(output_text="```html\n<html><body>x</body></html>\n```")
    drafter = ContractDrafter(generation_config, client=client)

    assert await drafter.draft("s", "u", ["vs"]) == "<html><body>x</body></html>"


@pytest.mark.asyncio
@pytest.mark.parametrize("output_text", [None, "", "   \n"])
async def test_empty_output_raises(generation_config, output_text):
    drafter = ContractDrafter(generation_config, client=_client(output_text=output_text))

    with pytest.raises(UpstreamGenerationError, match="empty response"):
        await drafter.draft("s", "u", ["vs"])


@pytest.mark.asyncio
async def test_sdk_error_is_wrapped_and_chained(generation_config):
    error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))
    client = _client(side_effect=error)
    drafter = ContractDrafter(generation_config, client=client)

    with pytest.raises(UpstreamGenerationError) as excinfo:
        await drafter.draft("s", "u", ["vs"])

    assert excinfo.value.__cause__ is error
    client.responses.create.assert_awaited_once()
