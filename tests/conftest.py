from __future__ import annotations

import pytest

from config import Settings


@pytest.fixture
def cfg() -> Settings:
    """Settings isolado do .env local."""
    return Settings(
        llm_provider="gemini",
        llm_model="test-model",
        openai_api_key=None,
        gemini_api_key=None,
        llama_base_url=None,
        llama_api_key=None,
    )
