from __future__ import annotations

import dataclasses
import logging
from typing import List, Tuple
from unittest.mock import MagicMock, patch

import pytest

from errors import EmptyAttributeSet, OracleError
from reference_oracle import (
    BaseProvider,
    GeminiProvider,
    LlamaProvider,
    OpenAIProvider,
    ReferenceOracle,
    build_provider,
    build_user_input,
)


class FakeProvider(BaseProvider):
    name = "fake"

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    def generate(self, system: str, user_input: str) -> Tuple[str, dict]:
        self.calls.append((system, user_input))
        if self.error is not None:
            raise self.error
        return self.text, {"input_tokens": 10, "output_tokens": 5}


class TestReferenceOracle:

    def test_valid_answer(self, cfg) -> None:
        provider = FakeProvider('{"Color": "red ", "Size": null}')
        answer = ReferenceOracle(provider=provider, cfg=cfg).ask("SKU-1", ["Color", "Size"])

        assert answer.values == {"Color": "red ", "Size": ""}
        assert answer.telemetry["provider"] == "fake"
        assert answer.telemetry["model"] == "test-model"
        assert answer.telemetry["input_tokens"] == 10

    def test_prompt_contents(self, cfg) -> None:
        provider = FakeProvider('{"Color": "red"}')
        ReferenceOracle(provider=provider, cfg=cfg).fetch_reference("SKU-1", ["Color"])

        system, user_input = provider.calls[0]
        assert "SKU Specification Generator" in system
        assert user_input == build_user_input("SKU-1", ["Color"])
        assert user_input.startswith("SKU: SKU-1\nAttributes: Color\n")

    def test_json_wrapped_in_prose(self, cfg) -> None:
        provider = FakeProvider('Sure! ```json\n{"Color": "Blue"}\n``` done')
        values = ReferenceOracle(provider=provider, cfg=cfg).fetch_reference("X", ["Color"])
        assert values == {"Color": "Blue"}

    def test_duplicate_names_are_asked_once(self, cfg) -> None:
        provider = FakeProvider('{"A": "1"}')
        ReferenceOracle(provider=provider, cfg=cfg).fetch_reference("X", ["A", "A"])
        assert "Attributes: A\n" in provider.calls[0][1]

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "not json at all",
            '["Color", "red"]',
            '{"Other": "x"}',
            '{"Color": "red", "Extra": "x"}',
            '{"Color": 3}',
        ],
    )
    def test_out_of_contract_answers(self, cfg, text: str) -> None:
        oracle = ReferenceOracle(provider=FakeProvider(text), cfg=cfg)
        with pytest.raises(OracleError) as exc:
            oracle.fetch_reference("X", ["Color"])
        assert exc.value.provider == "fake"

    def test_provider_failure_is_not_retried(self, cfg, caplog) -> None:
        provider = FakeProvider(error=RuntimeError("boom"))
        oracle = ReferenceOracle(provider=provider, cfg=cfg)

        with caplog.at_level(logging.WARNING, logger="reference_oracle"):
            with pytest.raises(OracleError) as exc:
                oracle.fetch_reference("X", ["Color"])

        assert len(provider.calls) == 1
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert "[LLM_CALL_FAILED]" in caplog.text

    def test_empty_names(self, cfg) -> None:
        provider = FakeProvider('{}')
        with pytest.raises(EmptyAttributeSet):
            ReferenceOracle(provider=provider, cfg=cfg).fetch_reference("X", [])
        assert provider.calls == []


class TestProviders:

    def test_unknown_provider(self, cfg) -> None:
        with pytest.raises(ValueError, match="LLM_PROVIDER"):
            build_provider(dataclasses.replace(cfg, llm_provider="nope"))

    @pytest.mark.parametrize(
        "cls, var",
        [(GeminiProvider, "GEMINI_API_KEY"), (OpenAIProvider, "OPENAI_API_KEY"), (LlamaProvider, "LLAMA_BASE_URL")],
    )
    def test_missing_credentials(self, cfg, cls, var) -> None:
        with pytest.raises(ValueError, match=var):
            cls(cfg)

    def test_llama_chat_completions(self, cfg) -> None:
        llama_cfg = dataclasses.replace(
            cfg, llm_provider="llama", llama_base_url="http://localhost:11434/v1/", llama_api_key="k"
        )
        response = MagicMock()
        response.json.return_value = {
            "choices": [{"message": {"content": '{"Color": "red"}'}}],
            "usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
        }

        with patch("reference_oracle.requests.post", return_value=response) as post:
            provider = build_provider(llama_cfg)
            text, usage = provider.generate("sys", "user")

        assert text == '{"Color": "red"}'
        assert usage == {"input_tokens": 7, "output_tokens": 3, "total_tokens": 10}
        url = post.call_args.args[0]
        kwargs = post.call_args.kwargs
        assert url == "http://localhost:11434/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer k"
        assert kwargs["json"]["model"] == "test-model"
        assert kwargs["json"]["messages"][0] == {"role": "system", "content": "sys"}

    def test_llama_http_error_becomes_oracle_error(self, cfg) -> None:
        llama_cfg = dataclasses.replace(cfg, llama_base_url="http://localhost:11434/v1")
        response = MagicMock()
        response.raise_for_status.side_effect = RuntimeError("500")

        with patch("reference_oracle.requests.post", return_value=response):
            oracle = ReferenceOracle(provider=LlamaProvider(llama_cfg), cfg=llama_cfg)
            with pytest.raises(OracleError):
                oracle.fetch_reference("X", ["Color"])
