from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import requests
from jsonschema import ValidationError
from jsonschema import validate as js_validate

from attributes import AttributeMap
from config import Settings, settings
from errors import EmptyAttributeSet, OracleError
from schemas import build_reference_schema

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


@dataclass(frozen=True)
class ReferenceAnswer:
    """Resposta do oráculo já validada."""
    values: AttributeMap
    telemetry: Dict[str, Any] = field(default_factory=dict)


def _load_text(p: Path) -> str:
    return p.read_text(encoding="utf-8")


def _safe_parse_json(text: str) -> Optional[Any]:
    """Tenta parsear JSON mesmo quando o modelo coloca lixo ao redor."""
    t = (text or "").strip()
    try:
        return json.loads(t)
    except ValueError:
        pass

    i, j = t.find("{"), t.rfind("}")
    if i >= 0 and j > i:
        try:
            return json.loads(t[i : j + 1])
        except ValueError:
            return None
    return None


class BaseProvider:
    name: str = "base"

    def __init__(self, cfg: Settings = settings):
        self.cfg = cfg

    def generate(self, system: str, user_input: str) -> Tuple[str, dict]:
        raise NotImplementedError


class OpenAIProvider(BaseProvider):
    name = "openai"

    def __init__(self, cfg: Settings = settings):
        super().__init__(cfg)
        if not cfg.openai_api_key:
            raise ValueError("OPENAI_API_KEY não configurada no .env.")
        from openai import OpenAI

        self.client = OpenAI(api_key=cfg.openai_api_key, timeout=cfg.timeout_s)

    def generate(self, system: str, user_input: str) -> Tuple[str, dict]:
        resp = self.client.responses.create(
            model=self.cfg.llm_model,
            instructions=system,
            input=user_input,
            temperature=self.cfg.temperature,
            top_p=self.cfg.top_p,
            max_output_tokens=self.cfg.max_output_tokens,
        )

        text = getattr(resp, "output_text", "") or ""

        usage = getattr(resp, "usage", None)
        usage_dict = {}
        if usage:
            usage_dict = {
                "input_tokens": int(getattr(usage, "input_tokens", 0) or 0),
                "output_tokens": int(getattr(usage, "output_tokens", 0) or 0),
                "total_tokens": int(getattr(usage, "total_tokens", 0) or 0),
            }

        return text, usage_dict


class GeminiProvider(BaseProvider):
    name = "gemini"

    def __init__(self, cfg: Settings = settings):
        super().__init__(cfg)
        if not cfg.gemini_api_key:
            raise ValueError("GEMINI_API_KEY não configurada no .env.")
        from google import genai

        self.client = genai.Client(api_key=cfg.gemini_api_key)

    def generate(self, system: str, user_input: str) -> Tuple[str, dict]:
        from google.genai import types

        cfg = types.GenerateContentConfig(
            response_mime_type="application/json",
            system_instruction=system,
            temperature=self.cfg.temperature,
            top_p=self.cfg.top_p,
            max_output_tokens=self.cfg.max_output_tokens,
        )
        resp = self.client.models.generate_content(
            model=self.cfg.llm_model,
            contents=user_input,
            config=cfg,
        )
        text = getattr(resp, "text", "") or ""

        usage_dict: dict = {}
        u = getattr(resp, "usage_metadata", None)
        if u:
            usage_dict = {
                "input_tokens": int(getattr(u, "prompt_token_count", 0) or 0),
                "output_tokens": int(getattr(u, "candidates_token_count", 0) or 0),
                "total_tokens": int(getattr(u, "total_token_count", 0) or 0),
            }
        return text, usage_dict


class LlamaProvider(BaseProvider):
    """Endpoint OpenAI-compatible (ex.: Ollama /v1)."""
    name = "llama"

    def __init__(self, cfg: Settings = settings):
        super().__init__(cfg)
        if not cfg.llama_base_url:
            raise ValueError("LLAMA_BASE_URL não configurada no .env.")
        self.base_url = cfg.llama_base_url.rstrip("/")
        self.api_key = cfg.llama_api_key or ""

    def generate(self, system: str, user_input: str) -> Tuple[str, dict]:
        url = f"{self.base_url}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload: dict = {
            "model": self.cfg.llm_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_input},
            ],
            "temperature": self.cfg.temperature,
            "top_p": self.cfg.top_p,
            "max_tokens": self.cfg.max_output_tokens,
            "response_format": {"type": "json_object"},
        }

        r = requests.post(url, headers=headers, json=payload, timeout=self.cfg.timeout_s)
        r.raise_for_status()
        data = r.json()
        text = data["choices"][0]["message"]["content"]

        usage = data.get("usage", {}) or {}
        usage_dict = {
            "input_tokens": int(usage.get("prompt_tokens", 0)),
            "output_tokens": int(usage.get("completion_tokens", 0)),
            "total_tokens": int(usage.get("total_tokens", 0)),
        }
        return text, usage_dict


PROVIDERS = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "llama": LlamaProvider,
}


def build_provider(cfg: Settings = settings) -> BaseProvider:
    """Instancia o provider definido no .env."""
    cls = PROVIDERS.get(cfg.llm_provider)
    if cls is None:
        raise ValueError(f"LLM_PROVIDER inválido: {cfg.llm_provider}")
    return cls(cfg)


def build_user_input(sku: str, names: Sequence[str]) -> str:
    return (
        f"SKU: {sku}\n"
        f"Attributes: {', '.join(names)}\n"
        "Return JSON with these exact keys."
    )


class ReferenceOracle:
    """Pergunta ao LLM a especificação de um SKU para os atributos pedidos.

    Uma chamada por pergunta; qualquer falha vira `OracleError`.
    """

    def __init__(self, provider: Optional[BaseProvider] = None, cfg: Settings = settings):
        self.cfg = cfg
        self.provider = provider or build_provider(cfg)
        self.system_prompt = _load_text(PROMPTS_DIR / "reference_system.txt")

    def _fail(self, reason: str, cause: Optional[BaseException] = None) -> OracleError:
        logger.warning(
            "[LLM_CALL_FAILED] provider=%s model=%s err=%s",
            self.provider.name, self.cfg.llm_model, repr(cause) if cause else reason,
        )
        return OracleError(reason, provider=self.provider.name, model=self.cfg.llm_model)

    def ask(self, sku: str, names: Sequence[str]) -> ReferenceAnswer:
        keys = list(dict.fromkeys(names))
        if not keys:
            raise EmptyAttributeSet()

        user_input = build_user_input(sku, keys)

        t0 = time.time()
        try:
            text, usage = self.provider.generate(self.system_prompt, user_input)
        except Exception as e:
            raise self._fail(f"Falha ao consultar o oráculo: {type(e).__name__}", e) from e
        latency_ms = int((time.time() - t0) * 1000)

        if not text.strip():
            raise self._fail("O oráculo retornou uma resposta vazia")

        obj = _safe_parse_json(text)
        if obj is None:
            raise self._fail("O oráculo retornou JSON inválido")

        try:
            js_validate(instance=obj, schema=build_reference_schema(keys))
        except ValidationError as e:
            raise self._fail(f"Resposta do oráculo fora do schema: {e.message}", e) from e

        values = AttributeMap({k: obj[k] if obj[k] is not None else "" for k in keys})

        telemetry = {
            "oracle": "llm",
            "provider": self.provider.name,
            "model": self.cfg.llm_model,
            "latency_ms": latency_ms,
            "input_tokens": int(usage.get("input_tokens", 0) or 0),
            "output_tokens": int(usage.get("output_tokens", 0) or 0),
        }
        logger.info("[LLM_CALL_OK] sku=%s attributes=%d %s", sku, len(keys), telemetry)
        return ReferenceAnswer(values=values, telemetry=telemetry)

    def fetch_reference(self, sku: str, names: Sequence[str]) -> AttributeMap:
        return self.ask(sku, names).values
