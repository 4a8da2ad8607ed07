# Schemas JSON da fronteira: pares enviados pelo usuário e resposta do oráculo.
from __future__ import annotations

from typing import Iterable

USER_PAIRS_SCHEMA = {
    "type": "object",
    "propertyNames": {"type": "string"},
    "additionalProperties": True,
}


def build_reference_schema(names: Iterable[str]) -> dict:
    """Resposta do oráculo: exatamente os atributos pedidos, valores texto (ou null)."""
    keys = list(names)
    return {
        "type": "object",
        "required": keys,
        "properties": {
            k: {"type": ["string", "null"], "description": f"Value for {k}"}
            for k in keys
        },
        "additionalProperties": False,
    }
