from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, cast

from attributes import AttributeMap, to_canonical_text
from errors import ParseError

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ParseResult:
    """Resultado rotulado do parser: exatamente um de `value` / `error`."""
    value: Optional[AttributeMap] = None
    error: Optional[ParseError] = None

    @classmethod
    def ok(cls, value: AttributeMap) -> "ParseResult":
        return cls(value=value)

    @classmethod
    def err(cls, error: ParseError) -> "ParseResult":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AttributeMap:
        if self.error is not None:
            raise self.error
        return cast(AttributeMap, self.value)


def _reject_constant(name: str) -> Any:
    # NaN / Infinity não são JSON válido
    raise ValueError(f"constante não suportada: {name}")


def _decode_object(text: str) -> Optional[dict]:
    """Estágio 1: devolve o objeto JSON, ou None se o texto não for um objeto."""
    try:
        obj = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        # JSON inválido, ou aninhado além do limite do decodificador
        return None
    return obj if isinstance(obj, dict) else None


def _from_object(obj: dict) -> ParseResult:
    pairs: dict = {}
    for key, value in obj.items():
        name = key.strip()
        if not name:
            return ParseResult.err(ParseError.blank_key(key))
        pairs[name] = to_canonical_text(value)
    return ParseResult.ok(AttributeMap(pairs))


def _from_lines(text: str) -> ParseResult:
    """Estágio 2: uma linha `nome: valor` por atributo."""
    pairs: dict = {}
    for raw_line in _LINE_BREAK.split(text):
        line = raw_line.strip()
        if not line:
            continue
        head, *rest = line.split(":")
        name = head.strip()
        if not rest or not name:
            return ParseResult.err(ParseError.malformed_line(line))
        # dois-pontos dentro do valor (horários, proporções) são preservados
        pairs[name] = ":".join(rest).strip()
    return ParseResult.ok(AttributeMap(pairs))


def parse_result(raw: str) -> ParseResult:
    """
    Converte o texto do usuário num AttributeMap sem lançar exceção.

    Tenta primeiro um objeto JSON; só se isso não produzir um objeto cai para
    o formato por linhas. As notações nunca se misturam numa mesma chamada.
    """
    text = (raw or "").strip()
    if not text:
        return ParseResult.ok(AttributeMap())

    obj = _decode_object(text)
    if obj is not None:
        return _from_object(obj)
    return _from_lines(text)


def parse(raw: str) -> AttributeMap:
    """Como `parse_result`, mas lança `ParseError` em caso de falha."""
    return parse_result(raw).unwrap()
