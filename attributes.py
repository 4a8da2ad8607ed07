from __future__ import annotations

import json
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable, Iterator, List, Tuple, Union

PairsLike = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class AttributeMap(Mapping):
    """Mapa canônico nome -> valor (ambos texto), imutável.

    Guarda uma cópia própria dos pares; a ordem de inserção não tem
    significado, só a ordem das chaves ordenadas usada no relatório.
    """

    __slots__ = ("_data",)

    def __init__(self, pairs: PairsLike = ()):
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        data: dict = {}
        for k, v in items:
            if not isinstance(k, str) or not isinstance(v, str):
                raise TypeError(f"AttributeMap aceita apenas texto: {k!r} -> {v!r}")
            data[k] = v
        object.__setattr__(self, "_data", data)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AttributeMap é imutável")

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"AttributeMap({self._data!r})"

    def names(self) -> list:
        """Nomes em ordem de code point (a mesma do relatório)."""
        return sorted(self._data)

    def to_dict(self) -> dict:
        return dict(self._data)


def _format_number(n: float) -> str:
    # Mesma saída de um serializador JSON de ECMAScript: sem ".0" em
    # inteiros, notação exponencial só fora de [1e-7, 1e21).
    if math.isnan(n) or math.isinf(n):
        return "null"
    if n.is_integer() and abs(n) < 1e21:
        return str(int(n))
    r = repr(n)
    if "e" not in r:
        return r
    mantissa, exp_text = r.split("e")
    exp = int(exp_text)
    if exp >= 21 or exp <= -7:
        sign = "+" if exp > 0 else "-"
        return f"{mantissa}e{sign}{abs(exp)}"
    return format(Decimal(r), "f")


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def to_canonical_text(value: Any) -> str:
    """
    Converte um valor decodificado de JSON na sua forma textual canônica.

    - str: usada como está (sem aspas)
    - None / bool: "null", "true", "false"
    - int / float: como um serializador JSON genérico renderiza (3 -> "3", 3.0 -> "3")
    - list / dict: JSON compacto, chaves na ordem do documento, strings internas entre aspas
    """
    if isinstance(value, str):
        return value
    return _render(value)


class _Token:
    """Trecho de saída já pronto (pontuação, chave entre aspas)."""
    __slots__ = ("text",)

    def __init__(self, text: str):
        self.text = text


def _render_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, str):
        return _quote(value)
    raise TypeError(f"Tipo sem forma textual canônica: {type(value).__name__}")


def _render(value: Any) -> str:
    # Pilha explícita: a profundidade do valor não depende do limite de recursão
    out: List[str] = []
    stack: List[Any] = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, _Token):
            out.append(item.text)
        elif isinstance(item, Mapping):
            parts: List[Any] = [_Token("{")]
            for i, (k, v) in enumerate(item.items()):
                parts.append(_Token(("," if i else "") + _quote(str(k)) + ":"))
                parts.append(v)
            parts.append(_Token("}"))
            stack.extend(reversed(parts))
        elif isinstance(item, (list, tuple)):
            parts = [_Token("[")]
            for i, v in enumerate(item):
                if i:
                    parts.append(_Token(","))
                parts.append(v)
            parts.append(_Token("]"))
            stack.extend(reversed(parts))
        else:
            out.append(_render_scalar(item))
    return "".join(out)
