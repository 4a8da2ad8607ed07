from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

from jsonschema import ValidationError
from jsonschema import validate as js_validate

from attributes import AttributeMap, to_canonical_text
from comparison import ComparisonReport, compare
from errors import ComparisonRequestError, EmptyAttributeSet
from input_parser import parse
from schemas import USER_PAIRS_SCHEMA

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    def fetch_reference(self, sku: str, names: Sequence[str]) -> AttributeMap:
        ...


class StaticOracle:
    """Oráculo offline: responde a partir de um mapa fixo."""

    name = "static"

    def __init__(self, reference: Mapping[str, str]):
        self.reference = AttributeMap(reference)

    def fetch_reference(self, sku: str, names: Sequence[str]) -> AttributeMap:
        if not names:
            raise EmptyAttributeSet()
        # Atributo desconhecido vira "" (nunca é omitido)
        return AttributeMap({n: self.reference.get(n, "") for n in names})


@dataclass(frozen=True)
class ComparisonOutcome:
    sku: str
    user: AttributeMap
    reference: AttributeMap
    report: ComparisonReport


def coerce_pairs(pairs: Any) -> AttributeMap:
    """Pares já decodificados (ex.: corpo JSON) -> AttributeMap com valores em texto."""
    try:
        js_validate(instance=pairs, schema=USER_PAIRS_SCHEMA)
    except ValidationError as e:
        raise ComparisonRequestError("Os pares de atributos devem ser um objeto") from e
    return AttributeMap({str(k): to_canonical_text(v) for k, v in pairs.items()})


def coerce_reference_pairs(pairs: Any) -> AttributeMap:
    """Como `coerce_pairs`, mas `null` vira "" (mesma regra da resposta do oráculo)."""
    try:
        js_validate(instance=pairs, schema=USER_PAIRS_SCHEMA)
    except ValidationError as e:
        raise ComparisonRequestError("O mapa de referência deve ser um objeto JSON") from e
    return AttributeMap({str(k): "" if v is None else to_canonical_text(v) for k, v in pairs.items()})


def _require_sku(sku: str) -> str:
    sku = (sku or "").strip()
    if not sku:
        raise ComparisonRequestError("SKU é obrigatório")
    return sku


def _compare_checked(sku: str, user: AttributeMap, oracle: Oracle) -> ComparisonOutcome:
    if len(user) == 0:
        raise EmptyAttributeSet()

    reference = oracle.fetch_reference(sku, user.names())
    report = compare(user, reference)
    logger.info("[COMPARE] sku=%s rows=%d mismatches=%d", sku, len(report), report.mismatch_count)
    return ComparisonOutcome(sku=sku, user=user, reference=reference, report=report)


def compare_maps(sku: str, user: AttributeMap, oracle: Oracle) -> ComparisonOutcome:
    return _compare_checked(_require_sku(sku), user, oracle)


def run_comparison(sku: str, raw_text: str, oracle: Oracle) -> ComparisonOutcome:
    """
    Fluxo completo da fronteira:
    SKU válido -> parse do texto -> oráculo -> relatório.

    Erros de parse sobem sem alteração (mensagem exibida tal qual).
    """
    sku = _require_sku(sku)
    user = parse(raw_text)
    return _compare_checked(sku, user, oracle)
