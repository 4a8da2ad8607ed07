from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Mapping, Tuple


@dataclass(frozen=True)
class ComparisonRow:
    """Uma linha do relatório: valor do usuário vs valor de referência."""
    attribute: str
    user_value: str
    reference_value: str
    is_mismatch: bool

    def to_record(self) -> dict:
        return {
            "attribute": self.attribute,
            "userValue": self.user_value,
            "referenceValue": self.reference_value,
            "isMismatch": self.is_mismatch,
        }


@dataclass(frozen=True)
class ComparisonReport:
    """Linhas ordenadas por nome do atributo (ordem de code point)."""
    rows: Tuple[ComparisonRow, ...] = ()

    def __iter__(self) -> Iterator[ComparisonRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def attributes(self) -> List[str]:
        return [r.attribute for r in self.rows]

    @property
    def mismatch_count(self) -> int:
        return sum(1 for r in self.rows if r.is_mismatch)

    def mismatches(self) -> Tuple[ComparisonRow, ...]:
        """Filtro de apresentação; o relatório em si não muda."""
        return tuple(r for r in self.rows if r.is_mismatch)

    def to_records(self) -> List[dict]:
        return [r.to_record() for r in self.rows]


def normalize(value: str) -> str:
    """Normalização usada só para decidir divergência."""
    return value.strip().lower()


def is_mismatch(user_value: str, reference_value: str) -> bool:
    return normalize(user_value) != normalize(reference_value)


def compare(user: Mapping[str, str], reference: Mapping[str, str]) -> ComparisonReport:
    """
    Junta os dois mapas num relatório ordenado.

    Atributo ausente de um dos lados vale "". Os valores guardados nas linhas
    são os originais; caixa e espaços nas pontas não contam como divergência.
    """
    names = sorted(set(user) | set(reference))
    rows = []
    for name in names:
        u = user.get(name, "")
        r = reference.get(name, "")
        rows.append(ComparisonRow(
            attribute=name,
            user_value=u,
            reference_value=r,
            is_mismatch=is_mismatch(u, r),
        ))
    return ComparisonReport(rows=tuple(rows))
