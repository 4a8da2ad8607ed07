from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Iterable, List

from comparison import ComparisonRow
from compare_service import ComparisonOutcome


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _select(outcome: ComparisonOutcome, mismatches_only: bool) -> List[ComparisonRow]:
    report = outcome.report
    return list(report.mismatches() if mismatches_only else report.rows)


def render_table(outcome: ComparisonOutcome, mismatches_only: bool = False) -> str:
    """Tabela em texto puro, colunas alinhadas."""
    rows = _select(outcome, mismatches_only)
    header = ("Attribute", "User", "Reference", "")
    body = [(r.attribute, r.user_value, r.reference_value, "MISMATCH" if r.is_mismatch else "ok") for r in rows]
    widths = [max(len(str(c)) for c in col) for col in zip(header, *body)]

    def fmt(cells: Iterable[str]) -> str:
        return "  ".join(str(c).ljust(w) for c, w in zip(cells, widths)).rstrip()

    lines = [fmt(header), fmt("-" * w for w in widths)]
    lines.extend(fmt(b) for b in body)
    if not body:
        lines.append("(nenhuma linha)")
    return "\n".join(lines)


def render_json(outcome: ComparisonOutcome, mismatches_only: bool = False) -> str:
    rows = _select(outcome, mismatches_only)
    payload = {
        "sku": outcome.sku,
        "mismatches": outcome.report.mismatch_count,
        "rows": [r.to_record() for r in rows],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def render_markdown(outcome: ComparisonOutcome, mismatches_only: bool = False) -> str:
    """Gera relatório em Markdown."""
    rows = _select(outcome, mismatches_only)
    report = outcome.report

    lines = []
    lines.append(f"# Relatório — {outcome.sku}")
    lines.append("")
    lines.append(f"- Atributos: **{len(report)}**")
    lines.append(f"- Divergências: **{report.mismatch_count}**")
    lines.append(f"- Timestamp (UTC): {now_utc_iso()}")
    lines.append("")

    lines.append("## Comparação")
    if rows:
        lines.append("| Atributo | Usuário | Referência | Divergente |")
        lines.append("|---|---|---|---|")
        for r in rows:
            flag = "sim" if r.is_mismatch else "não"
            lines.append(
                f"| {_cell(r.attribute)} | {_cell(r.user_value)} | {_cell(r.reference_value)} | {flag} |"
            )
    else:
        lines.append("Nenhuma divergência encontrada." if mismatches_only else "Nenhum atributo.")
    lines.append("")

    lines.append("## Observações")
    lines.append("- Caixa e espaços nas pontas não contam como divergência.")
    lines.append("- Atributo ausente de um dos lados é comparado como texto vazio.")
    lines.append("")
    return "\n".join(lines)


RENDERERS = {
    "table": render_table,
    "json": render_json,
    "markdown": render_markdown,
}
