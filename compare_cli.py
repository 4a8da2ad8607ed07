from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from compare_service import StaticOracle, coerce_reference_pairs, run_comparison
from config import settings
from errors import (
    ComparisonRequestError,
    EmptyAttributeSet,
    OracleError,
    ParseError,
)
from report_render import RENDERERS

EXIT_OK = 0
EXIT_ORACLE = 1
EXIT_INPUT = 2


def load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_oracle(reference_path: Optional[str]):
    """Mapa de referência fixo (--reference) ou o oráculo LLM do .env."""
    if reference_path:
        try:
            data = load_json(Path(reference_path))
        except json.JSONDecodeError as e:
            raise ComparisonRequestError(f"Arquivo de referência com JSON inválido: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ComparisonRequestError(f"Não foi possível ler o arquivo de referência: {e}") from e
        return StaticOracle(coerce_reference_pairs(data))

    from reference_oracle import ReferenceOracle

    return ReferenceOracle()


def smoke_test() -> None:
    """Testa se o provider atual está respondendo."""
    from reference_oracle import ReferenceOracle

    oracle = ReferenceOracle()
    answer = oracle.ask("SMOKE-001", ["Color", "Weight"])
    print("[SMOKE] provider =", answer.telemetry.get("provider"), "model =", answer.telemetry.get("model"))
    print("[SMOKE] values =", answer.values.to_dict())
    print("[SMOKE] latency_ms =", answer.telemetry.get("latency_ms"))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="compare-attributes",
        description="Compara atributos informados pelo usuário com a resposta de um oráculo.",
    )
    ap.add_argument("--sku", help="Identificador do produto.")
    ap.add_argument("--input", default="-", help="Arquivo com os atributos (JSON ou 'nome: valor'); '-' = stdin.")
    ap.add_argument("--reference", help="Arquivo JSON com o mapa de referência (dispensa o LLM).")
    ap.add_argument("--mismatches-only", action="store_true", help="Mostra apenas as divergências.")
    ap.add_argument("--format", choices=sorted(RENDERERS), default="table")
    ap.add_argument("--output", help="Grava o resultado neste arquivo em vez do stdout.")
    ap.add_argument("--smoke", action="store_true", help="Executa apenas teste de integração do provider atual.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.smoke:
        try:
            smoke_test()
        except (OracleError, ValueError) as e:
            print(f"[ERRO] {e}", file=sys.stderr)
            return EXIT_ORACLE
        return EXIT_OK

    if not args.sku:
        ap.error("--sku é obrigatório")

    try:
        raw = read_input(args.input)
    except (OSError, UnicodeDecodeError) as e:
        print(f"[ERRO] Não foi possível ler a entrada: {e}", file=sys.stderr)
        return EXIT_INPUT

    try:
        oracle = build_oracle(args.reference)
        outcome = run_comparison(args.sku, raw, oracle)
    except (ParseError, ComparisonRequestError, EmptyAttributeSet) as e:
        print(f"[ERRO] {e.message}", file=sys.stderr)
        return EXIT_INPUT
    except (OracleError, ValueError) as e:
        print(f"[ERRO] {e}", file=sys.stderr)
        return EXIT_ORACLE

    text = RENDERERS[args.format](outcome, mismatches_only=args.mismatches_only)

    if args.output:
        out = Path(args.output)
        out.write_text(text + "\n", encoding="utf-8")
        print(f"[OK] wrote {len(outcome.report)} rows -> {out}")
    else:
        print(text)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
