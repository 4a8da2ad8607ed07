from __future__ import annotations

from enum import Enum


class AttributeCheckError(Exception):
    """Base de todos os erros do verificador de atributos."""

    @property
    def message(self) -> str:
        return str(self)


class ParseErrorKind(str, Enum):
    MALFORMED_LINE = "MalformedLine"
    BLANK_KEY = "BlankKey"


class ParseError(AttributeCheckError):
    """Texto que não casa com nenhuma das notações aceitas.

    `line` guarda o trecho ofensivo exatamente como foi lido (linha já sem
    espaços nas pontas, ou a chave original do objeto).
    """

    def __init__(self, kind: ParseErrorKind, line: str):
        self.kind = kind
        self.line = line
        if kind is ParseErrorKind.BLANK_KEY:
            text = f'Nome de atributo vazio na chave: "{line}"'
        else:
            text = f'Não foi possível interpretar a linha: "{line}"'
        super().__init__(text)

    @classmethod
    def malformed_line(cls, line: str) -> "ParseError":
        return cls(ParseErrorKind.MALFORMED_LINE, line)

    @classmethod
    def blank_key(cls, key: str) -> "ParseError":
        return cls(ParseErrorKind.BLANK_KEY, key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.kind is other.kind and self.line == other.line

    def __hash__(self) -> int:
        return hash((self.kind, self.line))


class EmptyAttributeSet(AttributeCheckError):
    """Nenhum atributo para comparar (pré-condição da fronteira)."""

    def __init__(self, text: str = "Informe ao menos um atributo para comparar"):
        super().__init__(text)


class ComparisonRequestError(AttributeCheckError):
    """Requisição inválida na fronteira (SKU vazio, pares que não são objeto)."""


class OracleError(AttributeCheckError):
    """O oráculo falhou ou respondeu fora do contrato."""

    def __init__(self, text: str, provider: str = "", model: str = ""):
        self.provider = provider
        self.model = model
        super().__init__(text)
