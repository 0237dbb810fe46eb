'''
dataclases de tokens (instrucción, directiva, registro, constante, símbolo,
puntuación, error) y spans sobre el texto fuente
'''

from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Literal, Tuple, Union

from .isa import CATEGORY_LABELS

# ---- Ubicación ----

@dataclass(frozen=True)
class Span:
    """Rango semiabierto [start, end) de offsets sobre el texto fuente."""
    start: int
    end: int

    def slice(self, source: str) -> str:
        return source[self.start:self.end]

    def line(self, source: str) -> int:
        """Número de línea (base 1) donde empieza el span."""
        return line_of(source, self.start)

def line_of(source: str, offset: int) -> int:
    """Número de línea (base 1) del offset; se calcula bajo demanda."""
    return source.count("\n", 0, max(0, offset)) + 1

class LineIndex:
    """Offsets de inicio de cada línea, calculados una vez por texto fuente.

    index.line(offset) da el mismo resultado que line_of(source, offset) pero con
    búsqueda binaria, para que el pipeline no recorra el texto por cada token.
    """

    def __init__(self, source: str) -> None:
        starts: List[int] = [0]
        pos = source.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = source.find("\n", pos + 1)
        self.starts = starts

    def line(self, offset: int) -> int:
        return bisect_right(self.starts, max(0, offset))

    def span_line(self, span: Span) -> int:
        return self.line(span.start)

# ---- Literales ----

@dataclass(frozen=True)
class DecimalLit:
    value: int

    @property
    def raw(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class HexLit:
    """Hexadecimal con sufijo h; 'raw' conserva la escritura del usuario."""
    value: int
    raw: str

@dataclass(frozen=True)
class BinaryLit:
    value: int
    raw: str

@dataclass(frozen=True)
class StringLit:
    text: str

@dataclass(frozen=True)
class CharLit:
    char: str

LiteralValue = Union[DecimalLit, HexLit, BinaryLit, StringLit, CharLit]

# ---- Tokens ----

PunctKind = Literal["comma", "colon", "lbracket", "rbracket", "lparen", "rparen", "plus", "minus", "dot"]

PUNCTUATION: Dict[str, str] = {
    ",": "comma", ":": "colon", "[": "lbracket", "]": "rbracket",
    "(": "lparen", ")": "rparen", "+": "plus", "-": "minus", ".": "dot",
}
_PUNCT_TEXT = {v: k for k, v in PUNCTUATION.items()}

_PUNCT_LABELS = {
    "comma": "Separador", "colon": "Definidor",
    "lbracket": "Memoria", "rbracket": "Memoria",
    "lparen": "Agrupación", "rparen": "Agrupación",
    "plus": "Operador", "minus": "Operador", "dot": "Acceso",
}

@dataclass(frozen=True)
class InstructionTok:
    category: str   # ver isa.Category
    text: str       # mnemónico en mayúsculas

@dataclass(frozen=True)
class PseudoTok:
    """Directiva (DB, ENDS, '.DATA SEGMENT', 'DUP(...)', ...)."""
    text: str

@dataclass(frozen=True)
class RegisterTok:
    text: str

@dataclass(frozen=True)
class ConstantTok:
    literal: LiteralValue

@dataclass(frozen=True)
class SymbolTok:
    """Identificador libre o referencia entre corchetes ('[BX]', texto literal)."""
    text: str

@dataclass(frozen=True)
class PunctTok:
    kind: str   # ver PunctKind

@dataclass(frozen=True)
class NewlineTok:
    pass

@dataclass(frozen=True)
class ErrorTok:
    """Entrada no reconocida. 'text' guarda lo leído (p.ej. el contenido de una cadena sin cerrar)."""
    reason: str
    text: str = ""

Token = Union[InstructionTok, PseudoTok, RegisterTok, ConstantTok, SymbolTok, PunctTok, NewlineTok, ErrorTok]
Spanned = Tuple[Token, Span]

NEWLINE = NewlineTok()

# ---- Presentación ----

def category(tok: Token) -> str:
    if isinstance(tok, InstructionTok):
        return "Instruction"
    if isinstance(tok, PseudoTok):
        return "Directive"
    if isinstance(tok, RegisterTok):
        return "Register"
    if isinstance(tok, ConstantTok):
        return "Constant"
    if isinstance(tok, SymbolTok):
        return "Symbol"
    if isinstance(tok, PunctTok):
        return "Punctuation"
    if isinstance(tok, NewlineTok):
        return "Newline"
    return "Error"

def detail(tok: Token) -> str:
    """Descripción corta del token para la interfaz."""
    if isinstance(tok, InstructionTok):
        return CATEGORY_LABELS.get(tok.category, "Instrucción")
    if isinstance(tok, PseudoTok):
        return "Directiva"
    if isinstance(tok, RegisterTok):
        return "Registro CPU"
    if isinstance(tok, SymbolTok):
        return "Identificador"
    if isinstance(tok, PunctTok):
        return _PUNCT_LABELS[tok.kind]
    if isinstance(tok, NewlineTok):
        return "Fin de línea"
    if isinstance(tok, ConstantTok):
        lit = tok.literal
        if isinstance(lit, StringLit):
            return "String"
        if isinstance(lit, DecimalLit):
            return "Decimal"
        if isinstance(lit, HexLit):
            return "Hexadecimal"
        if isinstance(lit, BinaryLit):
            return "Binario"
        return "Char"
    return tok.reason

def text(tok: Token) -> str:
    """Texto canónico del token."""
    if isinstance(tok, (InstructionTok, PseudoTok, RegisterTok, SymbolTok)):
        return tok.text
    if isinstance(tok, PunctTok):
        return _PUNCT_TEXT[tok.kind]
    if isinstance(tok, NewlineTok):
        return "\\n"
    if isinstance(tok, ConstantTok):
        lit = tok.literal
        if isinstance(lit, StringLit):
            return f'"{lit.text}"'
        if isinstance(lit, CharLit):
            return f"'{lit.char}'"
        return lit.raw
    return tok.text
