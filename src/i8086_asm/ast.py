'''
dataclases de AST (operandos, sentencias, nodos de línea)
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .tokens import Span

# ---- Operandos ----

@dataclass(frozen=True)
class Reg:
    """Registro de la CPU por nombre canónico ('AX', 'BL', ...)."""
    name: str

@dataclass(frozen=True)
class Imm:
    """Inmediato con el texto tal como se escribió ('0FFh', '00001010b', '10')."""
    value: int
    raw: str

@dataclass(frozen=True)
class Mem:
    """Referencia a memoria [base] o [base+offset]."""
    base: str
    offset: Optional[int] = None

@dataclass(frozen=True)
class Sym:
    """Símbolo (etiqueta o variable) referenciado por nombre."""
    name: str

@dataclass(frozen=True)
class Str:
    """Cadena entre comillas (p.ej. DB "hola")."""
    text: str

@dataclass(frozen=True)
class Dup:
    """count DUP(value): reserva 'count' copias de 'value'."""
    count: int
    value: 'Operand'

Operand = Union[Reg, Imm, Mem, Sym, Str, Dup]

# ---- Sentencias ----

@dataclass(frozen=True)
class Instruction:
    """Instrucción con mnemónico (mayúsculas si es conocido) y operandos."""
    mnemonic: str
    operands: Tuple[Operand, ...] = ()

@dataclass(frozen=True)
class Label:
    """Etiqueta en el código fuente (p.ej., 'loop:')."""
    name: str

@dataclass(frozen=True)
class Segment:
    """Apertura de segmento ('.DATA SEGMENT', '.CODE', ...)."""
    name: str

@dataclass(frozen=True)
class SegmentEnd:
    pass

@dataclass(frozen=True)
class End:
    label: Optional[str] = None

@dataclass(frozen=True)
class Variable:
    """name DB/DW/DD value."""
    name: str
    directive: str
    value: Operand

@dataclass(frozen=True)
class Constant:
    """name EQU value."""
    name: str
    value: Operand

@dataclass(frozen=True)
class Data:
    """Datos anónimos: DB/DW/DD value."""
    directive: str
    value: Operand

@dataclass(frozen=True)
class Unknown:
    """Directiva aceptada sin efecto semántico (.MODEL, ORG)."""
    directive: str

Statement = Union[Instruction, Label, Segment, SegmentEnd, End, Variable, Constant, Data, Unknown]

# ---- Nodos de línea ----

@dataclass(frozen=True)
class StatementLine:
    stmt: Statement
    span: Span

@dataclass(frozen=True)
class EmptyLine:
    span: Span

@dataclass(frozen=True)
class ErrorLine:
    message: str
    span: Span

LineNode = Union[StatementLine, EmptyLine, ErrorLine]

# El índice en la lista identifica a la sentencia (mapas de direcciones/codificación)
Program = List[LineNode]

def statement_of(node: LineNode) -> Optional[Statement]:
    return node.stmt if isinstance(node, StatementLine) else None
