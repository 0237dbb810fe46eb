# src/i8086_asm/linker.py
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Dict, Optional

from .ast import (
    Reg, Imm, Mem, Sym, Str, Dup, Operand,
    Instruction, Label, Segment, SegmentEnd, Variable, Data,
    Program, statement_of,
)
from .regs import is_reg, reg_width
from .utils import is_unsigned_nbit

if TYPE_CHECKING:
    from .validator import SymbolTable

logger = logging.getLogger(__name__)

# Contador de posición antes de abrir cualquier segmento
BASE_ADDRESS = 0x0250

ELEMENT_SIZE: Dict[str, int] = {"DB": 1, "DW": 2, "DD": 4}

# Tamaño máximo de un segmento 8086 (64 KiB)
SEGMENT_LIMIT = 0x10000

# ---------- Tamaños ----------

def value_size(directive: str, value: Operand) -> int:
    """Bytes que ocupa el inicializador: tamaño del elemento × multiplicador DUP.
    Una cadena mide su longitud en UTF-8."""
    if isinstance(value, Dup):
        return max(0, value.count) * value_size(directive, value.value)
    if isinstance(value, Str):
        return len(value.text.encode("utf-8"))
    return ELEMENT_SIZE[directive]

def variable_size(stmt: Variable | Data) -> int:
    return value_size(stmt.directive, stmt.value)

def _imm_extra(value: int) -> int:
    return 1 if is_unsigned_nbit(value, 8) else 2

def estimate_instruction_size(ins: Instruction, symtab: Optional[SymbolTable] = None) -> int:
    """
    Tamaño estimado en bytes. Exacto para las formas que sabe emitir el codificador;
    para el resto: 2 bytes (opcode + ModR/M) más extras por inmediatos (1 o 2 según
    magnitud) y por operandos de memoria/variable (desplazamiento de 2).
    """
    m = ins.mnemonic.upper()
    ops = ins.operands
    if not ops or m in ("NOP", "RET"):
        return 1
    first = ops[0]
    if m in ("INC", "DEC") and len(ops) == 1 and isinstance(first, Reg):
        return 1 if reg_width(first.name) == 16 else 2
    if m == "MOV" and len(ops) == 2 and isinstance(first, Reg) and isinstance(ops[1], Imm) \
            and is_reg(first.name):
        return 3 if reg_width(first.name) == 16 else 2
    if m == "INT":
        return 2

    size = 2
    for op in ops:
        if isinstance(op, Imm):
            size += _imm_extra(op.value)
        elif isinstance(op, Mem):
            size += 2
        elif isinstance(op, Sym) and symtab is not None:
            info = symtab.get(op.name)
            if info is not None and info.kind == "Variable":
                size += 2
    return size

# ---------- Pasada 1 del codificador ----------

def resolve_addresses(
    program: Program,
    symtab: SymbolTable,
    *,
    base_address: int = BASE_ADDRESS,
) -> Dict[int, int]:
    """
    Asigna a cada línea (por índice) la dirección donde empieza y rellena, una sola
    vez, el offset de etiquetas y variables en la tabla de símbolos.

    Cada Segment / ENDS reinicia el contador a 0 (espacios de direcciones
    independientes por segmento).
    """
    address_map: Dict[int, int] = {}
    lc = base_address

    def _place(name: str, kind: str) -> None:
        info = symtab.get(name)
        # la primera definición gana; las redefinidas ya se reportaron
        if info is not None and info.kind == kind and info.offset is None:
            info.offset = lc

    for idx, node in enumerate(program):
        address_map[idx] = lc
        stmt = statement_of(node)
        if stmt is None:
            continue
        if isinstance(stmt, (Segment, SegmentEnd)):
            lc = 0
            logger.debug("resolve_addresses: line %d %s, counter reset", idx + 1, type(stmt).__name__)
        elif isinstance(stmt, Label):
            _place(stmt.name, "Label")
        elif isinstance(stmt, Variable):
            _place(stmt.name, "Variable")
            lc += variable_size(stmt)
        elif isinstance(stmt, Data):
            lc += variable_size(stmt)
        elif isinstance(stmt, Instruction):
            lc += estimate_instruction_size(stmt, symtab)

    logger.debug("resolve_addresses: %d lines addressed", len(address_map))
    return address_map
