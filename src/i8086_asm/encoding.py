# src/i8086_asm/encoding.py
from __future__ import annotations
import logging
from typing import Dict, Optional

from .ast import (
    Reg, Imm, Str, Dup, Operand,
    Instruction, Variable, Data,
    Program, statement_of,
)
from . import isa
from .linker import ELEMENT_SIZE, SEGMENT_LIMIT, value_size
from .regs import REG8_CODES, REG16_CODES, normalize_reg, reg_code, reg_width
from .utils import le_bytes, is_unsigned_nbit, u8

logger = logging.getLogger(__name__)

# ---------------- Helpers de empaquetado ----------------

def _modrm(mod: int, reg: int, rm: int) -> int:
    return u8((mod & 0x3) << 6 | (reg & 0x7) << 3 | (rm & 0x7))

def _general_reg(op: Operand) -> Optional[str]:
    """Nombre canónico si el operando es un registro general (no de segmento)."""
    if not isinstance(op, Reg):
        return None
    try:
        name = normalize_reg(op.name)
    except ValueError:
        return None
    if name in REG16_CODES or name in REG8_CODES:
        return name
    return None

# ---------------- Formas soportadas ----------------

def _reg_reg(opcode16: int, dst: str, src: str) -> Optional[bytes]:
    # opcode con w=1; la forma de 8 bits es el mismo opcode con w=0
    if reg_width(dst) != reg_width(src):
        return None
    opcode = opcode16 if reg_width(dst) == 16 else opcode16 & ~1
    return bytes([opcode, _modrm(isa.MOD_REG, reg_code(src), reg_code(dst))])

def _mov_imm(dst: str, value: int) -> bytes:
    if reg_width(dst) == 16:
        return bytes([isa.OP_MOV_R16_IMM + reg_code(dst)]) + le_bytes(value, 2)
    return bytes([isa.OP_MOV_R8_IMM + reg_code(dst)]) + le_bytes(value, 1)

def _inc_dec(mnem: str, reg: str) -> bytes:
    code = reg_code(reg)
    if reg_width(reg) == 16:
        base = isa.OP_INC_R16 if mnem == "INC" else isa.OP_DEC_R16
        return bytes([base + code])
    modrm = isa.MODRM_INC_R8 if mnem == "INC" else isa.MODRM_DEC_R8
    return bytes([isa.OP_GRP_FE, modrm + code])

def encode_instruction(ins: Instruction) -> Optional[bytes]:
    """
    Bytes reales 8086 para el subconjunto MOV/ADD/SUB/INC/DEC/INT/NOP/RET.
    Cualquier otra combinación devuelve None (sin codificación, no es un error).
    """
    mnem = ins.mnemonic.upper()
    if mnem not in isa.ENCODABLE:
        return None
    ops = ins.operands

    if mnem in ("NOP", "RET"):
        if ops:
            return None
        return bytes([isa.spec(mnem).opcode])

    if mnem == "INT":
        if len(ops) == 1 and isinstance(ops[0], Imm) and is_unsigned_nbit(ops[0].value, 8):
            return bytes([isa.OP_INT, ops[0].value])
        return None

    if mnem in ("INC", "DEC"):
        reg = _general_reg(ops[0]) if len(ops) == 1 else None
        return _inc_dec(mnem, reg) if reg else None

    # MOV / ADD / SUB
    if len(ops) != 2:
        return None
    dst = _general_reg(ops[0])
    if dst is None:
        return None
    src_op = ops[1]
    src = _general_reg(src_op)
    if src is not None:
        return _reg_reg(isa.spec(mnem).opcode, dst, src)
    if mnem == "MOV" and isinstance(src_op, Imm):
        return _mov_imm(dst, src_op.value)
    return None

def encode_value(directive: str, value: Operand) -> bytes:
    """Inicializador en little-endian; cadenas en UTF-8; DUP repite la codificación interna."""
    if value_size(directive, value) > SEGMENT_LIMIT:
        # no cabe en un segmento; el validador ya lo reporta
        return b""
    if isinstance(value, Dup):
        return encode_value(directive, value.value) * max(0, value.count)
    if isinstance(value, Str):
        return value.text.encode("utf-8")
    if isinstance(value, Imm):
        return le_bytes(value.value, ELEMENT_SIZE[directive])
    # etiquetas o registros como inicializador: sin bytes
    return b""

def encode_data(stmt: Variable | Data) -> Optional[bytes]:
    data = encode_value(stmt.directive, stmt.value)
    return data or None

# ---------------- Codificador principal ----------------

def encode(program: Program, address_map: Dict[int, int]) -> Dict[int, bytes]:
    """Pasada 2: índice de línea -> bytes emitidos, solo para líneas con dirección asignada."""
    encoding_map: Dict[int, bytes] = {}
    for idx, node in enumerate(program):
        if idx not in address_map:
            continue
        stmt = statement_of(node)
        data: Optional[bytes] = None
        if isinstance(stmt, Instruction):
            data = encode_instruction(stmt)
        elif isinstance(stmt, (Variable, Data)):
            data = encode_data(stmt)
        if data is not None:
            encoding_map[idx] = data
    logger.debug("encode: %d lines with bytes", len(encoding_map))
    return encoding_map
