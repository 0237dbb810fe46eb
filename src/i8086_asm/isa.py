'''
tabla de instrucciones 8086 (categoría, subconjunto permitido, opcodes)
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence

Category = Literal[
    "data_transfer", "arithmetic", "logic", "control_transfer",
    "conditional_jump", "interrupt", "flag_control", "string",
    "processor_control",
]

# Nombres para mostrar (front-end en español)
CATEGORY_LABELS: Dict[str, str] = {
    "data_transfer": "Transferencia de Datos",
    "arithmetic": "Aritmética",
    "logic": "Lógica",
    "control_transfer": "Transferencia de Control",
    "conditional_jump": "Salto Condicional",
    "interrupt": "Interrupción",
    "flag_control": "Control de Banderas",
    "string": "Manipulación de Cadenas",
    "processor_control": "Control del Procesador",
}

@dataclass(frozen=True)
class ISpec:
    """Especificación de una instrucción 8086.

    - category: grupo funcional (ver Category)
    - allowed: pertenece al subconjunto didáctico que acepta el validador
    - jump: su operando es un destino de salto (etiqueta)
    - opcode: byte principal cuando la codificamos (forma reg,reg / sin operandos)
    """
    category: str
    allowed: bool = False
    jump: bool = False
    opcode: Optional[int] = None

# Opcodes de las formas soportadas por el codificador
OP_MOV_RM_R   = 0x89  # MOV r/m16, r16
OP_MOV_R8_IMM = 0xB0  # MOV r8, imm8   (+reg)
OP_MOV_R16_IMM= 0xB8  # MOV r16, imm16 (+reg)
OP_ADD_RM_R   = 0x01  # ADD r/m16, r16
OP_SUB_RM_R   = 0x29  # SUB r/m16, r16
OP_INC_R16    = 0x40  # INC r16 (+reg)
OP_DEC_R16    = 0x48  # DEC r16 (+reg)
OP_GRP_FE     = 0xFE  # INC/DEC r/m8
MODRM_INC_R8  = 0xC0  # mod=11, /0
MODRM_DEC_R8  = 0xC8  # mod=11, /1
OP_INT        = 0xCD
OP_NOP        = 0x90
OP_RET        = 0xC3

MOD_REG = 0b11  # modo registro-registro del byte ModR/M

SPEC: Dict[str, ISpec] = {}

def _add(category: str, names: List[str], *, allowed: Sequence[str] = (), jump: bool = False) -> None:
    for name in names:
        SPEC[name] = ISpec(category=category, allowed=name in allowed, jump=jump)

def _opcode(name: str, opcode: int) -> None:
    SPEC[name] = ISpec(**{**SPEC[name].__dict__, "opcode": opcode})

_add("data_transfer",
     ["MOV", "PUSH", "POP", "XCHG", "LEA", "LDS", "LES", "IN", "OUT", "XLAT",
      "LAHF", "SAHF", "PUSHF", "POPF"],
     allowed=["MOV", "PUSH", "POP", "XCHG", "LEA", "LDS", "LES"])
_add("arithmetic",
     ["ADD", "ADC", "SUB", "SBB", "INC", "DEC", "MUL", "IMUL", "DIV", "IDIV",
      "CMP", "NEG", "AAA", "AAD", "AAM", "AAS", "DAA", "DAS", "CBW", "CWD"],
     allowed=["ADD", "ADC", "SUB", "INC", "DEC", "IMUL", "IDIV", "CMP", "AAA", "AAD"])
_add("logic",
     ["AND", "OR", "XOR", "NOT", "TEST", "SHL", "SHR", "SAL", "SAR",
      "ROL", "ROR", "RCL", "RCR"],
     allowed=["AND", "OR", "XOR", "NOT"])
_add("control_transfer",
     ["JMP", "CALL", "LOOP", "LOOPE", "LOOPNE", "LOOPZ", "LOOPNZ"],
     allowed=["JMP", "CALL", "LOOP"], jump=True)
_add("control_transfer", ["RET", "RETF", "IRET"], allowed=["RET"])
_add("conditional_jump",
     ["JA", "JAE", "JB", "JBE", "JC", "JCXZ", "JE", "JG", "JGE", "JL", "JLE",
      "JNA", "JNAE", "JNB", "JNBE", "JNC", "JNE", "JNG", "JNGE", "JNL",
      "JNLE", "JNO", "JNP", "JNS", "JNZ", "JO", "JP", "JPE", "JPO", "JS", "JZ"],
     allowed=["JAE", "JC", "JE", "JGE", "JNB", "JNE", "JNG", "JNO", "JNZ", "JZ"],
     jump=True)
_add("interrupt", ["INT", "INTO"], allowed=["INT", "INTO"])
_add("flag_control", ["CLC", "STC", "CMC", "CLD", "STD", "CLI", "STI"],
     allowed=["CLC", "STC"])
_add("string",
     ["MOVSB", "MOVSW", "CMPSB", "CMPSW", "SCASB", "SCASW", "LODSB", "LODSW",
      "STOSB", "STOSW", "REP", "REPE", "REPNE", "REPZ", "REPNZ"],
     allowed=["SCASW"])
_add("processor_control", ["HLT", "NOP", "WAIT", "LOCK", "ESC"],
     allowed=["HLT", "NOP"])

_opcode("MOV", OP_MOV_RM_R)
_opcode("ADD", OP_ADD_RM_R)
_opcode("SUB", OP_SUB_RM_R)
_opcode("INT", OP_INT)
_opcode("NOP", OP_NOP)
_opcode("RET", OP_RET)

# Formas de operandos para las comprobaciones semánticas
TWO_OPERAND = frozenset({"MOV", "ADD", "ADC", "SUB", "SBB", "CMP", "AND", "OR", "XOR", "TEST", "XCHG"})
ONE_OPERAND = frozenset({"INC", "DEC", "NEG", "NOT", "MUL", "DIV", "IMUL", "IDIV", "PUSH", "POP"})
# Instrucciones que el codificador sabe emitir
ENCODABLE = frozenset({"MOV", "ADD", "SUB", "INC", "DEC", "INT", "NOP", "RET"})

def is_instruction(mnemonic: str) -> bool:
    return mnemonic.upper() in SPEC

def spec(mnemonic: str) -> ISpec:
    """Devuelve la especificación de una instrucción por mnemónico."""
    m = mnemonic.upper()
    if m not in SPEC:
        raise KeyError(f"Unknown instruction: {mnemonic}")
    return SPEC[m]

def is_allowed(mnemonic: str) -> bool:
    """True si el mnemónico está en el subconjunto didáctico."""
    m = mnemonic.upper()
    return m in SPEC and SPEC[m].allowed

def is_jump(mnemonic: str) -> bool:
    m = mnemonic.upper()
    return m in SPEC and SPEC[m].jump
