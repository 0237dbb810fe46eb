'''
tabla de registros 8086: códigos de 3 bits, anchos, validaciones
'''

from __future__ import annotations
from typing import Dict

# Código de 3 bits usado en ModR/M y en los opcodes +reg (AL/AX=0 ... BH/DI=7)
REG16_CODES: Dict[str, int] = {
    "AX": 0, "CX": 1, "DX": 2, "BX": 3,
    "SP": 4, "BP": 5, "SI": 6, "DI": 7,
}
REG8_CODES: Dict[str, int] = {
    "AL": 0, "CL": 1, "DL": 2, "BL": 3,
    "AH": 4, "CH": 5, "DH": 6, "BH": 7,
}
# Registros de segmento (sreg en ModR/M)
SREG_CODES: Dict[str, int] = {"ES": 0, "CS": 1, "SS": 2, "DS": 3}

ALL_REGS = frozenset(REG16_CODES) | frozenset(REG8_CODES) | frozenset(SREG_CODES)

# Registros válidos como base dentro de [ ... ]
BASE_REGS = frozenset({"BX", "BP", "SI", "DI"})

def is_reg(token: str) -> bool:
    """Indica si el token nombra un registro de la CPU."""
    try:
        normalize_reg(token)
        return True
    except ValueError:
        return False

def normalize_reg(token: str) -> str:
    """Devuelve el nombre canónico en mayúsculas o lanza ValueError."""
    t = token.strip().upper()
    if t in ALL_REGS:
        return t
    raise ValueError(f"Invalid register: {token}")

def reg_code(token: str) -> int:
    """Código de 3 bits del registro (AL/AX=0, CL/CX=1, ... BH/DI=7)."""
    r = normalize_reg(token)
    if r in REG16_CODES:
        return REG16_CODES[r]
    if r in REG8_CODES:
        return REG8_CODES[r]
    return SREG_CODES[r]

def reg_width(token: str) -> int:
    """Ancho en bits: 8 para AL..BH, 16 para el resto."""
    return 8 if normalize_reg(token) in REG8_CODES else 16

def is_16bit_reg(token: str) -> bool:
    return is_reg(token) and reg_width(token) == 16

def is_segment_reg(token: str) -> bool:
    return is_reg(token) and normalize_reg(token) in SREG_CODES
