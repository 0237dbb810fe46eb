'''
utilidades de bytes (u8, u16, little-endian, formatos hex)
'''

from __future__ import annotations
from typing import Iterable

# Máscaras sin signo
U8_MASK = 0xFF
U16_MASK = 0xFFFF

def u8(x: int) -> int:
    """Fuerza el valor al rango de 8 bits sin signo."""
    return x & U8_MASK

def u16(x: int) -> int:
    """Fuerza el valor al rango de 16 bits sin signo."""
    return x & U16_MASK

def is_unsigned_nbit(x: int, n: int) -> bool:
    """Devuelve True si x está en [0, 2^n) (sin signo de n bits)."""
    if n <= 0:
        raise ValueError("n debe ser positivo")
    return 0 <= x < (1 << n)

def le_bytes(value: int, size: int) -> bytes:
    """Codifica value en 'size' bytes little-endian (trunca los bits altos)."""
    if size <= 0:
        raise ValueError("size debe ser positivo")
    mask = (1 << (8 * size)) - 1
    return (value & mask).to_bytes(size, "little")

def from_le_bytes(data: Iterable[int]) -> int:
    """Inverso de le_bytes."""
    return int.from_bytes(bytes(data), "little")

def to_hex_bytes(data: Iterable[int]) -> str:
    """Bytes como hex en mayúsculas separado por espacios: 'B8 05 00'."""
    return " ".join(f"{b:02X}" for b in data)

def to_hex16(x: int, *, suffix: bool = True) -> str:
    """Dirección de 16 bits al estilo MASM ('0250h'), con o sin sufijo."""
    s = format(u16(x), "04X")
    return (s + "h") if suffix else s
