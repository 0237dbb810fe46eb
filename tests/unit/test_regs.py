import pytest
from src.i8086_asm.regs import (
    is_reg, normalize_reg, reg_code, reg_width, is_16bit_reg, is_segment_reg
)

@pytest.mark.parametrize("name,code", [
    ("AX", 0), ("CX", 1), ("DX", 2), ("BX", 3), ("SP", 4), ("BP", 5), ("SI", 6), ("DI", 7),
    ("AL", 0), ("CL", 1), ("DL", 2), ("BL", 3), ("AH", 4), ("CH", 5), ("DH", 6), ("BH", 7),
    ("ds", 3),
])
def test_reg_codes(name, code):
    assert reg_code(name) == code

@pytest.mark.parametrize("name,width", [("AX", 16), ("al", 8), ("BH", 8), ("SI", 16), ("ES", 16)])
def test_reg_width(name, width):
    assert reg_width(name) == width

def test_normalize_and_invalid():
    assert normalize_reg(" bx ") == "BX"
    assert is_reg("Cl")
    assert not is_reg("EAX")
    with pytest.raises(ValueError):
        normalize_reg("R1")

def test_register_kinds():
    assert is_16bit_reg("dx")
    assert not is_16bit_reg("dl")
    assert not is_16bit_reg("foo")
    assert is_segment_reg("SS")
    assert not is_segment_reg("SP")
