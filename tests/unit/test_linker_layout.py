import pytest
from src.i8086_asm.lexer import tokenize
from src.i8086_asm.parser import parse
from src.i8086_asm.validator import validate
from src.i8086_asm.linker import BASE_ADDRESS, resolve_addresses, variable_size, estimate_instruction_size
from src.i8086_asm.ast import Reg, Imm, Mem, Sym, Str, Dup, Instruction, Variable, Data

def layout(src, **kw):
    program = parse(tokenize(src))
    _, symtab = validate(program, src)
    return resolve_addresses(program, symtab, **kw), symtab

SRC = """\
.DATA SEGMENT
var1 DW 100 DUP(0)
var2 DB 5
ENDS
.CODE SEGMENT
start:
MOV AX, 5
INC AX
again:
NOP
ENDS
"""

def test_segments_reset_counter():
    amap, symtab = layout(SRC)
    assert amap == {
        0: BASE_ADDRESS,
        1: 0, 2: 200, 3: 201,       # ENDS empieza donde terminó var2
        4: 0, 5: 0, 6: 0, 7: 3, 8: 4, 9: 4, 10: 5,
    }
    assert symtab["var1"].offset == 0
    assert symtab["var2"].offset == 200
    assert symtab["start"].offset == 0
    assert symtab["again"].offset == 4

def test_base_address_override():
    amap, _ = layout("NOP\nNOP\n", base_address=0x100)
    assert amap == {0: 0x100, 1: 0x101}

def test_empty_and_error_lines_are_addressed():
    amap, _ = layout(".CODE SEGMENT\n\nMOV AX, [BX\nNOP\n")
    assert amap == {0: 0x0250, 1: 0, 2: 0, 3: 0}

def test_offset_written_once():
    _, symtab = layout(".CODE SEGMENT\nx:\nNOP\nx:\nENDS\n")
    assert symtab["x"].offset == 0

@pytest.mark.parametrize("stmt, size", [
    (Variable("s", "DB", Str("hello")), 5),
    (Variable("d", "DD", Imm(1, "1")), 4),
    (Variable("w", "DW", Dup(3, Imm(0, "0"))), 6),
    (Variable("t", "DB", Dup(2, Str("ab"))), 4),
    (Data("DW", Imm(7, "7")), 2),
    (Data("DB", Str("ñ")), 2),      # longitud en UTF-8
])
def test_variable_size(stmt, size):
    assert variable_size(stmt) == size

@pytest.mark.parametrize("ins, size", [
    (Instruction("INC", (Reg("AX"),)), 1),
    (Instruction("DEC", (Reg("AL"),)), 2),
    (Instruction("MOV", (Reg("AX"), Imm(5, "5"))), 3),
    (Instruction("MOV", (Reg("AL"), Imm(5, "5"))), 2),
    (Instruction("INT", (Imm(0x21, "21h"),)), 2),
    (Instruction("NOP"), 1),
    (Instruction("RET"), 1),
    (Instruction("CLC"), 1),
    (Instruction("ADD", (Reg("AX"), Reg("BX"))), 2),
    (Instruction("ADD", (Reg("AX"), Imm(5, "5"))), 3),
    (Instruction("ADD", (Reg("AX"), Imm(300, "300"))), 4),
    (Instruction("MOV", (Reg("AX"), Mem("BX"))), 4),
    (Instruction("JMP", (Sym("start"),)), 2),
])
def test_estimate_instruction_size(ins, size):
    assert estimate_instruction_size(ins) == size
