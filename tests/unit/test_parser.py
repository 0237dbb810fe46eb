import pytest
from src.i8086_asm.lexer import tokenize
from src.i8086_asm.parser import parse, SYNTAX_ERROR
from src.i8086_asm.tokens import Span
from src.i8086_asm.ast import (
    Reg, Imm, Mem, Sym, Str, Dup,
    Instruction, Label, Segment, SegmentEnd, End, Variable, Constant, Data, Unknown,
    StatementLine, EmptyLine, ErrorLine, statement_of,
)

def parse_src(src):
    return parse(tokenize(src))

def stmt(src):
    [node] = parse_src(src)
    assert isinstance(node, StatementLine), node
    return node.stmt

@pytest.mark.parametrize("src, expected", [
    ("MOV AX, BX", Instruction("MOV", (Reg("AX"), Reg("BX")))),
    ("INT 21h", Instruction("INT", (Imm(0x21, "21h"),))),
    ("NOP", Instruction("NOP")),
    ("MOV AX, [BX]", Instruction("MOV", (Reg("AX"), Mem("BX")))),
    ("MOV AX, [SI+4]", Instruction("MOV", (Reg("AX"), Mem("SI", 4)))),
    ("MOV AX, [BP-2]", Instruction("MOV", (Reg("AX"), Mem("BP", -2)))),
    ("MOV AL, 'A'", Instruction("MOV", (Reg("AL"), Imm(65, "'A'")))),
    ("MOV AX, -1", Instruction("MOV", (Reg("AX"), Imm(-1, "-1")))),
    ("JMP start", Instruction("JMP", (Sym("start"),))),
    ("frob AX", Instruction("FROB", (Reg("AX"),))),
])
def test_instructions(src, expected):
    assert stmt(src) == expected

@pytest.mark.parametrize("src, expected", [
    ("start:", Label("start")),
    (".DATA SEGMENT", Segment(".DATA SEGMENT")),
    (".code", Segment(".CODE")),
    ("ENDS", SegmentEnd()),
    ("datos ENDS", SegmentEnd()),
    ("END", End()),
    ("END start", End("start")),
    (".MODEL SMALL", Unknown(".MODEL")),
    ("ORG 100h", Unknown("ORG")),
])
def test_structure(src, expected):
    assert stmt(src) == expected

@pytest.mark.parametrize("src, expected", [
    ("var1 DW 100 DUP(0)", Variable("var1", "DW", Dup(100, Imm(0, "0")))),
    ('msg DB "hola"', Variable("msg", "DB", Str("hola"))),
    ("num DD 0FFh", Variable("num", "DD", Imm(255, "0FFh"))),
    ("buf DB 4 DUP(?)", Variable("buf", "DB", Dup(4, Imm(0, "?")))),
    ("tab DB 2 DUP('x')", Variable("tab", "DB", Dup(2, Imm(ord("x"), "'x'")))),
    ("max EQU 10", Constant("max", Imm(10, "10"))),
    ("DW 5", Data("DW", Imm(5, "5"))),
])
def test_declarations(src, expected):
    assert stmt(src) == expected

@pytest.mark.parametrize("src", [
    "MOV AX, [BX",
    ".stacks segment",
    "x DB",
    "MOV AX, FFh",
    "start: NOP",
    "MOV AX, [AX+]",
    "MOV AX, [AX]",
    "MOV AX, [CS]",
    "MOV AL, [AL+2]",
])
def test_syntax_errors(src):
    [node] = parse_src(src)
    assert isinstance(node, ErrorLine)
    assert node.message == SYNTAX_ERROR

def test_recovery_continues_with_next_line():
    program = parse_src("MOV AX, [BX\nNOP\n")
    assert isinstance(program[0], ErrorLine)
    assert statement_of(program[1]) == Instruction("NOP")
    assert len(program) == 2

def test_one_node_per_physical_line():
    src = "NOP\n\n; comentario\nNOP"
    program = parse_src(src)
    assert [type(n) for n in program] == [StatementLine, EmptyLine, EmptyLine, StatementLine]
    assert [n.span.line(src) for n in program] == [1, 2, 3, 4]

def test_statement_span_covers_line():
    src = "  INC AX\nNOP"
    program = parse_src(src)
    assert program[0].span == Span(2, 9)
    assert program[1].span == Span(9, 12)
