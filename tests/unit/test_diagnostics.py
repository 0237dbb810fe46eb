import pytest
from src.i8086_asm.diagnostics import (
    CompilerError, lex_error, parse_error, semantic_error, diagnose_syntax_error,
    MSG_SEGMENT, MSG_DUP, MSG_BRACKETS, MSG_QUOTES, MSG_GENERIC,
)

def test_error_str():
    e = semantic_error("Unidentified element 'foo'", line=12, hint="declare it in .DATA")
    assert str(e) == "[SEM] Line 12: Unidentified element 'foo'  (hint: declare it in .DATA)"

def test_error_str_without_line():
    assert str(lex_error("No tokens produced")) == "[LEX] No tokens produced"

def test_stage_constructors():
    assert lex_error("a").stage == "LEX"
    assert parse_error("b", line=1) == CompilerError("PAR", "b", 1)
    e = semantic_error("c")
    assert e.stage == "SEM" and not e.is_fatal and e.hint is None

@pytest.mark.parametrize("line, expected", [
    (".stacks segment", MSG_SEGMENT),
    ("datos SEGMENT extra", MSG_SEGMENT),
    ("MOV AX, FFh", "Invalid hex constant 'FFh' (missing leading zero)"),
    ("buf DB 10 DUP 0", MSG_DUP),
    ("MOV AX, [BX", MSG_BRACKETS),
    ('msg DB "hello', MSG_QUOTES),
    ("MOV AX BX", MSG_GENERIC),
    ("MOV AH 5 ; segment en comentario", MSG_GENERIC),
])
def test_diagnose_syntax_error(line, expected):
    assert diagnose_syntax_error(line) == expected
