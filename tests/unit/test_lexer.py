import pytest
from src.i8086_asm.lexer import tokenize, strip_comment, split_lines, is_reserved, classify_word
from src.i8086_asm.tokens import (
    Span, LineIndex, line_of, NEWLINE, InstructionTok, PseudoTok, RegisterTok, ConstantTok, SymbolTok, PunctTok, ErrorTok,
    DecimalLit, HexLit, BinaryLit, StringLit, CharLit, category, detail,
)

def toks(src):
    return [t for t, _ in tokenize(src)]

# --- tokens básicos ---
def test_instruction_line():
    assert toks("MOV AX, 0FFh") == [
        InstructionTok("data_transfer", "MOV"),
        RegisterTok("AX"),
        PunctTok("comma"),
        ConstantTok(HexLit(255, "0FFh")),
    ]

def test_case_folding_keeps_symbol_case():
    assert toks("mov ax, Var1") == [
        InstructionTok("data_transfer", "MOV"), RegisterTok("AX"), PunctTok("comma"), SymbolTok("Var1"),
    ]

def test_spans_and_newlines():
    src = "NOP\nNOP"
    assert tokenize(src) == [
        (InstructionTok("processor_control", "NOP"), Span(0, 3)),
        (NEWLINE, Span(3, 4)),
        (InstructionTok("processor_control", "NOP"), Span(4, 7)),
    ]
    assert tokenize(src)[2][1].line(src) == 2

def test_comments_are_skipped():
    assert toks("INC AX ; sube") == [InstructionTok("arithmetic", "INC"), RegisterTok("AX")]
    assert toks("; solo comentario") == []

# --- directivas compuestas y DUP ---
@pytest.mark.parametrize("src, expected", [
    (".DATA SEGMENT", ".DATA SEGMENT"),
    (".code   segment", ".CODE SEGMENT"),
    (".Stack\tSegment", ".STACK SEGMENT"),
    ("word ptr", "WORD PTR"),
])
def test_compound_directives(src, expected):
    assert toks(src) == [PseudoTok(expected)]

def test_dup_is_one_token():
    assert toks("100 DUP(0)") == [ConstantTok(DecimalLit(100)), PseudoTok("DUP(0)")]
    assert toks("5 dup ( ? )") == [ConstantTok(DecimalLit(5)), PseudoTok("DUP(?)")]

# --- literales ---
def test_hex_requires_leading_digit():
    assert toks("0FFh") == [ConstantTok(HexLit(255, "0FFh"))]
    assert toks("21H") == [ConstantTok(HexLit(0x21, "21H"))]
    [bad] = toks("FFh")
    assert isinstance(bad, ErrorTok)
    assert "missing leading zero" in bad.reason

def test_reserved_words_ending_in_h_stay_registers():
    assert toks("AH, bh") == [RegisterTok("AH"), PunctTok("comma"), RegisterTok("BH")]

@pytest.mark.parametrize("src, value", [("00001010b", 10), ("0000000100000000B", 256)])
def test_binary_valid(src, value):
    assert toks(src) == [ConstantTok(BinaryLit(value, src))]

@pytest.mark.parametrize("src", ["101b", "1010101010b"])
def test_binary_bad_length(src):
    [bad] = toks(src)
    assert isinstance(bad, ErrorTok)
    assert "Invalid binary length" in bad.reason

def test_strings_and_chars():
    assert toks('"hola mundo"') == [ConstantTok(StringLit("hola mundo"))]
    assert toks("'A'") == [ConstantTok(CharLit("A"))]
    assert toks("'ab'") == [ConstantTok(StringLit("ab"))]
    assert toks('";no es comentario"') == [ConstantTok(StringLit(";no es comentario"))]

def test_unterminated_string_stops_at_line_end():
    src = 'msg DB "hello\nNOP'
    ts = toks(src)
    assert ts[2] == ErrorTok("String missing closing quote", "hello")
    assert ts[3] == NEWLINE
    assert ts[4] == InstructionTok("processor_control", "NOP")

def test_unterminated_bracket_is_single_symbol():
    assert toks("[BX")[0] == SymbolTok("[BX")
    assert toks("[SI+2]") == [SymbolTok("[SI+2]")]

def test_unrecognized_character():
    assert toks("#") == [ErrorTok("Unrecognized character '#'", "#")]

# --- clasificación ---
def test_classify_word_order():
    assert classify_word("loop") == InstructionTok("control_transfer", "LOOP")
    assert classify_word("dx") == RegisterTok("DX")
    assert classify_word("equ") == PseudoTok("EQU")
    assert classify_word("buffer") == SymbolTok("buffer")
    assert is_reserved("ends")
    assert not is_reserved("buffer")

def test_category_and_detail():
    assert category(RegisterTok("AX")) == "Register"
    assert detail(RegisterTok("AX")) == "Registro CPU"
    assert detail(InstructionTok("data_transfer", "MOV")) == "Transferencia de Datos"
    assert detail(ConstantTok(HexLit(1, "1h"))) == "Hexadecimal"
    assert category(ErrorTok("x")) == "Error"
    assert detail(ErrorTok("razón")) == "razón"

# --- helpers de línea ---
@pytest.mark.parametrize("src, expected", [
    ("MOV AX, BX ; copia", "MOV AX, BX"),
    ("DB 'a;b' ; x", "DB 'a;b'"),
    ("; todo comentario", ""),
    ("   NOP   ", "NOP"),
    ("", ""),
])
def test_strip_comment(src, expected):
    assert strip_comment(src) == expected

@pytest.mark.parametrize("src, expected", [
    ("", []),
    ("a", ["a"]),
    ("a\n", ["a"]),
    ("a\r\nb\r\n", ["a", "b"]),
    ("a\n\n", ["a", ""]),
    ("\n", [""]),
])
def test_split_lines(src, expected):
    assert split_lines(src) == expected

# --- índice de líneas ---
def test_line_index_matches_line_of():
    src = "NOP\n\n  MOV AX, BX ; c\r\nINC AX\n"
    index = LineIndex(src)
    for offset in range(len(src) + 1):
        assert index.line(offset) == line_of(src, offset)
    assert index.span_line(Span(5, 7)) == 3

def test_line_index_empty_source():
    assert LineIndex("").line(0) == 1
