# src/i8086_asm/parser.py
from __future__ import annotations
import logging
import re
from typing import Callable, List, Optional, Sequence

from .tokens import (
    Token, Span, Spanned,
    InstructionTok, PseudoTok, RegisterTok, ConstantTok, SymbolTok, PunctTok, NewlineTok,
    DecimalLit, HexLit, BinaryLit, StringLit, CharLit,
)
from .ast import (
    Reg, Imm, Mem, Sym, Str, Dup, Operand,
    Instruction, Label, Segment, SegmentEnd, End, Variable, Constant, Data, Unknown, Statement,
    StatementLine, EmptyLine, ErrorLine, LineNode, Program,
)
from .regs import BASE_REGS, is_reg, normalize_reg

logger = logging.getLogger(__name__)

SYNTAX_ERROR = "Syntax Error"

SEGMENT_DIRECTIVES = frozenset({
    ".STACK SEGMENT", ".DATA SEGMENT", ".CODE SEGMENT", ".STACK", ".DATA", ".CODE",
})
DATA_DIRECTIVES = frozenset({"DB", "DW", "DD"})
IGNORED_DIRECTIVES = frozenset({".MODEL", "ORG"})

MEM_RE     = re.compile(r"^\[\s*(?P<base>[A-Za-z]{2})\s*(?:(?P<sign>[+-])\s*(?P<off>[0-9][0-9A-Fa-f]*[hH]?))?\s*\]$")
HEX_IMM_RE = re.compile(r"^[0-9A-Fa-f]+[hH]$")
BIN_IMM_RE = re.compile(r"^[01]+[bB]$")
DEC_IMM_RE = re.compile(r"^[0-9]+$")
SYMBOL_RE  = re.compile(r"^\.?[A-Za-z_][A-Za-z0-9_]*$")

def _parse_number(raw: str) -> Optional[int]:
    if HEX_IMM_RE.match(raw):
        return int(raw[:-1], 16)
    if DEC_IMM_RE.match(raw):
        return int(raw)
    return None

def _parse_mem(text: str) -> Optional[Mem]:
    """'[BX]' / '[SI+4]' / '[BP-2h]'. Only BX, BP, SI and DI can be a base; anything
    else (incl. a missing ']') is rejected."""
    m = MEM_RE.match(text)
    if not m or not is_reg(m.group("base")):
        return None
    base = normalize_reg(m.group("base"))
    if base not in BASE_REGS:
        return None
    if m.group("off") is None:
        return Mem(base=base)
    off = _parse_number(m.group("off"))
    if off is None:
        return None
    return Mem(base=base, offset=-off if m.group("sign") == "-" else off)

def _parse_dup_inner(args: str) -> Optional[Operand]:
    """Argument of DUP(...). Hex is accepted with any leading digit; the validator checks it."""
    t = args.strip()
    if t == "?":
        return Imm(0, "?")
    if HEX_IMM_RE.match(t):
        return Imm(int(t[:-1], 16), t)
    if BIN_IMM_RE.match(t):
        return Imm(int(t[:-1], 2), t)
    if DEC_IMM_RE.match(t):
        return Imm(int(t), t)
    if len(t) >= 2 and t[0] == t[-1] and t[0] in "\"'":
        inner = t[1:-1]
        if t[0] == "'" and len(inner) == 1:
            return Imm(ord(inner), t)
        return Str(inner)
    if SYMBOL_RE.match(t) and not is_reg(t):
        return Sym(t)
    return None

def _literal_operand(tok: ConstantTok) -> Operand:
    lit = tok.literal
    if isinstance(lit, (HexLit, BinaryLit)):
        return Imm(lit.value, lit.raw)
    if isinstance(lit, DecimalLit):
        return Imm(lit.value, lit.raw)
    if isinstance(lit, CharLit):
        return Imm(ord(lit.char), f"'{lit.char}'")
    return Str(lit.text)

def _operand(ts: Sequence[Token]) -> Optional[Operand]:
    if len(ts) == 1:
        t = ts[0]
        if isinstance(t, ConstantTok):
            return _literal_operand(t)
        if isinstance(t, RegisterTok):
            return Reg(t.text)
        if isinstance(t, SymbolTok):
            if t.text.startswith("["):
                return _parse_mem(t.text)
            return Sym(t.text)
        return None
    # signo unario: -1, +5
    if len(ts) == 2 and isinstance(ts[0], PunctTok) and ts[0].kind in ("minus", "plus") \
            and isinstance(ts[1], ConstantTok) and not isinstance(ts[1].literal, (StringLit, CharLit)):
        op = _literal_operand(ts[1])
        assert isinstance(op, Imm)
        if ts[0].kind == "minus":
            return Imm(-op.value, "-" + op.raw)
        return Imm(op.value, "+" + op.raw)
    return None

def _operand_list(ts: Sequence[Token]) -> Optional[List[Operand]]:
    if not ts:
        return []
    out: List[Operand] = []
    cur: List[Token] = []
    for t in list(ts) + [PunctTok("comma")]:
        if isinstance(t, PunctTok) and t.kind == "comma":
            op = _operand(cur)
            if op is None:
                return None
            out.append(op)
            cur = []
        else:
            cur.append(t)
    return out

def _value(ts: Sequence[Token]) -> Optional[Operand]:
    """Valor de una declaración: operando simple o 'count DUP(inner)'."""
    if len(ts) == 2 and isinstance(ts[0], ConstantTok) and isinstance(ts[1], PseudoTok) \
            and ts[1].text.startswith("DUP("):
        lit = ts[0].literal
        if not isinstance(lit, (DecimalLit, HexLit, BinaryLit)):
            return None
        inner = _parse_dup_inner(ts[1].text[4:-1])
        if inner is None:
            return None
        return Dup(count=lit.value, value=inner)
    ops = _operand_list(ts)
    if ops is None or len(ops) != 1:
        return None
    return ops[0]

def _is_name(t: Token) -> bool:
    return isinstance(t, SymbolTok) and not t.text.startswith("[")

# ---- alternativas por línea (gana la primera que encaje) ----

def _segment(ts: Sequence[Token]) -> Optional[Statement]:
    if len(ts) == 1 and isinstance(ts[0], PseudoTok):
        if ts[0].text in SEGMENT_DIRECTIVES:
            return Segment(ts[0].text)
        if ts[0].text == "ENDS":
            return SegmentEnd()
    # 'data ENDS'
    if len(ts) == 2 and _is_name(ts[0]) and isinstance(ts[1], PseudoTok) and ts[1].text == "ENDS":
        return SegmentEnd()
    return None

def _label(ts: Sequence[Token]) -> Optional[Statement]:
    if len(ts) == 2 and _is_name(ts[0]) and isinstance(ts[1], PunctTok) and ts[1].kind == "colon":
        return Label(ts[0].text)
    return None

def _variable(ts: Sequence[Token]) -> Optional[Statement]:
    if len(ts) < 3 or not _is_name(ts[0]) or not isinstance(ts[1], PseudoTok):
        return None
    directive = ts[1].text
    if directive not in DATA_DIRECTIVES and directive != "EQU":
        return None
    value = _value(ts[2:])
    if value is None:
        return None
    if directive == "EQU":
        return Constant(name=ts[0].text, value=value)
    return Variable(name=ts[0].text, directive=directive, value=value)

def _data(ts: Sequence[Token]) -> Optional[Statement]:
    if len(ts) < 2 or not isinstance(ts[0], PseudoTok) or ts[0].text not in DATA_DIRECTIVES:
        return None
    value = _value(ts[1:])
    if value is None:
        return None
    return Data(directive=ts[0].text, value=value)

def _end(ts: Sequence[Token]) -> Optional[Statement]:
    if not ts or not isinstance(ts[0], PseudoTok) or ts[0].text != "END":
        return None
    if len(ts) == 1:
        return End()
    if len(ts) == 2 and _is_name(ts[1]):
        return End(label=ts[1].text)
    return None

def _unknown(ts: Sequence[Token]) -> Optional[Statement]:
    if ts and isinstance(ts[0], PseudoTok) and ts[0].text in IGNORED_DIRECTIVES:
        return Unknown(ts[0].text)
    return None

def _instruction(ts: Sequence[Token]) -> Optional[Statement]:
    if not ts:
        return None
    head = ts[0]
    if isinstance(head, InstructionTok):
        mnemonic = head.text
    elif _is_name(head):
        mnemonic = head.text.upper()
    else:
        return None
    ops = _operand_list(ts[1:])
    if ops is None:
        return None
    return Instruction(mnemonic=mnemonic, operands=tuple(ops))

ALTERNATIVES: Sequence[Callable[[Sequence[Token]], Optional[Statement]]] = (
    _segment, _label, _variable, _data, _end, _unknown, _instruction,
)

def parse_line(line: Sequence[Spanned], newline: Optional[Span] = None) -> LineNode:
    """Parsea los tokens de una línea física (sin el salto de línea)."""
    if not line:
        assert newline is not None
        return EmptyLine(newline)
    end = newline.end if newline is not None else line[-1][1].end
    span = Span(line[0][1].start, end)
    ts = [t for t, _ in line]
    for alt in ALTERNATIVES:
        stmt = alt(ts)
        if stmt is not None:
            return StatementLine(stmt, span)
    # recuperación: se descarta la línea entera hasta el salto
    return ErrorLine(SYNTAX_ERROR, span)

def parse(tokens: Sequence[Spanned]) -> Program:
    """
    Devuelve un LineNode por línea física delimitada por NewlineTok:
      - StatementLine(stmt, span) si alguna alternativa encaja
      - EmptyLine(span) para líneas vacías o de solo comentario
      - ErrorLine("Syntax Error", span) si ninguna encaja (la línea se salta entera)

    Orden de alternativas: segmento, etiqueta, variable/constante, datos anónimos,
    END, directiva ignorada (.MODEL/ORG), instrucción.
    """
    program: Program = []
    line: List[Spanned] = []
    for tok, span in tokens:
        if isinstance(tok, NewlineTok):
            program.append(parse_line(line, span))
            line = []
        else:
            line.append((tok, span))
    if line:
        program.append(parse_line(line))
    logger.debug("parse: %d lines (%d with errors)", len(program),
                 sum(1 for n in program if isinstance(n, ErrorLine)))
    return program
