from __future__ import annotations
import logging
import re
from typing import Callable, List, Optional, Tuple

from .isa import SPEC as ISA_SPEC
from .regs import is_reg
from .tokens import (
    Token, Span, Spanned, NEWLINE,
    InstructionTok, PseudoTok, RegisterTok, ConstantTok, SymbolTok, PunctTok, ErrorTok,
    DecimalLit, HexLit, BinaryLit, StringLit, CharLit, PUNCTUATION,
)

logger = logging.getLogger(__name__)

DIRECTIVES = frozenset({
    "DB", "DW", "DD", "EQU", "ORG", "OFFSET", "ENDS", "SEGMENT", "END",
    ".CODE", ".DATA", ".STACK", ".MODEL",
})

# two-word directives collapsed into one token
COMPOUNDS = frozenset({
    (".STACK", "SEGMENT"), (".DATA", "SEGMENT"), (".CODE", "SEGMENT"),
    ("BYTE", "PTR"), ("WORD", "PTR"), ("DWORD", "PTR"),
})

IDENT_RE    = re.compile(r"\.?[A-Za-z_][A-Za-z0-9_]*")
COMPOUND_RE = re.compile(r"(\.?[A-Za-z_][A-Za-z0-9_]*)[ \t]+([A-Za-z_][A-Za-z0-9_]*)")
DUP_RE      = re.compile(r"dup[ \t]*\(([^)\n]*)\)", re.IGNORECASE)
HEX_RE      = re.compile(r"([0-9A-Fa-f]+)[hH](?![A-Za-z0-9_])")
BIN_RE      = re.compile(r"([01]+)[bB](?![A-Za-z0-9_])")
DEC_RE      = re.compile(r"[0-9]+")

Scan = Optional[Tuple[Token, int]]

def is_reserved(word: str) -> bool:
    """True for instruction mnemonics, register names and directive keywords."""
    w = word.upper()
    return w in ISA_SPEC or is_reg(w) or w in DIRECTIVES

def classify_word(word: str) -> Token:
    """Tables are tried in order: instructions, registers, directives; else symbol."""
    upper = word.upper()
    spec = ISA_SPEC.get(upper)
    if spec is not None:
        return InstructionTok(spec.category, upper)
    if is_reg(upper):
        return RegisterTok(upper)
    if upper in DIRECTIVES:
        return PseudoTok(upper)
    return SymbolTok(word)

# ---- scanners: each returns (token, end) or None ----

def _scan_compound(src: str, i: int) -> Scan:
    m = COMPOUND_RE.match(src, i)
    if not m:
        return None
    pair = (m.group(1).upper(), m.group(2).upper())
    if pair not in COMPOUNDS:
        return None
    return PseudoTok(f"{pair[0]} {pair[1]}"), m.end()

def _scan_bracket(src: str, i: int) -> Scan:
    if src[i] != "[":
        return None
    j = i + 1
    while j < len(src) and src[j] not in "]\n;":
        j += 1
    if j < len(src) and src[j] == "]":
        j += 1
    # unterminated brackets stay a single symbol; the parser rejects them
    return SymbolTok(src[i:j].rstrip(" \t\r")), j

def _scan_dup(src: str, i: int) -> Scan:
    m = DUP_RE.match(src, i)
    if not m:
        return None
    return PseudoTok(f"DUP({m.group(1).strip()})"), m.end()

def _scan_quoted(src: str, i: int) -> Scan:
    q = src[i]
    if q not in "\"'":
        return None
    j = i + 1
    while j < len(src) and src[j] not in (q, "\n"):
        j += 1
    content = src[i + 1:j]
    if j >= len(src) or src[j] != q:
        # stop at end of line, never run into the next one
        what = "String" if q == '"' else "Char literal"
        return ErrorTok(f"{what} missing closing quote", content.rstrip("\r")), j
    if q == "'" and len(content) == 1:
        return ConstantTok(CharLit(content)), j + 1
    return ConstantTok(StringLit(content)), j + 1

def _scan_number(src: str, i: int) -> Scan:
    m = HEX_RE.match(src, i)
    if m:
        digits = m.group(1)
        if digits[0].isdigit():
            return ConstantTok(HexLit(int(digits, 16), m.group(0))), m.end()
        # 'AH', 'BH', ... keep their reserved meaning
        if is_reserved(m.group(0)):
            return None
        return ErrorTok(f"Hex literal must start with a decimal digit (missing leading zero): '{m.group(0)}'",
                        m.group(0)), m.end()
    m = BIN_RE.match(src, i)
    if m:
        digits = m.group(1)
        if len(digits) not in (8, 16):
            return ErrorTok(f"Invalid binary length: {len(digits)}, expected 8 or 16: '{m.group(0)}'",
                            m.group(0)), m.end()
        return ConstantTok(BinaryLit(int(digits, 2), m.group(0))), m.end()
    m = DEC_RE.match(src, i)
    if m:
        return ConstantTok(DecimalLit(int(m.group(0)))), m.end()
    return None

def _scan_identifier(src: str, i: int) -> Scan:
    m = IDENT_RE.match(src, i)
    if not m:
        return None
    return classify_word(m.group(0)), m.end()

def _scan_punct(src: str, i: int) -> Scan:
    kind = PUNCTUATION.get(src[i])
    if kind is None:
        return None
    return PunctTok(kind), i + 1

# longest / compound matches first
SCANNERS: Tuple[Callable[[str, int], Scan], ...] = (
    _scan_compound,
    _scan_bracket,
    _scan_dup,
    _scan_quoted,
    _scan_number,
    _scan_identifier,
    _scan_punct,
)

def tokenize(source: str) -> List[Spanned]:
    """Convert source text into spanned tokens. Never raises: bad input becomes ErrorTok."""
    out: List[Spanned] = []
    i, n = 0, len(source)
    while i < n:
        ch = source[i]
        if ch == "\n":
            out.append((NEWLINE, Span(i, i + 1)))
            i += 1
            continue
        if ch in " \t\r\f\v":
            i += 1
            continue
        if ch == ";":
            while i < n and source[i] != "\n":
                i += 1
            continue
        for scan in SCANNERS:
            res = scan(source, i)
            if res is not None:
                tok, end = res
                out.append((tok, Span(i, end)))
                i = end
                break
        else:
            out.append((ErrorTok(f"Unrecognized character '{ch}'", ch), Span(i, i + 1)))
            i += 1
    logger.debug("tokenize: %d tokens (%d errors)", len(out),
                 sum(1 for t, _ in out if isinstance(t, ErrorTok)))
    return out

# ---- line helpers ----

def strip_comment(line: str) -> str:
    """Remove a ';' comment (quotes respected) and surrounding whitespace."""
    quote = None
    for idx, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == ";":
            return line[:idx].strip()
    return line.strip()

def split_lines(source: str) -> List[str]:
    """Physical lines: split on '\\n', trailing '\\r' removed, final empty piece dropped."""
    if not source:
        return []
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]
