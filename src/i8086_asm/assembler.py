from __future__ import annotations
import argparse, logging, sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .tokens import NewlineTok, ErrorTok, Spanned, LineIndex, category, detail, text as token_text
from .lexer import tokenize, split_lines, strip_comment
from .ast import ErrorLine, Program
from .parser import parse
from .diagnostics import CompilerError, lex_error, parse_error, diagnose_syntax_error
from .validator import SymbolTable, validate
from .linker import BASE_ADDRESS, resolve_addresses
from .encoding import encode
from .utils import to_hex_bytes
from .writers import to_listing_lines, to_symbol_lines, write_listing

logger = logging.getLogger(__name__)

NO_TOKENS = "No tokens produced"

# ---------------- Resultado del análisis ----------------

@dataclass(frozen=True)
class TokenInfo:
    text: str
    category: str
    detail: str
    line: int
    start: int
    end: int

@dataclass(frozen=True)
class SymbolRecord:
    name: str
    kind: str
    data_type: str
    segment: str
    offset: Optional[int]
    definition_line: int
    value: Optional[int] = None

@dataclass(frozen=True)
class LineAnalysis:
    """Fila del listado: una por línea física del fuente."""
    line_number: int
    is_correct: bool
    error_message: Optional[str]
    raw_instruction_text: str
    address: Optional[int]
    machine_code: Optional[str]     # 'B8 05 00'

@dataclass(frozen=True)
class AnalysisResult:
    success: bool
    tokens: Optional[List[TokenInfo]]
    errors: List[str]
    program: Optional[Program]
    symbol_table: List[SymbolRecord]
    line_analysis: List[LineAnalysis]
    diagnostics: List[CompilerError]

# ---------------- Armado del resultado ----------------

def _token_infos(spanned: List[Spanned], index: LineIndex) -> List[TokenInfo]:
    return [
        TokenInfo(token_text(tok), category(tok), detail(tok), index.span_line(span), span.start, span.end)
        for tok, span in spanned
    ]

def _symbol_records(symtab: SymbolTable) -> List[SymbolRecord]:
    return [
        SymbolRecord(name, info.kind, info.data_type, info.segment, info.offset,
                     info.definition_line, info.value)
        for name, info in sorted(symtab.items())
    ]

def _line_analysis(
    lines: List[str],
    errors: List[CompilerError],
    program: Optional[Program],
    index: LineIndex,
    address_map: Dict[int, int],
    encoding_map: Dict[int, bytes],
) -> List[LineAnalysis]:
    messages: Dict[int, List[str]] = {}
    for e in errors:
        if e.line is not None:
            messages.setdefault(e.line, []).append(e.message)

    # línea física -> índice de sentencia
    index_of: Dict[int, int] = {}
    for idx, node in enumerate(program or []):
        index_of.setdefault(index.span_line(node.span), idx)

    rows: List[LineAnalysis] = []
    for number, raw in enumerate(lines, start=1):
        msgs = messages.get(number, [])
        idx = index_of.get(number)
        address = address_map.get(idx) if idx is not None else None
        code = encoding_map.get(idx) if idx is not None and not msgs else None
        rows.append(LineAnalysis(
            line_number=number,
            is_correct=not msgs,
            error_message=" | ".join(msgs) if msgs else None,
            raw_instruction_text=strip_comment(raw),
            address=address,
            machine_code=to_hex_bytes(code) if code else None,
        ))
    return rows

def analyze(source: str, *, base_address: int = BASE_ADDRESS) -> AnalysisResult:
    """
    Pipeline completo: léxico -> sintaxis -> semántica -> pasada 1 -> pasada 2.
    Nunca lanza por errores del fuente; todo termina como diagnóstico.
    """
    lines = split_lines(source)
    index = LineIndex(source)
    spanned = tokenize(source)
    significant = [(t, s) for t, s in spanned if not isinstance(t, NewlineTok)]

    errors: List[CompilerError] = [
        lex_error(tok.reason, line=index.span_line(span))
        for tok, span in significant if isinstance(tok, ErrorTok)
    ]

    if not significant:
        errors.append(lex_error(NO_TOKENS))
        logger.debug("analyze: no tokens, skipping parse/validate/encode")
        return AnalysisResult(
            success=False, tokens=None, errors=[str(e) for e in errors], program=None,
            symbol_table=[], line_analysis=_line_analysis(lines, errors, None, index, {}, {}),
            diagnostics=errors,
        )

    program = parse(spanned)
    for node in program:
        if isinstance(node, ErrorLine):
            number = index.span_line(node.span)
            raw = lines[number - 1] if number <= len(lines) else node.span.slice(source)
            errors.append(parse_error(diagnose_syntax_error(raw), line=number))

    sem_errors, symtab = validate(program, source, index=index)
    errors.extend(sem_errors)

    address_map = resolve_addresses(program, symtab, base_address=base_address)
    encoding_map = encode(program, address_map)

    logger.debug("analyze: %d lines, %d errors, %d symbols", len(lines), len(errors), len(symtab))
    return AnalysisResult(
        success=not errors,
        tokens=_token_infos(significant, index),
        errors=[str(e) for e in errors],
        program=program,
        symbol_table=_symbol_records(symtab),
        line_analysis=_line_analysis(lines, errors, program, index, address_map, encoding_map),
        diagnostics=errors,
    )

# ---------------- Driver de línea de comandos ----------------

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="8086 subset assembler front-end")
    ap.add_argument("source", help="archivo .asm de entrada")
    ap.add_argument("-o", "--output", help="archivo de salida para el listado (por defecto stdout)")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v INFO, -vv DEBUG")
    args = ap.parse_args(argv)

    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        with open(args.source, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as ex:
        print(f"ERROR: no pude leer {args.source}: {ex}", file=sys.stderr)
        return 2

    result = analyze(text)
    for err in result.errors:
        print(err, file=sys.stderr)

    if args.output:
        try:
            write_listing(result, args.output)
        except OSError as ex:
            print(f"ERROR al escribir el listado: {ex}", file=sys.stderr)
            return 3
        logger.info("listing written to %s", args.output)
    else:
        for line in to_listing_lines(result) + [""] + to_symbol_lines(result):
            print(line)

    return 0 if result.success else 1

if __name__ == "__main__":
    raise SystemExit(main())
