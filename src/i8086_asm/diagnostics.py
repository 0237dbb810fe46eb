'''
clase CompilerError, helpers por etapa y diagnóstico heurístico de líneas
que el parser no pudo reconocer
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional

from .lexer import is_reserved, strip_comment

# Etapa que emitió el error
Stage = Literal["LEX", "PAR", "SEM"]

@dataclass(frozen=True)
class CompilerError:
    """Error acumulado por el pipeline.

    Los errores de las tres etapas van a una única lista ordenada y nunca se
    descartan. 'line' es base 1 (None si no se pudo ubicar). Ningún error del
    pipeline es fatal hoy; 'is_fatal' queda para quien consuma la lista.
    """
    stage: Stage
    message: str
    line: Optional[int] = None
    is_fatal: bool = False
    hint: Optional[str] = None

    def __str__(self) -> str:
        loc = f"Line {self.line}: " if self.line is not None else ""
        core = f"[{self.stage}] {loc}{self.message}"
        if self.hint:
            core += f"  (hint: {self.hint})"
        return core

def lex_error(message: str, *, line: int | None = None, hint: str | None = None) -> CompilerError:
    """Crea un error del analizador léxico."""
    return CompilerError("LEX", message, line, False, hint)

def parse_error(message: str, *, line: int | None = None, hint: str | None = None) -> CompilerError:
    """Crea un error del parser."""
    return CompilerError("PAR", message, line, False, hint)

def semantic_error(message: str, *, line: int | None = None, hint: str | None = None) -> CompilerError:
    """Crea un error semántico."""
    return CompilerError("SEM", message, line, False, hint)

# ---- Diagnóstico de líneas con error de sintaxis ----

MSG_SEGMENT  = "Invalid segment declaration"
MSG_DUP      = "Invalid DUP format. Use: count DUP(value)"
MSG_BRACKETS = "Unbalanced brackets"
MSG_QUOTES   = "Missing closing quotes"
MSG_GENERIC  = "Invalid syntax or missing token"

def _bad_hex_word(line: str) -> Optional[str]:
    for word in line.split():
        clean = word.strip(",[]()")
        if len(clean) < 2 or clean[-1] not in "hH":
            continue
        body = clean[:-1]
        if all(c in "0123456789abcdefABCDEF" for c in body) and not body[0].isdigit() \
                and not is_reserved(clean):
            return clean
    return None

def diagnose_syntax_error(line: str) -> str:
    """Mensaje más concreto que 'Syntax Error' a partir del texto crudo de la línea."""
    text = strip_comment(line)
    lower = text.lower()

    if "segment" in lower:
        return MSG_SEGMENT

    bad_hex = _bad_hex_word(text)
    if bad_hex is not None:
        return f"Invalid hex constant '{bad_hex}' (missing leading zero)"

    if "dup" in lower and ("(" not in text or ")" not in text):
        return MSG_DUP

    if text.count("[") != text.count("]"):
        return MSG_BRACKETS

    if text.count('"') % 2 != 0 or text.count("'") % 2 != 0:
        return MSG_QUOTES

    return MSG_GENERIC
