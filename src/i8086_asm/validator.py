# src/i8086_asm/validator.py
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Tuple

from .ast import (
    Reg, Imm, Mem, Sym, Dup, Operand,
    Instruction, Label, Segment, SegmentEnd, End, Variable, Constant, Data,
    Program, statement_of,
)
from .diagnostics import CompilerError, semantic_error
from . import isa
from .linker import SEGMENT_LIMIT, value_size
from .regs import reg_width
from .tokens import LineIndex

logger = logging.getLogger(__name__)

SymbolKind = Literal["Variable", "Label", "Constant"]
DataType = Literal["Byte", "Word", "Dword", "None"]
SegmentKind = Literal["None", "Data", "Stack", "Code"]

DIRECTIVE_TYPES: Dict[str, str] = {"DB": "Byte", "DW": "Word", "DD": "Dword"}

BIN_RAW_RE = re.compile(r"^([01]+)[bB]$")

# ---------- Tabla de símbolos ----------

@dataclass
class SymbolInfo:
    """Entrada de la tabla de símbolos.

    'offset' empieza sin asignar y lo rellena una sola vez la pasada 1 del
    codificador. 'value' solo aplica a constantes EQU numéricas.
    """
    kind: str               # ver SymbolKind
    data_type: str          # ver DataType
    segment: str            # 'DATA', 'CODE', 'STACK' o 'NONE'
    definition_line: int
    offset: Optional[int] = None
    value: Optional[int] = None

SymbolTable = Dict[str, SymbolInfo]

def classify_segment(name: str) -> str:
    """Estado del segmento por subcadena (STACK, DATA, CODE), sin distinguir mayúsculas."""
    upper = name.upper()
    if "STACK" in upper:
        return "Stack"
    if "DATA" in upper:
        return "Data"
    if "CODE" in upper:
        return "Code"
    return "None"

def literal_problem(raw: str) -> Optional[str]:
    """Reglas de formato de literales sobre el texto tal como lo escribió el usuario."""
    r = raw.lstrip("+-")
    if len(r) > 1 and r[-1] in "hH" and not r[0].isdigit():
        return f"Invalid hex constant '{raw}' (missing leading zero)"
    m = BIN_RAW_RE.match(r)
    if m and len(m.group(1)) not in (8, 16):
        return f"Invalid binary length {len(m.group(1))} in '{raw}', expected 8 or 16 digits"
    return None

# ---------- Pasada 1: recolección de símbolos ----------

def collect_symbols(program: Program, index: LineIndex) -> Tuple[SymbolTable, List[CompilerError]]:
    symtab: SymbolTable = {}
    errors: List[CompilerError] = []
    segment = "None"

    def _define(name: str, info: SymbolInfo) -> None:
        prev = symtab.get(name)
        if prev is not None:
            errors.append(semantic_error(
                f"Symbol '{name}' already defined on line {prev.definition_line}",
                line=info.definition_line))
            return
        symtab[name] = info

    for node in program:
        stmt = statement_of(node)
        if stmt is None:
            continue
        line = index.span_line(node.span)
        if isinstance(stmt, Segment):
            segment = classify_segment(stmt.name)
        elif isinstance(stmt, SegmentEnd):
            segment = "None"
        elif isinstance(stmt, Variable) and segment == "Data":
            _define(stmt.name, SymbolInfo("Variable", DIRECTIVE_TYPES[stmt.directive], "DATA", line))
        elif isinstance(stmt, Label) and segment == "Code":
            _define(stmt.name, SymbolInfo("Label", "None", "CODE", line))
        elif isinstance(stmt, Constant):
            value = stmt.value.value if isinstance(stmt.value, Imm) else None
            _define(stmt.name, SymbolInfo("Constant", "None", segment.upper(), line, value=value))
    return symtab, errors

# ---------- Pasada 2: reglas ----------

def _operand_size(op: Operand, symtab: SymbolTable) -> Optional[str]:
    if isinstance(op, Reg):
        return "Byte" if reg_width(op.name) == 8 else "Word"
    if isinstance(op, Sym):
        info = symtab.get(op.name)
        if info is not None and info.kind == "Variable":
            return info.data_type
    return None

def _is_memory(op: Operand, symtab: SymbolTable) -> bool:
    if isinstance(op, Mem):
        return True
    if isinstance(op, Sym):
        info = symtab.get(op.name)
        return info is not None and info.kind == "Variable"
    return False

def _fits(value: int, bits: int) -> bool:
    """Cabe como entero con o sin signo de 'bits' bits."""
    return -(1 << (bits - 1)) <= value < (1 << bits)

def _literals(value: Operand) -> List[Imm]:
    if isinstance(value, Imm):
        return [value]
    if isinstance(value, Dup):
        return _literals(value.value)
    return []

class _Checker:
    """Recorre el programa por segunda vez aplicando las reglas por segmento."""

    def __init__(self, symtab: SymbolTable) -> None:
        self.symtab = symtab
        self.errors: List[CompilerError] = []
        self.segment = "None"

    def err(self, message: str, line: int, hint: Optional[str] = None) -> None:
        self.errors.append(semantic_error(message, line=line, hint=hint))

    def data(self, directive: str, value: Operand, line: int) -> None:
        if self.segment == "Code":
            self.err("Data declaration not allowed in code segment", line)
        elif self.segment == "Stack" and directive != "DW":
            self.err(f"Only DW declarations are allowed in stack segment (found {directive})", line)
        elif self.segment == "Data" and directive == "DB":
            inner = value.value if isinstance(value, Dup) else value
            if isinstance(inner, Sym):
                self.err(f"Text without quotes: '{inner.name}'", line, hint="enclose the text in quotes")
        size = value_size(directive, value)
        if size > SEGMENT_LIMIT:
            self.err(f"Declaration of {size} bytes exceeds the 64 KiB segment limit", line)
        for imm in _literals(value):
            problem = literal_problem(imm.raw)
            if problem:
                self.err(problem, line)

    def instruction(self, ins: Instruction, line: int) -> None:
        if self.segment != "Code":
            where = {
                "Data": "Instruction not allowed in data segment",
                "Stack": "Instruction not allowed in stack segment",
            }.get(self.segment, "Instruction outside of a valid segment")
            self.err(where, line, hint=None if self.segment != "None" else "missing .CODE SEGMENT")
            return
        mnem = ins.mnemonic.upper()
        if not isa.is_allowed(mnem):
            self.err(f"'{ins.mnemonic}' is not a valid instruction", line)
            return
        if isa.is_jump(mnem):
            self.jump(mnem, ins.operands, line)
            return
        for op in ins.operands:
            if isinstance(op, Sym) and op.name not in self.symtab:
                self.err(f"Unidentified element '{op.name}'", line)
        self.operand_forms(mnem, ins.operands, line)

    def jump(self, mnem: str, ops: Tuple[Operand, ...], line: int) -> None:
        if not ops:
            self.err("Missing jump target", line)
            return
        target = ops[0]
        if isinstance(target, Sym):
            info = self.symtab.get(target.name)
            # solo etiquetas ya definidas: no se aceptan referencias hacia adelante
            if info is None or (info.kind == "Label" and info.definition_line >= line):
                self.err(f"Label '{target.name}' not previously defined", line)
            elif info.kind != "Label":
                self.err(f"'{target.name}' is not a valid jump target", line)
        elif isa.spec(mnem).category == "conditional_jump" or mnem.startswith("LOOP"):
            self.err("Jump target must be a label", line)

    def operand_forms(self, mnem: str, ops: Tuple[Operand, ...], line: int) -> None:
        if mnem in isa.TWO_OPERAND:
            if len(ops) != 2:
                self.err(f"{mnem} requires 2 operands", line)
                return
            dst, src = ops
            if isinstance(dst, Imm):
                self.err("Immediate value cannot be a destination", line)
            elif _is_memory(dst, self.symtab) and _is_memory(src, self.symtab):
                self.err("Memory to memory operation not allowed", line)
            a, b = _operand_size(dst, self.symtab), _operand_size(src, self.symtab)
            if a is not None and b is not None and a != b:
                self.err(f"Incompatible operand sizes: {a} vs {b}", line)
            elif isinstance(dst, Reg) and isinstance(src, Imm) and not _fits(src.value, reg_width(dst.name)):
                self.err(f"Immediate value {src.raw} does not fit in {reg_width(dst.name)}-bit register {dst.name}", line)
        elif mnem in isa.ONE_OPERAND:
            if len(ops) != 1:
                self.err(f"{mnem} requires 1 operand", line)
            elif isinstance(ops[0], Imm):
                self.err("Operand cannot be an immediate value", line)
        elif mnem == "INT":
            if len(ops) != 1 or not isinstance(ops[0], Imm):
                self.err("INT requires an immediate interrupt number", line)

def validate(
    program: Program,
    source: str,
    *,
    index: Optional[LineIndex] = None,
) -> Tuple[List[CompilerError], SymbolTable]:
    """
    Validación en dos recorridos:
      1) tabla de símbolos (variables en DATA, etiquetas en CODE, constantes EQU en cualquier parte)
      2) reglas: ubicación por segmento, lista de instrucciones permitidas, existencia de
         etiquetas/símbolos y formato de literales

    Devuelve (errores, tabla). Las líneas se calculan desde los spans sobre 'source';
    'index' permite reutilizar un LineIndex ya construido para ese texto.
    """
    if index is None:
        index = LineIndex(source)
    symtab, errors = collect_symbols(program, index)
    chk = _Checker(symtab)

    for node in program:
        stmt = statement_of(node)
        if stmt is None:
            continue
        line = index.span_line(node.span)
        if isinstance(stmt, Segment):
            chk.segment = classify_segment(stmt.name)
        elif isinstance(stmt, SegmentEnd):
            chk.segment = "None"
        elif isinstance(stmt, (Variable, Data)):
            chk.data(stmt.directive, stmt.value, line)
        elif isinstance(stmt, Constant):
            for imm in _literals(stmt.value):
                problem = literal_problem(imm.raw)
                if problem:
                    chk.err(problem, line)
        elif isinstance(stmt, Instruction):
            chk.instruction(stmt, line)
        elif isinstance(stmt, Label):
            if chk.segment == "Data":
                chk.err(f"Label '{stmt.name}' not allowed in data segment", line)
        elif isinstance(stmt, End):
            if stmt.label is not None:
                info = symtab.get(stmt.label)
                if info is None or info.kind != "Label":
                    chk.err(f"Unidentified element '{stmt.label}'", line)

    errors.extend(chk.errors)
    logger.debug("validate: %d symbols, %d errors", len(symtab), len(errors))
    return errors, symtab
