from __future__ import annotations
from typing import TYPE_CHECKING, List
from .utils import to_hex16

if TYPE_CHECKING:
    from .assembler import AnalysisResult

def to_listing_lines(result: "AnalysisResult") -> List[str]:
    """Listado: línea, estado, dirección, código máquina y fuente (mensaje si hay error)."""
    out = [f"{'LINE':>4}  {'ST':<3}  {'ADDR':<5}  {'CODE':<18}  SOURCE"]
    for la in result.line_analysis:
        status = "OK" if la.is_correct else "ERR"
        addr = to_hex16(la.address) if la.address is not None else ""
        row = f"{la.line_number:>4}  {status:<3}  {addr:<5}  {la.machine_code or '':<18}  {la.raw_instruction_text}"
        if la.error_message:
            row += f"    <- {la.error_message}"
        out.append(row.rstrip())
    return out

def to_symbol_lines(result: "AnalysisResult") -> List[str]:
    out = [f"{'NAME':<16}  {'KIND':<8}  {'TYPE':<5}  {'SEGMENT':<7}  {'OFFSET':<6}  LINE"]
    for s in result.symbol_table:
        offset = to_hex16(s.offset) if s.offset is not None else "-"
        row = f"{s.name:<16}  {s.kind:<8}  {s.data_type:<5}  {s.segment:<7}  {offset:<6}  {s.definition_line}"
        if s.value is not None:
            row += f"  = {s.value}"
        out.append(row)
    return out

def write_listing(result: "AnalysisResult", path: str) -> None:
    lines = to_listing_lines(result) + [""] + to_symbol_lines(result)
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
