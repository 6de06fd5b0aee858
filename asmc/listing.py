"""
Text listings of the generated tables.

The same text is used for the console (--tables) and for the dump file
(--dump). Instruction parameters are shown in the legacy five-slot row form
so the dump matches the persisted intermediate format.
"""

from pathlib import Path
from typing import List

from .codegen import GenerationContext
from .vm.memory import MemoryImage, REGISTER_NAMES


RULE = '=' * 60


def format_symbol_table(ctx: GenerationContext) -> str:
    lines = ["SYMBOL TABLE", RULE, f"{'Name':<12}{'Address':>8}{'Size':>6}"]
    for entry in ctx.symbols:
        lines.append(f"{entry.name:<12}{entry.address:>8}{entry.size:>6}")
    return '\n'.join(lines)


def format_label_table(ctx: GenerationContext) -> str:
    lines = ["LABEL TABLE", RULE, f"{'Name':<12}{'Instr':>8}"]
    for entry in ctx.labels:
        lines.append(f"{entry.name:<12}{entry.instruction_no:>8}")
    return '\n'.join(lines)


def format_instruction_table(ctx: GenerationContext) -> str:
    lines = ["INTERMEDIATE TABLE", RULE, f"{'No':>4}  {'Opcode':<10}{'Code':>4}  Parameters"]
    for instr in ctx.instructions:
        row = ' '.join(f"{value:>4}" for value in instr.encode())
        lines.append(f"{instr.number:>4}  {instr.opcode.name:<10}{int(instr.opcode):>4}  {row}")
    return '\n'.join(lines)


def format_memory(memory: MemoryImage) -> str:
    """Registers by name, then the used data cells."""
    lines = ["MEMORY", RULE]
    lines.append('  '.join(f"{name}={value}" for name, value in memory.registers().items()))
    cells: List[str] = []
    for address in range(len(REGISTER_NAMES), memory.cursor):
        cells.append(f"[{address}]={memory.cells[address]}")
    for i in range(0, len(cells), 8):
        lines.append('  '.join(cells[i:i + 8]))
    return '\n'.join(lines)


def format_tables(ctx: GenerationContext) -> str:
    sections = [
        format_symbol_table(ctx),
        format_label_table(ctx),
        format_instruction_table(ctx),
        format_memory(ctx.memory),
    ]
    return '\n\n'.join(sections) + '\n'


def dump_tables(ctx: GenerationContext, path) -> Path:
    """Write all tables to `path` and return it."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(format_tables(ctx))
    return path
