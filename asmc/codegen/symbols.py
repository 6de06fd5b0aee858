"""
Symbol table - memory layout of declared variables, arrays and constants.

Addresses are handed out as a running sum in declaration order: each entry
starts where the previous one ends, constants (size 0) taking one cell.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from ..errors import CapacityError
from ..vm.memory import MemoryImage


CONST_SIZE = 0

IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
DECLARED_NAME = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)(?:\[(\d+)\])?$')
OPERAND = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)(?:\[(\d+)\])?(?:\*.*)?$')
LITERAL = re.compile(r'^[+-]?\d+$')


@dataclass(frozen=True)
class SymbolEntry:
    """A declared name and where it lives."""
    name: str
    address: int
    size: int

    @property
    def is_constant(self) -> bool:
        return self.size == CONST_SIZE

    @property
    def cells(self) -> int:
        return max(self.size, 1)


class SymbolTable:
    """Ordered symbol entries with a fixed capacity."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.entries: List[SymbolEntry] = []
        self.declared = 0  # entries counted against capacity

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def lookup(self, name: str) -> Optional[SymbolEntry]:
        """First entry with exactly this name."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def _declare(self, name: str, size: int, memory: MemoryImage) -> SymbolEntry:
        if self.declared >= self.capacity:
            raise CapacityError(
                f"declaration table exhausted: at most {self.capacity} symbols"
            )
        entry = self._append(name, size, memory)
        self.declared += 1
        return entry

    def _append(self, name: str, size: int, memory: MemoryImage) -> SymbolEntry:
        address = memory.allocate(max(size, 1))
        entry = SymbolEntry(name, address, size)
        self.entries.append(entry)
        return entry

    def declare_const(self, tokens: List[str], memory: MemoryImage) -> SymbolEntry:
        """CONST name value  /  CONST name = value"""
        if len(tokens) < 3:
            raise ValueError("CONST requires a name and a value")
        name, value = tokens[1], tokens[-1]
        if not IDENTIFIER.match(name):
            raise ValueError(f"invalid constant name '{name}'")
        if not LITERAL.match(value):
            raise ValueError(f"constant '{name}' needs an integer value, got '{value}'")
        entry = self._declare(name, CONST_SIZE, memory)
        memory.cells[entry.address] = int(value)
        return entry

    def declare_data(self, tokens: List[str], memory: MemoryImage) -> SymbolEntry:
        """DATA name  /  DATA name[N]"""
        if len(tokens) < 2:
            raise ValueError("DATA requires a name")
        match = DECLARED_NAME.match(tokens[1])
        if not match:
            raise ValueError(f"invalid data declaration '{tokens[1]}'")
        name, size = match.group(1), match.group(2)
        size = int(size) if size else 1
        if size < 1:
            raise ValueError(f"array '{name}' must have at least one element")
        return self._declare(name, size, memory)

    def intern_literal(self, text: str, memory: MemoryImage) -> SymbolEntry:
        """Anonymous constant for a numeric operand, shared by equal literals.

        Pooled literals are bounded by memory, not by the symbol capacity.
        """
        value = int(text)
        name = str(value)
        entry = self.lookup(name)
        if entry is None:
            entry = self._append(name, CONST_SIZE, memory)
            memory.cells[entry.address] = value
        return entry
