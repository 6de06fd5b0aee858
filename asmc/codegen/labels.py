"""Label table - label name to instruction number."""

from dataclasses import dataclass
from typing import List, Optional

from ..errors import CapacityError


@dataclass(frozen=True)
class LabelEntry:
    name: str
    instruction_no: int


class LabelTable:
    """Labels in the order they were seen. Duplicates resolve to the first."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.entries: List[LabelEntry] = []

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def add(self, name: str, instruction_no: int) -> LabelEntry:
        if len(self.entries) >= self.capacity:
            raise CapacityError(f"label table exhausted: at most {self.capacity} labels")
        entry = LabelEntry(name, instruction_no)
        self.entries.append(entry)
        return entry

    def lookup(self, name: str) -> Optional[LabelEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None
