"""
Flat memory image shared by the generator (initial values) and the VM.

Addresses 0-7 are the registers AX..HX; declared data follows from
VARIABLE_MEMORY_START on.
"""

from typing import List

from ..config import REGISTER_COUNT, VARIABLE_MEMORY_START
from ..errors import CapacityError, MachineError


REGISTER_NAMES = [f"{chr(ord('A') + i)}X" for i in range(REGISTER_COUNT)]


def is_register(name: str) -> bool:
    """True for the two-letter register names AX..HX."""
    return len(name) == 2 and name[1] == 'X' and 'A' <= name[0] <= 'H'


def register_address(name: str) -> int:
    return ord(name[0]) - ord('A')


class MemoryImage:
    """Bounded integer memory with an allocation cursor."""

    def __init__(self, size: int):
        self.size = size
        self.cells: List[int] = [0] * size
        self.cursor = VARIABLE_MEMORY_START

    def allocate(self, count: int) -> int:
        """Reserve `count` cells at the cursor and return their base address."""
        base = self.cursor
        if base + count > self.size:
            raise CapacityError(
                f"memory exhausted: need {count} cell(s) at address {base}, "
                f"memory size is {self.size}"
            )
        self.cursor += count
        return base

    def check(self, address, instruction_no: int = None) -> int:
        if not isinstance(address, int) or not 0 <= address < self.size:
            raise MachineError(f"address {address!r} out of range 0..{self.size - 1}",
                               instruction_no)
        return address

    def load(self, address: int, instruction_no: int = None) -> int:
        return self.cells[self.check(address, instruction_no)]

    def store(self, address: int, value: int, instruction_no: int = None):
        self.cells[self.check(address, instruction_no)] = value

    def copy(self) -> 'MemoryImage':
        image = MemoryImage(self.size)
        image.cells = list(self.cells)
        image.cursor = self.cursor
        return image

    def registers(self) -> dict:
        return {name: self.cells[i] for i, name in enumerate(REGISTER_NAMES)}

    def __len__(self):
        return self.size

    def __getitem__(self, address: int) -> int:
        return self.load(address)
