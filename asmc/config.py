"""Capacities of the generator tables and the machine memory."""

from dataclasses import dataclass


# Addresses 0-7 hold the registers AX..HX, declared data starts right after.
REGISTER_COUNT = 8
VARIABLE_MEMORY_START = REGISTER_COUNT


@dataclass(frozen=True)
class Limits:
    """Fixed table capacities. Exceeding any of them is fatal."""
    symbols: int = 25
    instructions: int = 50
    labels: int = 50
    stack_depth: int = 100
    memory_size: int = 100

    def __post_init__(self):
        if self.memory_size <= VARIABLE_MEMORY_START:
            raise ValueError(
                f"memory_size must leave room past the {REGISTER_COUNT} registers"
            )


DEFAULT_LIMITS = Limits()
