"""
Exception hierarchy for the assembler and virtual machine.

Fatal conditions raise one of these. Recoverable problems during code
generation are reported as coded warnings instead (see CodeGenerator._warn).
"""


class AsmError(Exception):
    """Base exception for asmc errors."""
    pass


class CapacityError(AsmError):
    """A fixed-capacity table, the memory image or the nesting stack is full."""
    pass


class CompilationError(AsmError):
    """A diagnostic promoted to a hard error (warn-as-error mode)."""

    def __init__(self, code: str, message: str, line: int = None):
        self.code = code
        self.line = line
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{code}: {location}{message}")


class MachineError(AsmError):
    """Runtime fault inside the virtual machine."""

    def __init__(self, message: str, instruction_no: int = None):
        self.instruction_no = instruction_no
        if instruction_no is not None:
            message = f"instruction {instruction_no}: {message}"
        super().__init__(message)
