"""Intermediate instruction set and the virtual machine that runs it."""

from .opcodes import Opcode, OpcodeTable, Instruction, Slot
from .memory import MemoryImage, is_register, register_address
from .machine import VirtualMachine, ExecutionResult, execute

__all__ = [
    'Opcode', 'OpcodeTable', 'Instruction', 'Slot',
    'MemoryImage', 'is_register', 'register_address',
    'VirtualMachine', 'ExecutionResult', 'execute',
]
