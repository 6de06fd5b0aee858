"""Symbol layout, label resolution and intermediate code generation."""

from .symbols import SymbolTable, SymbolEntry
from .labels import LabelTable, LabelEntry
from .codegen import CodeGenerator, GenerationContext, Diagnostic

__all__ = [
    'SymbolTable', 'SymbolEntry',
    'LabelTable', 'LabelEntry',
    'CodeGenerator', 'GenerationContext', 'Diagnostic',
]
