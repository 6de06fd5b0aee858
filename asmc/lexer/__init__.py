"""Assembly source lexer."""

from .lexer import Lexer, SourceLine, SourceProgram, START_SENTINEL

__all__ = ['Lexer', 'SourceLine', 'SourceProgram', 'START_SENTINEL']
