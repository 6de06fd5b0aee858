"""
Source lexer - splits assembly source into declaration and instruction lines.

Handles:
- The declarations section (CONST / DATA lines)
- The START: sentinel that opens the instruction section
- Instruction and label lines
- Blank lines (dropped)
"""

from dataclasses import dataclass, field
from typing import List


START_SENTINEL = 'START:'
LABEL_TERMINATOR = ':'


@dataclass
class SourceLine:
    """One non-blank source line."""
    number: int        # 1-based physical line in the file
    text: str          # stripped line text
    tokens: List[str]  # whitespace-separated tokens

    @property
    def is_label(self) -> bool:
        return self.text.endswith(LABEL_TERMINATOR)

    @property
    def head(self) -> str:
        return self.tokens[0] if self.tokens else ''

    @property
    def rest(self) -> str:
        """Everything after the first token."""
        parts = self.text.split(None, 1)
        return parts[1] if len(parts) > 1 else ''

    def __repr__(self):
        return f"SourceLine({self.number}, {self.text!r})"


@dataclass
class SourceProgram:
    """Lexed program: declaration lines then instruction lines."""
    declarations: List[SourceLine] = field(default_factory=list)
    instructions: List[SourceLine] = field(default_factory=list)


class Lexer:
    """Tokenizes assembly source into lines."""

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def error(self, line: int, message: str):
        """Raise a lexer error with location information."""
        raise SyntaxError(f"{self.filename}:{line}: {message}")

    def tokenize(self) -> SourceProgram:
        """Split the source at the START: sentinel."""
        program = SourceProgram()
        target = program.declarations
        seen_start = False

        for number, raw in enumerate(self.source.splitlines(), start=1):
            text = raw.strip()
            if not text:
                continue
            if not seen_start and text == START_SENTINEL:
                seen_start = True
                target = program.instructions
                continue
            target.append(SourceLine(number, text, text.split()))

        if not seen_start:
            self.error(1, f"missing '{START_SENTINEL}' line before the instructions")

        return program
