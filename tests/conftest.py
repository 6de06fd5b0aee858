"""
Test fixtures and helpers for asmc tests.

The key abstractions are:

- build(): compile source text and return the generation context
- ProgramAssertion / AssertProgram(): fluent API for testing compilation and
  execution results
"""

import pytest
import sys
from typing import List, Optional
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from asmc.compiler import AsmCompiler
from asmc.codegen import GenerationContext
from asmc.vm import Opcode, Slot


def program(*lines: str, declarations: List[str] = None) -> str:
    """Assemble source text: declarations, START:, then instruction lines."""
    parts = list(declarations or [])
    parts.append("START:")
    parts.extend(lines)
    return '\n'.join(parts) + '\n'


def build(source: str, **kwargs) -> GenerationContext:
    """Compile source text with a fresh compiler."""
    return AsmCompiler(**kwargs).compile_string(source)


def rows(ctx: GenerationContext) -> List[tuple]:
    """(number, opcode, params) triples for compact comparisons."""
    return [(i.number, i.opcode, list(i.params)) for i in ctx.instructions]


class ProgramAssertion:
    """
    Fluent assertion helper for testing whole programs.

    Usage:
        AssertProgram('PRINT x', 'END').declaring('CONST x 5').outputs("5")
        AssertProgram('JUMP nowhere', 'END').with_warnings('ASM0401').compiles()
    """

    def __init__(self, *lines: str):
        self.lines = list(lines)
        self.declarations: List[str] = []
        self.input_queue: List[str] = []
        self.expected_warnings: Optional[List[str]] = None
        self.expect_no_warnings: bool = False

    def declaring(self, *declarations: str) -> 'ProgramAssertion':
        self.declarations.extend(declarations)
        return self

    def with_input(self, *inputs) -> 'ProgramAssertion':
        """Queue input for READ."""
        self.input_queue.extend(str(i) for i in inputs)
        return self

    def with_warnings(self, *codes: str) -> 'ProgramAssertion':
        self.expected_warnings = list(codes)
        return self

    def without_warnings(self) -> 'ProgramAssertion':
        self.expect_no_warnings = True
        return self

    def _compile(self):
        compiler = AsmCompiler()
        ctx = compiler.compile_string(program(*self.lines, declarations=self.declarations))
        self._check_warnings(compiler.get_warnings())
        return compiler, ctx

    def compiles(self) -> GenerationContext:
        """Assert that the program compiles and return its context."""
        _, ctx = self._compile()
        return ctx

    def generates(self, expected: List[tuple]) -> GenerationContext:
        """Assert the exact (number, opcode, params) instruction rows."""
        _, ctx = self._compile()
        assert rows(ctx) == expected, f"Expected {expected}, got {rows(ctx)}"
        return ctx

    def outputs(self, expected: str) -> None:
        """Assert the PRINT output, one value per line."""
        compiler, ctx = self._compile()
        result = compiler.run(ctx, inputs=self.input_queue)
        actual = result.text
        if not expected.endswith('\n'):
            actual = actual.rstrip('\n')
        assert actual == expected, f"Expected output {expected!r}, got {actual!r}"

    def _check_warnings(self, warnings: List[str]) -> None:
        if self.expect_no_warnings:
            assert not warnings, f"Expected no warnings, got: {warnings}"
        elif self.expected_warnings is not None:
            for code in self.expected_warnings:
                assert any(w.startswith(code) for w in warnings), \
                    f"Expected warning {code}, got {warnings}"


def AssertProgram(*lines: str) -> ProgramAssertion:
    return ProgramAssertion(*lines)


@pytest.fixture
def compiler():
    """Fixture for a default compiler."""
    return AsmCompiler()


@pytest.fixture
def strict_compiler():
    """Fixture for a compiler that treats diagnostics as errors."""
    return AsmCompiler(warn_as_error=True)


SIGN_PROGRAM = program(
    "READ x",
    "IF x GT 0",
    "PRINT x",
    "ELSE",
    "PRINT 0",
    "ENDIF",
    "END",
    declarations=["DATA x"],
)

