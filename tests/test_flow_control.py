"""
Tests for IF/ELSE/ENDIF backpatching.

These tests verify that the code generator correctly handles:
- IF with ELSE
- IF without ELSE
- Nested blocks in both branches
- Unbalanced ELSE/ENDIF and unclosed blocks
"""

import pytest

from .conftest import AssertProgram, Opcode, Slot, build, program


def by_number(ctx):
    return {i.number: i for i in ctx.instructions}


class TestIfElse:
    """IF ... ELSE ... ENDIF"""

    def test_if_else_targets(self):
        ctx = AssertProgram(
            "IF a EQ b",   # 1
            "PRINT a",     # 2
            "ELSE",        # 3
            "PRINT b",     # 4
            "ENDIF",
            "PRINT AX",    # 5
            "END",
        ).declaring("DATA a", "DATA b").without_warnings().compiles()

        code = by_number(ctx)
        assert code[1].params == [8, 9, Opcode.EQ, 4]
        assert code[3].opcode == Opcode.JUMP
        assert code[3].params == [5]

    def test_false_target_is_first_else_instruction(self):
        """The IF falls to the instruction right after the ELSE jump."""
        ctx = build(program("IF AX LT BX", "PRINT AX", "PRINT BX", "ELSE", "PRINT CX", "ENDIF", "END"))
        code = by_number(ctx)
        else_no = 4
        assert code[else_no].opcode == Opcode.JUMP
        assert code[1].target == else_no + 1
        assert code[else_no].target == 6

    def test_empty_else_branch(self):
        ctx = build(program("IF AX GT BX", "PRINT AX", "ELSE", "ENDIF", "END"))
        code = by_number(ctx)
        assert code[1].target == 4
        assert code[3].target == 4

    def test_comparison_opcodes(self):
        for name in ("EQ", "LT", "GT", "LTEQ", "GTEQ"):
            ctx = build(program(f"IF AX {name} BX", "ENDIF", "END"))
            assert ctx.instructions[0].params[2] == Opcode[name]

    def test_then_keyword_accepted(self):
        AssertProgram("IF AX EQ BX THEN", "ENDIF", "END").without_warnings() \
            .generates([(1, Opcode.IF, [0, 1, Opcode.EQ, 2])])


class TestIfWithoutElse:
    """A lone IF falls past its ENDIF."""

    def test_false_target_after_endif(self):
        ctx = AssertProgram("IF AX EQ BX", "PRINT AX", "ENDIF", "PRINT BX", "END") \
            .without_warnings().compiles()
        code = by_number(ctx)
        assert code[1].target == 3
        assert code[3].opcode == Opcode.PRINT

    def test_operands_untouched(self):
        """Backpatching writes only the target slot."""
        ctx = build(program("IF CX GTEQ DX", "ENDIF", "END"))
        assert ctx.instructions[0].params == [2, 3, Opcode.GTEQ, 2]

    def test_if_at_end_of_program(self):
        ctx = build(program("IF AX EQ BX", "PRINT AX", "ENDIF", "END"))
        assert ctx.instructions[0].target == 3
        assert ctx.unresolved == []


class TestNesting:
    """Blocks nested inside either branch."""

    def test_nested_in_true_branch(self):
        ctx = AssertProgram(
            "IF AX EQ BX",    # 1
            "IF CX EQ DX",    # 2
            "PRINT CX",       # 3
            "ELSE",           # 4
            "PRINT DX",       # 5
            "ENDIF",
            "ELSE",           # 6
            "PRINT BX",       # 7
            "ENDIF",
            "END",
        ).without_warnings().compiles()
        code = by_number(ctx)
        assert code[2].target == 5
        assert code[4].target == 6
        assert code[1].target == 7
        assert code[6].target == 8

    def test_nested_in_else_branch_without_else(self):
        ctx = build(program(
            "IF AX EQ BX",    # 1
            "PRINT AX",       # 2
            "ELSE",           # 3
            "IF CX EQ DX",    # 4
            "PRINT CX",       # 5
            "ENDIF",
            "ENDIF",
            "PRINT DX",       # 6
            "END",
        ))
        code = by_number(ctx)
        assert code[4].target == 6
        assert code[3].target == 6
        assert code[1].target == 4

    def test_deep_nesting_fully_resolved(self):
        depth = 10
        lines = ["IF AX LT BX"] * depth + ["PRINT AX"]
        for _ in range(depth):
            lines += ["ELSE", "PRINT BX", "ENDIF"]
        ctx = AssertProgram(*lines, "END").without_warnings().compiles()
        assert ctx.unresolved == []
        assert ctx.stack == []

    def test_stack_tracks_open_blocks(self):
        ctx = build(program("IF AX EQ BX", "IF AX EQ BX", "ELSE", "END"))
        assert ctx.stack == [1, 2, 3]


class TestUnbalanced:
    """Diagnostics for unmatched constructs."""

    def test_endif_without_if(self):
        AssertProgram("PRINT AX", "ENDIF", "PRINT BX", "END") \
            .with_warnings("ASM0501") \
            .generates([(1, Opcode.PRINT, [0]), (2, Opcode.PRINT, [1])])

    def test_else_without_if(self):
        AssertProgram("ELSE", "PRINT AX", "END") \
            .with_warnings("ASM0502") \
            .generates([(1, Opcode.PRINT, [0])])

    def test_double_else(self):
        ctx = AssertProgram("IF AX EQ BX", "ELSE", "ELSE", "ENDIF", "END") \
            .with_warnings("ASM0502").compiles()
        assert len(ctx.instructions) == 2
        assert ctx.unresolved == []

    def test_unclosed_if_reported(self):
        ctx = AssertProgram("IF AX EQ BX", "PRINT AX", "END") \
            .with_warnings("ASM0503").compiles()
        assert ctx.instructions[0].target is Slot.WILDCARD

    def test_malformed_if_still_pairs(self):
        """A broken IF keeps its place on the stack so the ENDIF closes it."""
        ctx = AssertProgram("IF AX BX", "PRINT AX", "ENDIF", "END") \
            .with_warnings("ASM0202").compiles()
        assert ctx.instructions[0].params == [Slot.INVALID, Slot.INVALID, Slot.INVALID, 3]
        assert ctx.stack == []

    def test_unknown_comparison(self):
        ctx = AssertProgram("IF AX NE BX", "ENDIF", "END") \
            .with_warnings("ASM0303").compiles()
        assert ctx.instructions[0].params[2] is Slot.INVALID
