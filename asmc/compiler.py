"""
Main assembly compiler.

Coordinates lexing, code generation, table listings and execution.
"""

import sys
from typing import Iterable, List, Optional
from pathlib import Path

from .config import Limits, DEFAULT_LIMITS
from .errors import AsmError, MachineError
from .lexer import Lexer
from .codegen import CodeGenerator, GenerationContext
from .listing import dump_tables, format_tables, format_memory
from .vm import VirtualMachine, ExecutionResult
from .vm.machine import iter_reader


SOURCE_SUFFIX = '.asm'


class AsmCompiler:
    """Main assembly compiler class."""

    def __init__(self, verbose: bool = False, warn_as_error: bool = False,
                 limits: Limits = DEFAULT_LIMITS):
        self.verbose = verbose
        self.warn_as_error = warn_as_error  # Promote diagnostics to errors
        self.limits = limits
        self.warnings: List[str] = []

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[asmc] {message}", file=sys.stderr)

    def get_warnings(self) -> List[str]:
        """Get all warnings generated during compilation."""
        return self.warnings.copy()

    def compile_string(self, source: str, filename: str = "<input>") -> GenerationContext:
        """
        Compile assembly source to an intermediate instruction table.

        Raises:
            SyntaxError: the source has no START: section
            CapacityError: a fixed-capacity table overflowed
            CompilationError: a diagnostic in warn-as-error mode
        """
        self.warnings = []

        self.log("Lexing...")
        program = Lexer(source, filename).tokenize()
        self.log(f"  {len(program.declarations)} declaration line(s), "
                 f"{len(program.instructions)} instruction line(s)")

        self.log("Generating code...")
        codegen = CodeGenerator(self.limits, warn_as_error=self.warn_as_error,
                                verbose=self.verbose)
        ctx = codegen.generate(program)

        # Already printed to stderr by the generator
        codegen_warnings = codegen.get_warnings()
        if codegen_warnings:
            self.log(f"  {len(codegen_warnings)} code generation warning(s) (see stderr)")
        for diagnostic in codegen_warnings:
            location = f"{filename}:{diagnostic.line}: " if diagnostic.line else f"{filename}: "
            self.warnings.append(f"{diagnostic.code}: {location}{diagnostic.message}")

        return ctx

    def compile_file(self, input_path: str) -> Optional[GenerationContext]:
        """
        Compile an .asm source file.

        Args:
            input_path: Path to .asm source file

        Returns:
            The generation context, or None if compilation failed
        """
        suffix = Path(input_path).suffix
        if suffix != SOURCE_SUFFIX:
            print(f"Error: File extension expected {SOURCE_SUFFIX}, found {suffix or 'none'}",
                  file=sys.stderr)
            return None

        try:
            self.log(f"Reading {input_path}...")
            with open(input_path, 'r', encoding='utf-8') as f:
                source = f.read()

            ctx = self.compile_string(source, str(input_path))
            self.log(f"Compilation finished: {len(ctx.instructions)} instructions, "
                     f"{len(self.warnings)} warning(s)")
            return ctx

        except FileNotFoundError:
            print(f"Error: File not found: {input_path}", file=sys.stderr)
            return None
        except SyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return None
        except AsmError as e:
            print(f"Compilation error: {e}", file=sys.stderr)
            if self.verbose:
                import traceback
                traceback.print_exc()
            return None
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: cannot read {input_path}: {e}", file=sys.stderr)
            if self.verbose:
                import traceback
                traceback.print_exc()
            return None

    def run(self, ctx: GenerationContext, inputs: Iterable = None,
            echo: bool = False) -> ExecutionResult:
        """Execute a compiled program. READ values come from `inputs`, else stdin."""
        self.log("Executing program...")
        read = iter_reader(inputs) if inputs is not None else None
        write = print if echo else None
        vm = VirtualMachine(ctx.instructions, ctx.memory, read=read, write=write,
                            verbose=self.verbose)
        result = vm.run()
        self.log(f"Halted after {result.steps} step(s)")
        return result


def main():
    """Command-line interface for the compiler."""
    import argparse

    parser = argparse.ArgumentParser(
        description='asmc - Compile assembly source to intermediate code and run it'
    )
    parser.add_argument('input', help='Input .asm source file')
    parser.add_argument('--tables', action='store_true',
                       help='Print the symbol, label and instruction tables')
    parser.add_argument('-d', '--dump', metavar='PATH',
                       help='Write the generated tables to PATH')
    parser.add_argument('--no-run', action='store_true',
                       help='Stop after code generation')
    parser.add_argument('--strict', action='store_true',
                       help='Treat diagnostics as errors')
    parser.add_argument('--memory-size', type=int, default=DEFAULT_LIMITS.memory_size,
                       help=f'Memory cells including registers (default: {DEFAULT_LIMITS.memory_size})')
    parser.add_argument('--verbose', action='store_true',
                       help='Verbose output')

    args = parser.parse_args()

    try:
        limits = Limits(memory_size=args.memory_size)
    except ValueError as e:
        parser.error(str(e))

    compiler = AsmCompiler(verbose=args.verbose, warn_as_error=args.strict, limits=limits)
    ctx = compiler.compile_file(args.input)
    if ctx is None:
        sys.exit(1)

    if args.tables:
        print(format_tables(ctx))
    if args.dump:
        compiler.log(f"Writing {args.dump}...")
        dump_tables(ctx, args.dump)

    if args.no_run:
        sys.exit(0)

    try:
        result = compiler.run(ctx, echo=True)
    except MachineError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.tables:
        print()
        print(format_memory(result.memory))

    sys.exit(0)


if __name__ == '__main__':
    main()
