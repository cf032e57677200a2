from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from mlc.ast_dump import ast_to_debug_json
from mlc.ast_format import format_expr
from mlc.ast_load import load_program_file
from mlc.codegen import emit_program
from mlc.labels import CompilationSession


STOP_PHASES = ["load", "codegen"]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mlc",
        description="Emit x86-64 assembly for an expression tree (YAML or JSON).",
    )
    parser.add_argument("input", help="Input expression tree (.yaml or .json)")
    parser.add_argument("-o", "--output", help="Output assembly file path (default: stdout)")
    parser.add_argument(
        "--stop-after",
        choices=STOP_PHASES,
        default="codegen",
        help="Stop after a compiler phase for debugging",
    )
    parser.add_argument("--print-ast", action="store_true", help="Print the loaded tree in source syntax")
    parser.add_argument("--print-ast-json", action="store_true", help="Print the loaded tree as JSON")
    parser.add_argument("--print-asm", action="store_true", help="Also print emitted assembly to stdout")
    args = parser.parse_args(argv)

    try:
        program = load_program_file(Path(args.input))
        if args.print_ast:
            print(format_expr(program))
        if args.print_ast_json:
            print(ast_to_debug_json(program))
        if args.stop_after == "load":
            return 0

        asm = emit_program(program, CompilationSession())
        if args.output:
            Path(args.output).write_text(asm, encoding="utf-8")
        if args.print_asm or not args.output:
            print(asm, end="" if asm.endswith("\n") else "\n")
        return 0
    except (ValueError, NotImplementedError, OSError, yaml.YAMLError) as error:
        print(f"mlc: {error}", file=sys.stderr)
        return 1
