# errorgen/compiler/cli.py
"""Command line entry point.

Exit codes follow the compiler convention:
    0  success
    1  success with warnings
    2  errors (declaration errors, unreadable files, stale output under --check)
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Optional

from errorgen.compiler.config import ConfigError, load_config
from errorgen.compiler.pipeline import CompileOptions, compile_file, default_output_path, write_module
from errorgen.internals.version import print_banner


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="errorgen",
                                 description="Generate Python error enumerations from .errors files")
    ap.add_argument("sources", nargs="*", metavar="SOURCE", help="Declaration files (.errors)")
    ap.add_argument("-o", "--out", metavar="OUT",
                    help="Output module path (single source only; default: <stem>_errors.py)")
    ap.add_argument("--out-dir", metavar="DIR", help="Directory for generated modules")
    ap.add_argument("--check", action="store_true",
                    help="Do not write; fail if a generated module is missing or out of date")
    ap.add_argument("--stdout", action="store_true", help="Print generated code instead of writing it")
    ap.add_argument("--dump-parse", action="store_true", help="Print raw Lark tree")
    ap.add_argument("--dump-ir", action="store_true", help="Print the error descriptors")
    ap.add_argument("--lenient-placeholders", action="store_true",
                    help="Keep empty `{}` placeholders as literal text instead of rejecting them")
    ap.add_argument("--runtime-module", metavar="M",
                    help="Module the generated code imports its runtime support from")
    ap.add_argument("--timings", action="store_true", help="Print per-stage timings to stderr")
    ap.add_argument("--version", action="store_true", help="Print version information and exit")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    if args.version:
        print_banner()
        return 0

    if not args.sources:
        print("error: at least one source file is required", file=sys.stderr)
        return 2
    if args.out and len(args.sources) > 1:
        print("error: -o/--out requires exactly one source file", file=sys.stderr)
        return 2

    try:
        config = load_config()
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    options = CompileOptions(
        strict_placeholders=config.strict_placeholders and not args.lenient_placeholders,
        runtime_module=args.runtime_module or config.runtime_module,
        dump_parse=args.dump_parse,
        dump_ir=args.dump_ir,
        verbose=args.timings,
    )
    out_dir = Path(args.out_dir) if args.out_dir else config.out_dir

    status = 0
    for source in args.sources:
        status = max(status, _run_one(Path(source), args, options, out_dir))
    return status


def _run_one(src_path: Path, args: argparse.Namespace, options: CompileOptions,
             out_dir: Optional[Path]) -> int:
    try:
        result = compile_file(src_path, options=options, write=False)
    except OSError as e:
        print(f"error: cannot read {src_path}: {e}", file=sys.stderr)
        return 2

    if result.reporter.items:
        result.reporter.print()
    if not result.ok:
        return 2

    if args.stdout:
        sys.stdout.write(result.code)
        return result.exit_code

    out_path = Path(args.out) if args.out else default_output_path(src_path, out_dir)
    if args.check:
        try:
            current = out_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            current = None
        if current != result.code:
            print(f"error: {out_path} is out of date with {src_path}", file=sys.stderr)
            return 2
        return result.exit_code

    try:
        write_module(result.code, out_path)
    except OSError as e:
        print(f"error: cannot write {out_path}: {e}", file=sys.stderr)
        return 2
    print(f"Generated {out_path}")
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
