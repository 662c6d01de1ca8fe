# errorgen/compiler/pipeline.py
"""Compilation pipeline with timing and per-stage results.

One declaration file goes through three stages:

- parse: lark tree from the source text
- build: validated ModuleDescriptor (diagnostics go to the reporter)
- generate: Python source, only when no error has been reported

Any error suppresses all output for the file; warnings never do.
"""
from __future__ import annotations
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from lark import UnexpectedInput

from errorgen.backend.codegen import DEFAULT_RUNTIME_MODULE, generate_module
from errorgen.internals.parse_errors import handle_parse_exception
from errorgen.internals.parser import parse_declarations
from errorgen.internals.report import Reporter
from errorgen.semantics.descriptor import DescriptorBuilder
from errorgen.semantics.ir import ModuleDescriptor


@dataclass
class CompileOptions:
    strict_placeholders: bool = True
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    dump_parse: bool = False
    dump_ir: bool = False
    verbose: bool = False


@dataclass
class StageResult:
    """Result of executing a single stage."""
    name: str
    duration_ms: float
    success: bool


@dataclass
class CompileResult:
    """Outcome of compiling one declaration file.

    `code` is None whenever the reporter holds at least one error.
    """
    reporter: Reporter
    code: Optional[str] = None
    module: Optional[ModuleDescriptor] = None
    stages: List[StageResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.code is not None

    @property
    def exit_code(self) -> int:
        if self.reporter.has_errors:
            return 2
        if self.reporter.has_warnings:
            return 1
        return 0


class CompilePipeline:
    """Runs the stages for one source text, recording timings."""

    def __init__(self, src: str, filename: str, options: CompileOptions) -> None:
        self.src = src
        self.filename = filename
        self.options = options
        self.result = CompileResult(reporter=Reporter(source=src, filename=filename))

    def _stage(self, name: str, fn: Callable[[], Any]) -> Any:
        start = time.perf_counter()
        success = False
        try:
            value = fn()
            success = True
            return value
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self.result.stages.append(StageResult(name, duration_ms, success))

    def run(self) -> CompileResult:
        reporter = self.result.reporter
        opts = self.options

        try:
            tree = self._stage("parse", lambda: parse_declarations(self.src, dump_parse=opts.dump_parse))
        except UnexpectedInput as exc:
            handle_parse_exception(exc, reporter)
            return self._finish()

        builder = DescriptorBuilder(self.src, reporter, self.filename, opts.strict_placeholders)
        module = self._stage("build", lambda: builder.build(tree))
        self.result.module = module
        if opts.dump_ir:
            print(module.pretty())

        if reporter.has_errors:
            return self._finish()

        self.result.code = self._stage("generate", lambda: generate_module(
            module, runtime_module=opts.runtime_module, source_name=Path(self.filename).name))
        return self._finish()

    def _finish(self) -> CompileResult:
        if self.options.verbose:
            self._print_timing()
        return self.result

    def _print_timing(self) -> None:
        """Print timing summary to stderr."""
        stages = self.result.stages
        total = sum(s.duration_ms for s in stages)
        print(f"\n=== Timing: {self.filename} ===", file=sys.stderr)
        for s in stages:
            status = "OK" if s.success else "FAIL"
            print(f"  {s.name:12} {s.duration_ms:8.2f}ms [{status}]", file=sys.stderr)
        print(f"  {'TOTAL':12} {total:8.2f}ms", file=sys.stderr)


def compile_source(src: str, filename: str = "<input>",
                   options: Optional[CompileOptions] = None) -> CompileResult:
    """Compile declaration source text; deterministic for identical input."""
    return CompilePipeline(src, filename, options or CompileOptions()).run()


def default_output_path(src_path: Path, out_dir: Optional[Path] = None) -> Path:
    """`cache.errors` -> `cache_errors.py`, next to the source unless `out_dir` is given."""
    name = f"{src_path.stem}_errors.py"
    return (out_dir or src_path.parent) / name


def write_module(code: str, out_path: Path) -> None:
    """Write generated code to `out_path`, creating missing parent directories."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(code, encoding="utf-8")


def compile_file(src_path: Path, out_path: Optional[Path] = None,
                 options: Optional[CompileOptions] = None, write: bool = True) -> CompileResult:
    """Compile one file and, when it succeeds and `write` is set, write the module.

    Raises:
        OSError: when the source cannot be read or the output cannot be written.
    """
    src = Path(src_path).read_text(encoding="utf-8")
    result = compile_source(src, str(src_path), options)
    if result.ok and write:
        write_module(result.code, out_path or default_output_path(Path(src_path)))
    return result
