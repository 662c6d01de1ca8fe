from __future__ import annotations

import itertools
import sys
import types

import pytest

from errorgen.compiler.pipeline import CompileOptions, CompileResult, compile_source

CACHE_ERRORS = '''\
import json

#[top_level]
enum CacheError {
    #[error = "cannot open cache: encountered {source} while looking for file {file!r}"]
    #[help = "delete {file} and retry"]
    Open {
        file: str,
        #[source]
        source: OSError,
        #[location]
        location: Location,
    },
    #[error = "index {index_id} is corrupt"]
    Corrupt { index_id: int },
    #[error = "cache disabled"]
    Disabled,
}
'''

_counter = itertools.count()


def compile_text(src: str, **options) -> CompileResult:
    return compile_source(src, "test.errors", CompileOptions(**options))


def load_generated(code: str) -> types.ModuleType:
    """Execute generated code as a real module so dataclasses and pickle can find it."""
    name = f"_errorgen_test_{next(_counter)}"
    module = types.ModuleType(name)
    sys.modules[name] = module
    exec(compile(code, f"<{name}>", "exec"), module.__dict__)
    return module


@pytest.fixture
def build():
    """Compile declaration source and import the result; fails on any diagnostic error."""
    loaded: list[str] = []

    def _build(src: str, **options) -> types.ModuleType:
        result = compile_text(src, **options)
        assert result.ok, result.reporter.format(use_color=False, use_unicode=False)
        module = load_generated(result.code)
        loaded.append(module.__name__)
        return module

    yield _build
    for name in loaded:
        sys.modules.pop(name, None)


@pytest.fixture
def cache_errors(build):
    return build(CACHE_ERRORS)
