"""Assembles a Python module from a ModuleDescriptor.

Layout of the generated module:

    header, imports, __all__
    per enum: enum class, variant classes, variant registration
    per enum: selector values and free constructors

Selectors come after every enum so a ``cause_type`` may name an enum that
is declared later in the same file.
"""
from __future__ import annotations
from typing import List, Optional

from errorgen.backend import display, selectors
from errorgen.backend.emit_utils import indent
from errorgen.semantics.ir import EnumDescriptor, ModuleDescriptor

DEFAULT_RUNTIME_MODULE = "errorgen.runtime"


def make_enum_class(e: EnumDescriptor) -> List[str]:
    lines = [
        f"class {e.name}(_eg_rt.ErrorEnum):",
        f"    \"\"\"Error enumeration {e.name}.\"\"\"",
        "",
    ]
    if e.is_top_level:
        lines += ["    top_level = True", ""]
    lines += indent(display.make_impl(e))
    return lines


def make_enum_blocks(e: EnumDescriptor) -> List[List[str]]:
    blocks = [make_enum_class(e)]
    blocks += [selectors.make_variant_class(v) for v in e.variants]
    blocks.append(selectors.make_registration(e))
    return blocks


def make_binding_blocks(e: EnumDescriptor) -> List[List[str]]:
    blocks = []
    for v in e.variants:
        blocks.append(selectors.make_selector(v))
        if v.constructor_name is not None:
            blocks.append(selectors.make_constructor(v))
    return blocks


def exported_names(module: ModuleDescriptor) -> List[str]:
    names: List[str] = []
    for e in module.enums:
        names.append(e.name)
        for v in e.variants:
            names.append(v.name)
            if v.constructor_name is not None:
                names.append(v.constructor_name)
    return names


def make_header(module: ModuleDescriptor, runtime_module: str, source_name: Optional[str]) -> List[str]:
    from errorgen import __version__

    origin = f" from {source_name}" if source_name else ""
    lines = [
        f"# Generated by errorgen {__version__}{origin}. Do not edit.",
        "from __future__ import annotations",
        "",
        "import dataclasses as _eg_dataclasses",
        "",
        f"import {runtime_module} as _eg_rt",
    ]
    lines += [imp.text for imp in module.imports]
    lines.append("")
    exported = exported_names(module)
    if exported:
        lines.append("__all__ = [")
        lines += [f"    {name!r}," for name in exported]
        lines.append("]")
    else:
        lines.append("__all__ = []")
    return lines


def generate_module(module: ModuleDescriptor, *, runtime_module: str = DEFAULT_RUNTIME_MODULE,
                    source_name: Optional[str] = None) -> str:
    """Python source for `module`; deterministic for a given descriptor."""
    blocks: List[List[str]] = [make_header(module, runtime_module, source_name)]
    for e in module.enums:
        blocks += make_enum_blocks(e)
    for e in module.enums:
        blocks += make_binding_blocks(e)

    out: List[str] = []
    for i, block in enumerate(blocks):
        if i:
            out += ["", ""]
        out += block
    return "\n".join(out) + "\n"
