"""Emission of causation-chain wiring on variant classes: ``cause()`` and ``provide()``.

Variants without a cause or help inherit the ErrorEnum defaults, which
return None and answer nothing.
"""
from __future__ import annotations
from typing import List

from errorgen.backend.emit_utils import bind_fields, format_call
from errorgen.semantics.ir import VariantRecord


def make_impl(v: VariantRecord) -> List[str]:
    blocks = []
    if v.has_source:
        blocks.append(make_cause(v))
    if v.helps:
        blocks.append(make_help(v))
        blocks.append(make_provide(v))
    lines: List[str] = []
    for block in blocks:
        lines += [""] + block
    return lines


def make_cause(v: VariantRecord) -> List[str]:
    return [
        "def cause(self) -> BaseException | None:",
        "    return self.source",
    ]


def make_help(v: VariantRecord) -> List[str]:
    lines = ["def _eg_help(self) -> _eg_rt.Help:"]
    lines += [f"    {line}" for line in bind_fields(v)]
    lines.append("    _eg_msg: list[str] = []")
    for template in v.helps:
        lines += [
            "    _eg_msg.append(\"Help: \")",
            f"    _eg_msg.append({format_call(template)})",
            "    _eg_msg.append(\"\\n\")",
        ]
    lines.append("    return _eg_rt.Help(\"\".join(_eg_msg))")
    return lines


def make_provide(v: VariantRecord) -> List[str]:
    # Help text is built only when a Help request reaches this variant
    return [
        "def provide(self, _eg_request: _eg_rt.Request) -> None:",
        "    _eg_request.provide_value_with(_eg_rt.Help, self._eg_help)",
    ]
