"""Emission of the rendering logic for an error enum.

The enum's ``__str__`` renders the shared parts (cause chain, top-level
help). Each variant class renders its own messages in ``_eg_render``, where
only that variant's fields are locals.

``repr()`` is inherited from ErrorEnum and delegates to ``__str__``, so
display and debug rendering share this single implementation.
"""
from __future__ import annotations
from typing import List

from errorgen.backend.emit_utils import bind_fields, format_call
from errorgen.semantics.ir import EnumDescriptor, VariantRecord


def make_impl(e: EnumDescriptor) -> List[str]:
    lines = [
        "def __str__(self) -> str:",
        "    _eg_out: list[str] = []",
        "    self._eg_render(_eg_out)",
        "    _eg_cause = self.cause()",
        "    if _eg_cause is not None:",
        "        _eg_out.append(\"Caused by: \")",
        "        _eg_out.append(_eg_rt.render(_eg_cause))",
    ]
    if e.is_top_level:
        lines += [
            "    _eg_out.append(\"\\n\")",
            "    for _eg_error in _eg_rt.sources(self):",
            "        _eg_help = _eg_rt.request_value(_eg_rt.Help, _eg_error)",
            "        if _eg_help is not None:",
            "            _eg_out.append(_eg_rt.render(_eg_help))",
        ]
    lines.append("    return \"\".join(_eg_out)")
    return lines


def make_render(v: VariantRecord) -> List[str]:
    """``_eg_render`` of one variant class: messages, location suffix, line break."""
    lines = ["def _eg_render(self, _eg_out: list[str]) -> None:"]
    lines += [f"    {line}" for line in bind_fields(v)]
    for template in v.messages:
        lines.append(f"    _eg_out.append({format_call(template)})")
    if v.has_location:
        lines.append("    _eg_out.append(\" (at {})\".format(location))")
    lines.append("    _eg_out.append(\"\\n\")")
    return lines
