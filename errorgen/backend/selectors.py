"""Emission of variant classes, selector values, bindings and constructors.

Every variant gets:

- a variant class ``E_V(E)``, exposed as ``E.V``, holding all fields;
- a selector value ``V``, a frozen dataclass holding only the selector
  fields, whose ``bind(residual)`` assembles the variant from a failed
  operation;
- for variants without a cause, a free constructor ``v(**selector_fields)``.

``bind`` is one assembly step behind a tagged dispatch: the runtime's
``extract_cause`` classifies the residual as a ``Shape`` and checks it
against the ``shapes`` the variant accepts. Only cause extraction differs
per shape.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

from errorgen.backend import display, error_impl
from errorgen.backend.emit_utils import indent
from errorgen.internals import errors as er
from errorgen.runtime import Shape
from errorgen.semantics.ir import EnumDescriptor, FieldDecl, FieldRole, VariantRecord

SHAPE_NAMES: Dict[Shape, str] = {
    Shape.ERROR: "_eg_rt.Shape.ERROR",
    Shape.ANY_ERROR: "_eg_rt.Shape.ANY_ERROR",
    Shape.EMPTY: "_eg_rt.Shape.EMPTY",
}


def accepted_shapes(v: VariantRecord) -> Tuple[Shape, ...]:
    """Residual shapes `v` can be bound from."""
    if v.has_source:
        return (Shape.ERROR,)
    return (Shape.ANY_ERROR, Shape.EMPTY)


def _shape_tuple(v: VariantRecord) -> str:
    names = []
    for shape in accepted_shapes(v):
        name = SHAPE_NAMES.get(shape)
        if name is None:
            er.raise_internal_error("CE0002", shape=shape, variant=v.name)
        names.append(name)
    return "(" + ", ".join(names) + ("," if len(names) == 1 else "") + ")"


def _cause_type_expr(f: FieldDecl) -> str:
    text = f.type_text
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


# ---------------------------------------------------------------------------
# Variant classes

def make_variant_class(v: VariantRecord) -> List[str]:
    lines = [f"class {v.class_name}({v.enum_name}):", f"    {v.messages[0].literal!r}"]

    if not v.is_unit:
        params = []
        body = ["    _eg_rt.ErrorEnum.__init__(self)"]
        for f in v.fields:
            match f.role:
                case FieldRole.SELECTOR:
                    params.append(f"{f.name}: {f.type_text}")
                    body.append(f"    self.{f.name} = {f.name}")
                case FieldRole.SOURCE:
                    params.append(f"{f.name}: {f.type_text}")
                    body.append(f"    self.{f.name} = {f.name}")
                    body.append(f"    self.__cause__ = {f.name}")
                case FieldRole.LOCATION:
                    params.append(f"{f.name}: {f.type_text} | None = None")
                    body.append(f"    self.{f.name} = {f.name} if {f.name} is not None "
                                f"else _eg_rt.capture_location(1)")
                case _:
                    er.raise_internal_error("CE0001", role=f.role, field=f.name)

        lines.append("")
        lines.append(f"    def __init__(self, *, {', '.join(params)}) -> None:")
        lines += [f"    {line}" for line in body]

    lines.append("")
    lines += indent(display.make_render(v))
    lines += indent(error_impl.make_impl(v))
    return lines


def make_registration(e: EnumDescriptor) -> List[str]:
    lines = []
    for v in e.variants:
        lines.append(f"{v.class_name}.__qualname__ = \"{e.name}.{v.name}\"")
        lines.append(f"{e.name}.{v.name} = {v.class_name}")
    entries = ", ".join(f"\"{v.name}\": {v.class_name}" for v in e.variants)
    lines.append(f"{e.name}.variants = {{{entries}}}")
    return lines


# ---------------------------------------------------------------------------
# Selector values and constructors

def _assembly(v: VariantRecord, value_of) -> str:
    """Constructor call for the variant class; `value_of(field)` supplies each argument."""
    args = []
    for f in v.fields:
        if f.role == FieldRole.LOCATION:
            args.append(f"{f.name}=_eg_rt.capture_location(1)")
        else:
            args.append(f"{f.name}={value_of(f)}")
    return f"{v.class_name}({', '.join(args)})"


def make_selector(v: VariantRecord) -> List[str]:
    lines = [
        "@_eg_dataclasses.dataclass(frozen=True)",
        f"class {v.name}:",
        f"    \"\"\"Selector fields of {v.enum_name}.{v.name}.\"\"\"",
        "",
    ]
    for f in v.selector_fields:
        lines.append(f"    {f.name}: {f.type_text}")
    if v.selector_fields:
        lines.append("")

    cause_type = _cause_type_expr(v.source) if v.source is not None else "None"
    lines += [
        f"    cause_type = {cause_type}",
        f"    shapes = {_shape_tuple(v)}",
        "",
        f"    def bind(self, residual: BaseException | None = None) -> {v.enum_name}:",
    ]

    if v.has_source:
        call = _assembly(v, lambda f: "source" if f.role == FieldRole.SOURCE else f"self.{f.name}")
        lines += [
            "        source = _eg_rt.extract_cause(self, residual)",
            f"        return {call}",
        ]
    else:
        call = _assembly(v, lambda f: f"self.{f.name}")
        lines += [
            "        _eg_cause = _eg_rt.extract_cause(self, residual)",
            f"        _eg_error = {call}",
            "        _eg_error.__cause__ = _eg_cause",
            "        return _eg_error",
        ]
    return lines


def make_constructor(v: VariantRecord) -> List[str]:
    """Free constructor for a variant without a cause field."""
    params = ", ".join(f"{f.name}: {f.type_text}" for f in v.selector_fields)
    signature = f"*, {params}" if params else ""
    call = _assembly(v, lambda f: f.name)
    return [
        f"def {v.constructor_name}({signature}) -> {v.enum_name}:",
        f"    \"\"\"Build {v.enum_name}.{v.name}.\"\"\"",
        f"    return {call}",
    ]
