"""Small helpers shared by the emitters."""
from __future__ import annotations
from typing import Iterable, List

from errorgen.semantics.ir import MessageTemplate, VariantRecord

INDENT = "    "


def indent(lines: Iterable[str], level: int = 1) -> List[str]:
    prefix = INDENT * level
    return [f"{prefix}{line}" if line else "" for line in lines]


def format_call(template: MessageTemplate) -> str:
    """Python expression rendering one compiled message."""
    if not template.args and "{" not in template.template and "}" not in template.template:
        return repr(template.template)
    args = ", ".join(arg.expr for arg in template.args)
    return f"{template.template!r}.format({args})"


def bind_fields(variant: VariantRecord) -> List[str]:
    """Statements binding each field of `variant` to a local of the same name.

    Only the variant's own fields become locals, so a name that is a field
    elsewhere in the enum still resolves in module scope here.
    """
    return [f"{name} = self.{name}" for name in variant.all_field_names]
