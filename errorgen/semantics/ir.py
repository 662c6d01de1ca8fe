# errorgen/semantics/ir.py
from __future__ import annotations
import keyword
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from errorgen.internals.report import Span

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """`CacheMiss` -> `cache_miss`, `IOError` -> `io_error`, keywords get a trailing `_`."""
    out = _CAMEL_BOUNDARY.sub("_", name).lower()
    if keyword.iskeyword(out) or keyword.issoftkeyword(out):
        out += "_"
    return out


class FieldRole(str, Enum):
    SELECTOR = "selector"
    SOURCE   = "source"
    LOCATION = "location"


@dataclass
class FormatArg:
    text: str                        # Argument as written between the braces
    offset: int                      # Index of its first character in the decoded literal
    expr: str                        # Python expression passed to str.format
    is_field: bool = False           # True for a bare identifier naming a field
    span: Optional[Span] = None


@dataclass
class MessageTemplate:
    template: str                    # Positional str.format template
    args: List[FormatArg]
    literal: str = ""                # Decoded literal the template came from
    span: Optional[Span] = None


@dataclass
class FieldDecl:
    name: str
    type_text: str                   # Python type expression as written
    role: FieldRole = FieldRole.SELECTOR
    span: Optional[Span] = None
    name_span: Optional[Span] = None


@dataclass
class VariantRecord:
    enum_name: str
    name: str
    messages: List[MessageTemplate]
    helps: List[MessageTemplate] = field(default_factory=list)
    fields: List[FieldDecl] = field(default_factory=list)
    source: Optional[FieldDecl] = None
    location: Optional[FieldDecl] = None
    span: Optional[Span] = None
    name_span: Optional[Span] = None

    @property
    def selector_fields(self) -> List[FieldDecl]:
        return [f for f in self.fields if f.role == FieldRole.SELECTOR]

    @property
    def selector_field_names(self) -> List[str]:
        return [f.name for f in self.selector_fields]

    @property
    def all_field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def has_source(self) -> bool:
        return self.source is not None

    @property
    def has_location(self) -> bool:
        return self.location is not None

    @property
    def is_unit(self) -> bool:
        return not self.fields

    @property
    def class_name(self) -> str:
        """Module-level name of the variant class, exposed as `Enum.Variant`."""
        return f"{self.enum_name}_{self.name}"

    @property
    def constructor_name(self) -> Optional[str]:
        """Free constructor name; cause variants are built through `bind()` only."""
        return None if self.has_source else snake_case(self.name)


@dataclass
class EnumDescriptor:
    name: str
    variants: List[VariantRecord]
    is_top_level: bool = False
    span: Optional[Span] = None
    name_span: Optional[Span] = None


@dataclass
class ImportLine:
    text: str                        # Normalized Python import statement
    span: Optional[Span] = None


@dataclass
class ModuleDescriptor:
    imports: List[ImportLine] = field(default_factory=list)
    enums: List[EnumDescriptor] = field(default_factory=list)
    filename: str = "<input>"

    def pretty(self) -> str:
        """Readable dump used by --dump-ir."""
        lines: List[str] = [f"module {self.filename}"]
        for imp in self.imports:
            lines.append(f"  {imp.text}")
        for e in self.enums:
            marker = " [top_level]" if e.is_top_level else ""
            lines.append(f"  enum {e.name}{marker}")
            for v in e.variants:
                lines.append(f"    variant {v.name}")
                for m in v.messages:
                    lines.append(f"      error {m.template!r} <- {[a.expr for a in m.args]}")
                for h in v.helps:
                    lines.append(f"      help  {h.template!r} <- {[a.expr for a in h.args]}")
                for f in v.fields:
                    lines.append(f"      {f.role.value:<8} {f.name}: {f.type_text}")
        return "\n".join(lines)
