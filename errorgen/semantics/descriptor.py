"""Descriptor builder: lark parse tree -> validated error descriptors.

Declarations are processed in source order. Within a declaration the checks
run in a fixed order so identical input always yields the same diagnostic:

1. the declaration must be an ``enum``;
2. inner attributes (``#![...]``) are rejected anywhere inside it;
3. per variant, ``#[error]`` / ``#[help]`` literals are compiled in order;
4. at least one ``#[error]`` is required;
5. fields are classified as cause (``#[source]``), captured location
   (``#[location]``) or selector fields;
6. positional variants are rejected, unit variants are accepted.

The first structural violation aborts the declaration with a DescriptorError;
the builder reports it and moves on to the next declaration so one bad enum
does not hide errors in its siblings.
"""
from __future__ import annotations

import ast
import keyword
from typing import Dict, List, Optional, Tuple

from lark import Token, Tree

from errorgen.internals import errors as er
from errorgen.internals.errors import ERR
from errorgen.internals import parse_errors
from errorgen.internals.report import Reporter, Span, span_of
from errorgen.semantics.exceptions import DescriptorError, FormatStringError, InvalidEscapeError
from errorgen.semantics.format_string import compile_format
from errorgen.semantics.ir import (
    EnumDescriptor, FieldDecl, FieldRole, FormatArg, ImportLine,
    MessageTemplate, ModuleDescriptor, VariantRecord,
)
from errorgen.semantics.string_processing import process_string_escapes
from errorgen.semantics.tree_navigation import (
    find_trees_recursive, first_name, first_token, first_tree, names, trees,
)

# Attributes with no meaning here that are still accepted without a warning
TOLERATED_ATTRIBUTES = frozenset({"doc", "note", "allow", "derive", "cfg"})

# Generated classes inherit these from ErrorEnum / BaseException
RESERVED_MEMBERS = frozenset({"cause", "provide", "variants", "args", "with_traceback", "add_note"})
RESERVED_FIELDS = RESERVED_MEMBERS | {"self", "bind", "cause_type", "shapes"}
GENERATED_PREFIX = "_eg_"

_FORBIDDEN_EXPR_NODES = (ast.Await, ast.Yield, ast.YieldFrom, ast.NamedExpr)


def _is_reserved_python(name: str) -> bool:
    # `_` is a throwaway name and cannot hold a field
    return keyword.iskeyword(name) or name == "_" or (name.startswith("__") and name.endswith("__"))


def _attr_name(attr: Tree) -> str:
    meta = attr.children[0]
    return "::".join(names(meta.children[0]))


class DescriptorBuilder:
    def __init__(self, source: str, reporter: Reporter, filename: str = "<input>",
                 strict_placeholders: bool = True):
        self.source = source
        self.reporter = reporter
        self.filename = filename
        self.strict_placeholders = strict_placeholders

    # ------------------------------------------------------------------
    # Module level

    def build(self, tree: Tree) -> ModuleDescriptor:
        """Build the module descriptor; structural errors go to the reporter."""
        assert isinstance(tree, Tree) and tree.data == "start"
        module = ModuleDescriptor(filename=self.filename)
        declared: Dict[str, Span] = {}

        for node in tree.children:
            if not isinstance(node, Tree):
                continue
            match node.data:
                case "import_stmt":
                    module.imports.append(self._import_stmt(node))
                case "from_import":
                    module.imports.append(self._from_import(node))
                case "declaration":
                    try:
                        enum = self.build_enum(node)
                    except DescriptorError as exc:
                        parse_errors.handle_parse_exception(exc, self.reporter)
                        continue
                    prev = declared.get(enum.name)
                    if prev is not None:
                        er.emit(self.reporter, ERR.CE1012, enum.name_span,
                                name=enum.name, prev_loc=prev)
                        continue
                    declared[enum.name] = enum.name_span or enum.span
                    module.enums.append(enum)
                case _:
                    er.raise_internal_error("CE0003", node=node.data)

        self._check_generated_names(module)
        return module

    def _import_stmt(self, t: Tree) -> ImportLine:
        dotted = first_tree(t.children, "dotted_name")
        text = "import " + ".".join(names(dotted))
        alias = first_name(t.children)
        if alias is not None:
            text += f" as {alias}"
        return ImportLine(text, span_of(t))

    def _from_import(self, t: Tree) -> ImportLine:
        ref = first_tree(t.children, "module_ref")
        relative = first_token(ref.children, "RELATIVE")
        dotted = first_tree(ref.children, "dotted_name")
        module = (str(relative) if relative else "") + (".".join(names(dotted)) if dotted else "")
        aliases = []
        for alias in trees(t.children, "import_alias"):
            parts = names(alias)
            aliases.append(parts[0] if len(parts) == 1 else f"{parts[0]} as {parts[1]}")
        return ImportLine(f"from {module} import {', '.join(aliases)}", span_of(t))

    def _imported_names(self, module: ModuleDescriptor) -> List[Tuple[str, Optional[Span]]]:
        bound: List[Tuple[str, Optional[Span]]] = []
        for imp in module.imports:
            words = imp.text.split()
            if words[0] == "import":
                bound.append((words[3] if len(words) == 4 else words[1].split(".")[0], imp.span))
            else:
                for alias in imp.text.split(" import ", 1)[1].split(", "):
                    bound.append((alias.split(" as ")[-1], imp.span))
        return bound

    def _check_generated_names(self, module: ModuleDescriptor) -> None:
        """Every generated module-level name must be unique in the file."""
        seen: Dict[str, Optional[Span]] = dict(self._imported_names(module))
        for enum in module.enums:
            generated: List[Tuple[str, Optional[Span]]] = [(enum.name, enum.name_span)]
            for v in enum.variants:
                generated.append((v.name, v.name_span))
                generated.append((v.class_name, v.name_span))
                if v.constructor_name is not None:
                    generated.append((v.constructor_name, v.name_span))
            for name, span in generated:
                if name in seen:
                    er.emit(self.reporter, ERR.CE1014, span, name=name)
                    break
                seen[name] = span

    # ------------------------------------------------------------------
    # Declarations

    def build_enum(self, decl: Tree) -> EnumDescriptor:
        """Parse one declaration into an EnumDescriptor.

        Raises:
            DescriptorError: on the first structural violation.
        """
        assert decl.data == "declaration"
        kind_tok = first_tree(decl.children, "decl_kind").children[0]
        name_tok = first_name(decl.children)

        if kind_tok.type != "ENUM":
            raise DescriptorError(ERR.CE1001, span_of(kind_tok))

        for inner in find_trees_recursive(decl, "inner_attribute"):
            raise DescriptorError(ERR.CE1003, span_of(inner))

        enum_name = str(name_tok)
        self._check_name(enum_name, "enum", span_of(name_tok), reserved=frozenset())

        is_top_level = False
        for attr in trees(decl.children, "outer_attribute"):
            attr_name = _attr_name(attr)
            if attr_name == "top_level":
                if is_top_level:
                    er.emit(self.reporter, ERR.CW1003, span_of(attr))
                is_top_level = True
            else:
                self._unknown_attribute(attr, attr_name)

        if first_tree(decl.children, "paren_body") is not None:
            raise DescriptorError(ERR.CE1002, span_of(decl))

        variants: List[VariantRecord] = []
        seen: Dict[str, Span] = {}
        body = first_tree(decl.children, "brace_body")
        for member in trees(body.children if body else [], "member"):
            variant = self._variant(enum_name, member)
            prev = seen.get(variant.name)
            if prev is not None:
                raise DescriptorError(ERR.CE1009, variant.name_span,
                                      name=variant.name, prev_loc=prev)
            seen[variant.name] = variant.name_span
            variants.append(variant)

        return EnumDescriptor(
            name=enum_name,
            variants=variants,
            is_top_level=is_top_level,
            span=span_of(decl),
            name_span=span_of(name_tok),
        )

    def _variant(self, enum_name: str, member: Tree) -> VariantRecord:
        name_tok = first_name(member.children)
        name = str(name_tok)
        self._check_name(name, "variant", span_of(name_tok), reserved=RESERVED_MEMBERS)

        messages: List[MessageTemplate] = []
        helps: List[MessageTemplate] = []
        for attr in trees(member.children, "outer_attribute"):
            attr_name = _attr_name(attr)
            if attr_name == "error":
                messages.append(self._message(attr, attr_name))
            elif attr_name == "help":
                helps.append(self._message(attr, attr_name))
            else:
                self._unknown_attribute(attr, attr_name)

        if not messages:
            raise DescriptorError(ERR.CE1004, span_of(member))

        variant = VariantRecord(
            enum_name=enum_name,
            name=name,
            messages=messages,
            helps=helps,
            span=span_of(member),
            name_span=span_of(name_tok),
        )

        if first_tree(member.children, "paren_body") is not None \
                or first_tree(member.children, "field_type") is not None:
            raise DescriptorError(ERR.CE1002, span_of(member))

        body = first_tree(member.children, "brace_body")
        if body is not None:
            for field_node in trees(body.children, "member"):
                self._classify_field(variant, field_node)

        for template in messages + helps:
            self._resolve_args(variant, template)
        return variant

    def _classify_field(self, variant: VariantRecord, node: Tree) -> None:
        name_tok = first_name(node.children)
        name = str(name_tok)
        type_node = first_tree(node.children, "field_type")
        if type_node is None:
            raise DescriptorError(ERR.CE0100, span_of(node),
                                  detail=f"field '{name}' needs a type: `{name}: <type>`")
        self._check_name(name, "field", span_of(name_tok), reserved=RESERVED_FIELDS)

        decl = FieldDecl(
            name=name,
            type_text=self._type_text(type_node.children[0]),
            span=span_of(node),
            name_span=span_of(name_tok),
        )

        markers = set()
        for attr in trees(node.children, "outer_attribute"):
            attr_name = _attr_name(attr)
            if attr_name in ("source", "location"):
                markers.add(attr_name)
            else:
                self._unknown_attribute(attr, attr_name)

        if "source" in markers:
            if name != "source":
                raise DescriptorError(ERR.CE1007, span_of(name_tok))
            if variant.source is not None:
                raise DescriptorError(ERR.CE1005, span_of(node))
            decl.role = FieldRole.SOURCE
            variant.source = decl
        elif "location" in markers:
            if name != "location":
                raise DescriptorError(ERR.CE1008, span_of(name_tok))
            if variant.location is not None:
                raise DescriptorError(ERR.CE1006, span_of(node))
            decl.role = FieldRole.LOCATION
            variant.location = decl

        # Marker errors take precedence over the plain duplicate-name check
        if name in variant.all_field_names:
            raise DescriptorError(ERR.CE1010, span_of(name_tok), name=name, variant=variant.name)
        variant.fields.append(decl)

    def _type_text(self, t: Tree) -> str:
        # Source slice keeps the user's spelling; whitespace is collapsed
        return " ".join(self.source[t.meta.start_pos:t.meta.end_pos].split())

    # ------------------------------------------------------------------
    # Messages

    def _message(self, attr: Tree, attr_name: str) -> MessageTemplate:
        meta = attr.children[0]
        value = meta.children[1] if meta.data == "meta_name_value" else None
        if not isinstance(value, Token) or value.type != "STRING":
            raise DescriptorError(ERR.CE1013, span_of(attr), name=attr_name)
        return self.compile_literal(value)

    def compile_literal(self, tok: Token) -> MessageTemplate:
        """Decode a STRING token and compile it as a message template.

        Argument spans are narrowed to the exact characters inside the
        literal, accounting for escape sequences before them.
        """
        lit_span = span_of(tok)
        raw = str(tok)[1:-1]
        try:
            literal, index_map = process_string_escapes(raw)
        except InvalidEscapeError as exc:
            raise DescriptorError(ERR.CE0101, lit_span.narrow(1 + exc.offset, len(exc.escape)),
                                  escape=exc.escape) from None

        def narrow(offset: int, length: int) -> Span:
            start = index_map[min(offset, len(literal))]
            end = index_map[min(offset + length, len(literal))]
            return lit_span.narrow(1 + start, end - start)

        try:
            compiled = compile_format(literal, strict=self.strict_placeholders)
        except FormatStringError as exc:
            raise DescriptorError(exc.error, narrow(exc.offset, exc.length), **exc.kwargs) from None

        args: List[FormatArg] = []
        for raw_arg in compiled.args:
            span = narrow(raw_arg.offset, len(raw_arg.text))
            text = raw_arg.text
            if text.isidentifier() and not keyword.iskeyword(text):
                args.append(FormatArg(text, raw_arg.offset, text, is_field=True, span=span))
            else:
                args.append(FormatArg(text, raw_arg.offset, self._expression(text, span), span=span))

        return MessageTemplate(compiled.template, args, literal=literal, span=lit_span)

    def _expression(self, text: str, span: Span) -> str:
        expr = text.strip()
        try:
            tree = ast.parse(expr, mode="eval")
        except SyntaxError as exc:
            raise DescriptorError(ERR.CE2003, span, expr=text, reason=exc.msg) from None
        for node in ast.walk(tree):
            if isinstance(node, _FORBIDDEN_EXPR_NODES):
                raise DescriptorError(ERR.CE2003, span, expr=text,
                                      reason=f"{type(node).__name__} is not allowed in a message")
        return expr

    def _resolve_args(self, variant: VariantRecord, template: MessageTemplate) -> None:
        fields = set(variant.all_field_names)
        for arg in template.args:
            if arg.is_field and arg.text not in fields:
                er.emit(self.reporter, ERR.CW1001, arg.span, name=arg.text, variant=variant.name)

    # ------------------------------------------------------------------
    # Helpers

    def _check_name(self, name: str, what: str, span: Optional[Span], reserved: frozenset) -> None:
        if _is_reserved_python(name) or name in reserved or name.startswith(GENERATED_PREFIX):
            raise DescriptorError(ERR.CE1011, span, name=name, what=what)

    def _unknown_attribute(self, attr: Tree, attr_name: str) -> None:
        if attr_name not in TOLERATED_ATTRIBUTES:
            er.emit(self.reporter, ERR.CW1002, span_of(attr), name=attr_name)


def build_descriptors(tree: Tree, source: str, reporter: Reporter, filename: str = "<input>",
                      strict_placeholders: bool = True) -> ModuleDescriptor:
    """Convenience wrapper around DescriptorBuilder.build."""
    return DescriptorBuilder(source, reporter, filename, strict_placeholders).build(tree)
