import pytest

from errorgen.internals.parser import parse_declarations
from errorgen.internals.report import Reporter, Span
from errorgen.semantics.descriptor import build_descriptors
from errorgen.semantics.ir import FieldRole, snake_case
from tests.conftest import CACHE_ERRORS, compile_text


def _build(src: str, **kwargs):
    reporter = Reporter(source=src, filename="test.errors")
    module = build_descriptors(parse_declarations(src), src, reporter, "test.errors", **kwargs)
    return module, reporter


def _codes(src: str, **options) -> list[str]:
    return compile_text(src, **options).reporter.codes()


def _one_message(literal: str, fields: str = "x: int") -> str:
    return f'enum E {{\n    #[error = "{literal}"]\n    V {{ {fields} }},\n}}\n'


# ---------------------------------------------------------------------------
# Successful descriptors


def test_cache_errors_descriptor() -> None:
    module, reporter = _build(CACHE_ERRORS)

    assert reporter.items == []
    assert [imp.text for imp in module.imports] == ["import json"]
    [enum] = module.enums
    assert enum.name == "CacheError"
    assert enum.is_top_level
    assert [v.name for v in enum.variants] == ["Open", "Corrupt", "Disabled"]

    open_ = enum.variants[0]
    assert open_.selector_field_names == ["file"]
    assert open_.all_field_names == ["file", "source", "location"]
    assert open_.source.type_text == "OSError"
    assert open_.location.role == FieldRole.LOCATION
    assert open_.constructor_name is None
    [message] = open_.messages
    assert message.template == "cannot open cache: encountered {} while looking for file {!r}"
    assert [a.expr for a in message.args] == ["source", "file"]
    assert all(a.is_field for a in message.args)
    [help_] = open_.helps
    assert help_.template == "delete {} and retry"

    disabled = enum.variants[2]
    assert disabled.is_unit
    assert disabled.constructor_name == "disabled"


def test_argument_offsets_match_the_literal() -> None:
    module, _ = _build(_one_message("cannot open {file}: {source}",
                                    "file: str, #[source] source: OSError"))
    [arg_file, arg_source] = module.enums[0].variants[0].messages[0].args

    literal = "cannot open {file}: {source}"
    assert arg_file.offset == literal.index("file")
    assert arg_source.offset == literal.index("source")


def test_argument_spans_point_into_the_source_line() -> None:
    module, _ = _build(_one_message("open {x}"))
    [arg] = module.enums[0].variants[0].messages[0].args

    # `    #[error = "` puts the opening quote in column 15
    assert arg.span == Span(2, 22, 2, 23)


def test_several_messages_and_helps_keep_declaration_order() -> None:
    src = '''
enum E {
    #[error = "first {a}"]
    #[help = "try {a}"]
    #[error = "second"]
    #[help = "or not"]
    V { a: int },
}
'''
    module, reporter = _build(src)
    v = module.enums[0].variants[0]

    assert reporter.items == []
    assert [m.template for m in v.messages] == ["first {}", "second"]
    assert [h.template for h in v.helps] == ["try {}", "or not"]


def test_expression_arguments_are_emitted_verbatim() -> None:
    module, reporter = _build(_one_message("{len(items)} items", "items: list[str]"))
    [arg] = module.enums[0].variants[0].messages[0].args

    assert reporter.items == []
    assert not arg.is_field
    assert arg.expr == "len(items)"


def test_field_with_both_markers_is_the_cause() -> None:
    module, reporter = _build(_one_message("x", "#[source] #[location] source: OSError"))
    v = module.enums[0].variants[0]

    assert reporter.codes() == []
    assert v.has_source
    assert not v.has_location


def test_imports_pass_through_in_order() -> None:
    src = "from . import shared\nfrom a.b import (C as D, E)\nimport x.y as z\n"
    module, _ = _build(src)

    assert [imp.text for imp in module.imports] == [
        "from . import shared",
        "from a.b import C as D, E",
        "import x.y as z",
    ]


def test_tolerated_attributes_are_silent() -> None:
    src = '#[derive(Debug)]\n#[doc = "x"]\nenum E {\n    #[allow(dead_code)]\n    #[error = "m"]\n    V,\n}\n'
    assert _codes(src) == []


@pytest.mark.parametrize(
    ("name", "expected"),
    [("CacheMiss", "cache_miss"), ("IOError", "io_error"), ("Import", "import_"), ("Match", "match_")],
)
def test_snake_case(name: str, expected: str) -> None:
    assert snake_case(name) == expected


# ---------------------------------------------------------------------------
# Diagnostics


@pytest.mark.parametrize(
    ("src", "code"),
    [
        ('struct S { a: int }', "CE1001"),
        ('union U { a: int }', "CE1001"),
        ('enum E(int);', "CE1002"),
        ('enum E { #[error = "m"] V(int) }', "CE1002"),
        ('enum E { #[error = "m"] V: int }', "CE1002"),
        ('enum E { #![allow(x)] #[error = "m"] V }', "CE1003"),
        ('enum E { V }', "CE1004"),
        ('enum E { #[help = "h"] V }', "CE1004"),
        ('enum E { #[error = "m"] V { #[source] source: A, #[source] source: B } }', "CE1005"),
        ('enum E { #[error = "m"] V { #[location] location: A, #[location] location: B } }', "CE1006"),
        ('enum E { #[error = "m"] V { #[source] cause_err: A } }', "CE1007"),
        ('enum E { #[error = "m"] V { #[location] loc: A } }', "CE1008"),
        ('enum E { #[error = "m"] V, #[error = "m"] V }', "CE1009"),
        ('enum E { #[error = "m"] V { a: int, a: str } }', "CE1010"),
        ('enum E { #[error = "m"] V { bind: int } }', "CE1011"),
        ('enum E { #[error = "m"] V { _eg_x: int } }', "CE1011"),
        ('enum E { #[error = "m"] variants }', "CE1011"),
        ('enum E { #[error = "m"] V }\nenum E { #[error = "m"] W }', "CE1012"),
        ('enum E { #[error] V }', "CE1013"),
        ('enum E { #[error = 3] V }', "CE1013"),
        ('enum E { #[error = "m"] Open }\nenum F { #[error = "m"] Open }', "CE1014"),
        ('from x import Open\nenum E { #[error = "m"] Open }', "CE1014"),
        ('enum E { #[error = "m"] V { a } }', "CE0100"),
        ('enum E {', "CE0100"),
        ('enum E { #[error = "bad \\q"] V }', "CE0101"),
        ('enum E { #[error = "{x"] V { x: int } }', "CE2001"),
        ('enum E { #[error = "{}"] V }', "CE2002"),
        ('enum E { #[error = "{x y}"] V { x: int } }', "CE2003"),
        ('enum E { #[error = "a } b"] V }', "CE2004"),
    ],
)
def test_structural_errors(src: str, code: str) -> None:
    result = compile_text(src)

    assert result.reporter.codes() == [code]
    assert result.code is None


@pytest.mark.parametrize(
    ("src", "code"),
    [
        ('enum E { #[error = "{missing}"] V }', "CW1001"),
        ('enum E { #[error = "m"] #[retry] V }', "CW1002"),
        ('#[top_level]\n#[top_level]\nenum E { #[error = "m"] V }', "CW1003"),
    ],
)
def test_warnings_do_not_block_generation(src: str, code: str) -> None:
    result = compile_text(src)

    assert result.reporter.codes() == [code]
    assert result.code is not None
    assert result.exit_code == 1


def test_one_bad_enum_does_not_hide_the_next() -> None:
    src = 'struct S { a: int }\nenum E { V }\nenum F { #[error = "ok"] W }\n'
    assert _codes(src) == ["CE1001", "CE1004"]


def test_first_violation_aborts_the_declaration() -> None:
    src = 'enum E { V, #[error = "m"] W { #[source] wrong: A } }'
    assert _codes(src) == ["CE1004"]


def test_lenient_placeholders_accept_empty_braces() -> None:
    module, reporter = _build(_one_message("got {} from {x}"), strict_placeholders=False)
    [message] = module.enums[0].variants[0].messages

    assert reporter.items == []
    assert message.template == "got {{}} from {}"


def test_format_error_span_is_narrowed_past_escapes() -> None:
    result = compile_text(_one_message("a\\tb {x y}"))
    [diag] = result.reporter.items

    assert diag.code == "CE2003"
    assert diag.span == Span(2, 22, 2, 25)


def test_unterminated_placeholder_span() -> None:
    result = compile_text(_one_message("open {x"))
    [diag] = result.reporter.items

    assert diag.code == "CE2001"
    assert (diag.span.line, diag.span.col) == (2, 21)


def test_descriptor_building_is_deterministic() -> None:
    first, _ = _build(CACHE_ERRORS)
    second, _ = _build(CACHE_ERRORS)
    assert first == second
