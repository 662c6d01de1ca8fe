"""Shared exception-to-diagnostic handling for the pipeline and the descriptor builder."""
from __future__ import annotations

from lark import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from errorgen.internals import errors as er
from errorgen.internals.report import Reporter, Span
from errorgen.semantics.exceptions import DescriptorError


def describe_parse_error(e: UnexpectedInput) -> str:
    """Short, single-line description of a lark parse error."""
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character {e.char!r}"
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return "unexpected end of input"
        expected = ", ".join(sorted(e.expected)[:6])
        return f"unexpected {e.token.type} {str(e.token)!r} (expected one of: {expected})"
    if isinstance(e, UnexpectedEOF):
        return "unexpected end of input"
    return str(e).splitlines()[0]


def handle_parse_exception(exc: Exception, reporter: Reporter) -> bool:
    """Handle a front-end exception by emitting a diagnostic through the reporter.

    Lark parse errors become CE0100; a DescriptorError already carries its
    code, span and message arguments.

    Returns:
        True if the exception was handled, False otherwise.
    """
    if isinstance(exc, DescriptorError):
        er.emit(reporter, exc.error, exc.span, **exc.kwargs)
        return True

    if isinstance(exc, UnexpectedInput):
        line = getattr(exc, "line", -1)
        col = getattr(exc, "column", -1)
        span = Span(line, col, line, col + 1) if line and line > 0 else None
        er.emit(reporter, er.ERR.CE0100, span, detail=describe_parse_error(exc))
        return True

    return False
