"""Compiler for the message format mini-language.

A message literal such as ``"cannot open {file}: {source}"`` is turned into a
positional ``str.format`` template (``"cannot open {}: {}"``) plus the list of
arguments in the order they must be passed. Each argument keeps the offset of
its first character in the literal so diagnostics can point at it exactly.

Rules, scanning left to right:

- ``{{`` is a literal brace and is copied through as ``{{``.
- ``{arg}`` / ``{arg:spec}`` become ``{}`` / ``{:spec}``; a trailing
  ``!r``, ``!s`` or ``!a`` on ``arg`` is kept as a conversion (``{!r}``).
- ``{arg}}`` consumes the extra ``}`` and emits nothing for the placeholder.
- ``{}`` (no argument) is an error unless compiled with ``strict=False``,
  in which case it is escaped (``{{}}``) so the message shows it verbatim
  and no argument is recorded.
"""
from __future__ import annotations

import re
import string
from dataclasses import dataclass, field
from typing import List

from errorgen.internals.errors import ERR
from errorgen.semantics.exceptions import FormatStringError

_CONVERSION = re.compile(r"!([rsa])$")
_FORMATTER = string.Formatter()


@dataclass(frozen=True)
class RawArg:
    text: str
    offset: int


@dataclass(frozen=True)
class CompiledFormat:
    template: str
    args: List[RawArg] = field(default_factory=list)


def _split_conversion(argument: str) -> tuple[str, str]:
    m = _CONVERSION.search(argument)
    if m is None:
        return argument, ""
    return argument[:m.start()], m.group(0)


def compile_format(literal: str, *, strict: bool = True) -> CompiledFormat:
    """Compile a message literal into a positional template and its arguments.

    Raises:
        FormatStringError: unterminated placeholder (CE2001), empty argument
            in strict mode (CE2002), or a template ``str.format`` rejects
            (CE2004).
    """
    out: List[str] = []
    args: List[RawArg] = []
    i = 0

    while True:
        brace = literal.find("{", i)
        if brace < 0:
            out.append(literal[i:])
            break
        out.append(literal[i:brace])
        i = brace + 1

        if literal.startswith("{", i):
            out.append("{{")
            i += 1
            continue

        close = literal.find("}", i)
        if close < 0:
            raise FormatStringError(ERR.CE2001, brace, len(literal) - brace)

        argument, colon, spec = literal[i:close].partition(":")
        formatter = colon + spec
        rest = close + 1

        if literal.startswith("}", rest):
            i = rest + 1
            continue
        i = rest

        argument, conversion = _split_conversion(argument)

        if argument == "":
            if strict:
                raise FormatStringError(ERR.CE2002, brace, close - brace + 1)
            # Lenient: the placeholder renders as its own text
            out.append("{{" + conversion + formatter + "}}")
            continue

        out.append("{" + conversion + formatter + "}")
        args.append(RawArg(argument, brace + 1))

    template = "".join(out)
    _check_template(template, len(literal))
    return CompiledFormat(template, args)


def _check_template(template: str, literal_length: int) -> None:
    try:
        for _ in _FORMATTER.parse(template):
            pass
    except ValueError as exc:
        raise FormatStringError(ERR.CE2004, 0, literal_length, reason=str(exc)) from None
