# errorgen/internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from errorgen.internals.report import Span, Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    GENERAL     = "general"
    SYNTAX      = "syntax"
    DECLARATION = "declaration"
    VARIANT     = "variant"
    FIELD       = "field"
    FORMAT      = "format"
    INTERNAL    = "internal"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.GENERAL
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)


class InternalCompilerError(RuntimeError):
    """A generator bug: the IR reached a state validation should have excluded."""

    def __init__(self, code: str, text: str):
        super().__init__(f"{code}: {text}")
        self.code = code


def emit(r: Reporter, em: ErrorMessage, span: Optional[Span], **kwargs) -> None:
    text = _fmt(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, span)
    else:
        r.warn(em.code, text, span)

def render(em: ErrorMessage, **kwargs) -> str:
    """Format the message text of `em` with its parameters."""
    return _fmt(em.code, **kwargs)

def raise_internal_error(code: str, **kwargs) -> None:
    """Raise an InternalCompilerError for a CE0xxx code.

    Internal errors indicate generator bugs, not problems in the user's
    declaration file. They are raised as exceptions during code generation
    and never turned into diagnostics.

    Args:
        code: Error code (e.g., "CE0001")
        **kwargs: Format parameters for the error message

    Raises:
        InternalCompilerError: Always raises with formatted error message
    """
    text = _fmt(code, **kwargs)
    raise InternalCompilerError(code, text)


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Internal errors (generator bugs) - CE0xxx range
_add(ErrorMessage("CE0001", Severity.ERROR,
    "unknown field role '{role}' on field '{field}'",
    Category.INTERNAL, "A field reached code generation without a valid role."))

_add(ErrorMessage("CE0002", Severity.ERROR,
    "unknown residual shape '{shape}' for variant '{variant}'",
    Category.INTERNAL, "Binding generation met a residual shape outside the closed set."))

_add(ErrorMessage("CE0003", Severity.ERROR,
    "unknown parse node '{node}'",
    Category.INTERNAL, "The descriptor builder found a parse tree node the grammar cannot produce."))

# Syntax errors - CE01xx range
_add(ErrorMessage("CE0100", Severity.ERROR,
    "syntax error: {detail}",
    Category.SYNTAX, "The declaration file does not match the declaration grammar."))

_add(ErrorMessage("CE0101", Severity.ERROR,
    "invalid escape sequence '{escape}' in string literal",
    Category.SYNTAX, "Only \\n \\t \\r \\\\ \\\" \\' \\0 \\xNN and \\uNNNN are recognized."))

# Structural errors - CE1xxx range
_add(ErrorMessage("CE1001", Severity.ERROR,
    "only enum errors are supported",
    Category.DECLARATION, "Error declarations must be enumerations."))

_add(ErrorMessage("CE1002", Severity.ERROR,
    "only enums with named fields are supported",
    Category.VARIANT, "Variants are either unit variants or carry named fields."))

_add(ErrorMessage("CE1003", Severity.ERROR,
    "inner attributes are not supported in this position",
    Category.DECLARATION, "Use outer attributes (#[...]) instead of inner attributes (#![...])."))

_add(ErrorMessage("CE1004", Severity.ERROR,
    "at least one `#[error = \"msg\"]` attribute is required",
    Category.VARIANT, "Every variant needs a message to render."))

_add(ErrorMessage("CE1005", Severity.ERROR,
    "more than one `#[source]` attribute",
    Category.FIELD, "A variant wraps at most one causing error."))

_add(ErrorMessage("CE1006", Severity.ERROR,
    "more than one `#[location]` attribute",
    Category.FIELD, "A variant captures at most one location."))

_add(ErrorMessage("CE1007", Severity.ERROR,
    "field of `#[source]` must be named `source`",
    Category.FIELD, "The cause field has a fixed name."))

_add(ErrorMessage("CE1008", Severity.ERROR,
    "field of `#[location]` must be named `location`",
    Category.FIELD, "The captured location field has a fixed name."))

_add(ErrorMessage("CE1009", Severity.ERROR,
    "duplicate variant '{name}' (first declared at {prev_loc})",
    Category.VARIANT, "Variant names must be unique within an enum."))

_add(ErrorMessage("CE1010", Severity.ERROR,
    "duplicate field '{name}' in variant '{variant}'",
    Category.FIELD, "Field names must be unique within a variant."))

_add(ErrorMessage("CE1011", Severity.ERROR,
    "'{name}' is reserved and cannot be used as a {what} name",
    Category.DECLARATION, "Python keywords and names used by generated code are not allowed."))

_add(ErrorMessage("CE1012", Severity.ERROR,
    "duplicate declaration '{name}' (first declared at {prev_loc})",
    Category.DECLARATION, "Each enum in a file generates module-level names and must be unique."))

_add(ErrorMessage("CE1013", Severity.ERROR,
    "attribute `#[{name}]` expects a string literal: `#[{name} = \"...\"]`",
    Category.VARIANT, "Message and help attributes take a string literal value."))

_add(ErrorMessage("CE1014", Severity.ERROR,
    "name '{name}' is used by more than one generated item in this file",
    Category.DECLARATION, "Selector values and constructors share the module namespace with enums."))

# Format string errors - CE2xxx range
_add(ErrorMessage("CE2001", Severity.ERROR,
    "malformed format string: unterminated placeholder",
    Category.FORMAT, "A '{' opens a placeholder that is never closed."))

_add(ErrorMessage("CE2002", Severity.ERROR,
    "positional argument in format string, but no arguments were given",
    Category.FORMAT, "Placeholders must name a field or an expression."))

_add(ErrorMessage("CE2003", Severity.ERROR,
    "cannot parse `{expr}` as an expression: {reason}",
    Category.FORMAT, "Non-identifier placeholder arguments must be Python expressions."))

_add(ErrorMessage("CE2004", Severity.ERROR,
    "malformed format string: {reason}",
    Category.FORMAT, "The compiled template is not a valid str.format template."))

# Warnings
_add(ErrorMessage("CW1001", Severity.WARNING,
    "format argument `{name}` is not a field of variant '{variant}'; it is resolved in module scope",
    Category.FORMAT, "Bare identifiers normally name a field of the variant."))

_add(ErrorMessage("CW1002", Severity.WARNING,
    "unknown attribute `#[{name}]` is ignored",
    Category.GENERAL, "The attribute has no meaning for error declarations."))

_add(ErrorMessage("CW1003", Severity.WARNING,
    "duplicate `#[top_level]` attribute",
    Category.DECLARATION, "The marker only needs to appear once."))
