"""Exceptions raised while building error descriptors."""
from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from errorgen.internals.errors import ErrorMessage
    from errorgen.internals.report import Span


class FormatStringError(Exception):
    """Raised when a message literal is not a valid format string.

    `offset` and `length` locate the offending text inside the decoded
    literal; the descriptor builder maps them back to a source span.
    """
    def __init__(self, error: 'ErrorMessage', offset: int, length: int = 1, **kwargs):
        super().__init__(error.text.format(**kwargs))
        self.error = error
        self.offset = offset
        self.length = length
        self.kwargs = kwargs


class DescriptorError(Exception):
    """Raised when a declaration violates a structural rule."""
    def __init__(self, error: 'ErrorMessage', span: Optional['Span'] = None, **kwargs):
        super().__init__(error.text.format(**kwargs))
        self.error = error
        self.span = span
        self.kwargs = kwargs


class InvalidEscapeError(Exception):
    """Raised when a string literal contains an unknown escape sequence."""
    def __init__(self, escape: str, offset: int):
        super().__init__(f"invalid escape sequence '{escape}'")
        self.escape = escape
        self.offset = offset
