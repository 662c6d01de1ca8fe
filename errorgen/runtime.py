"""Support code imported by modules that errorgen generates.

Generated modules reach this module as ``_eg_rt``. It provides:

- ``ErrorEnum``, the base class of every generated error enumeration;
- ``Help`` and the ``Request`` data-request channel used to pull help text
  out of any error in a causation chain;
- ``Location`` capture for ``#[location]`` fields;
- chain traversal (``error_source``, ``sources``) and ``render``;
- the binding vocabulary: ``Shape``, ``shape_of`` and ``extract_cause``
  used by generated ``bind()`` methods, and the ``context``,
  ``with_context`` and ``ensure`` helpers used at call sites.

Nothing here keeps state between calls; everything is safe to use from
several threads at once.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Any, Callable, ClassVar, Iterator, NoReturn, Optional, TypeVar

T = TypeVar("T")


class UnreachableError(RuntimeError):
    """Generated code reached a branch that a valid error value cannot reach."""


def unreachable(value: object) -> NoReturn:
    raise UnreachableError(f"{type(value).__qualname__} is not a variant of its error enum")


def render(value: object) -> str:
    """``str(value)``; generated modules call it so user names cannot shadow the builtin."""
    return str(value)


# ---------------------------------------------------------------------------
# Locations


@dataclass(frozen=True)
class Location:
    """Source position where an error value was built."""
    filename: str
    lineno: int
    function: str = "<module>"

    def __str__(self) -> str:
        return f"{self.filename}:{self.lineno}"


def capture_location(depth: int = 1) -> Location:
    """Location of the frame `depth` levels above the caller.

    Frames belonging to this module are skipped, so a location captured
    inside ``context`` or ``ensure`` points at the user's code.
    """
    frame = sys._getframe(depth + 1)
    while frame is not None and frame.f_code.co_filename == __file__:
        frame = frame.f_back
    if frame is None:
        return Location("<unknown>", 0)
    return Location(frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name)


# ---------------------------------------------------------------------------
# Auxiliary data


class Help:
    """Help text attached to an error variant."""
    __slots__ = ("msg",)

    def __init__(self, msg: str):
        self.msg = msg

    def __str__(self) -> str:
        return self.msg

    def __repr__(self) -> str:
        return f"Help({self.msg!r})"


class Request:
    """A request for one kind of auxiliary data, answered by ``provide``.

    Only the first value offered for the requested kind is kept; factories
    for other kinds are never called.
    """

    def __init__(self, kind: type):
        self.kind = kind
        self.value: Any = None
        self.fulfilled = False

    def provide_value(self, kind: type, value: Any) -> "Request":
        if kind is self.kind and not self.fulfilled:
            self.value = value
            self.fulfilled = True
        return self

    def provide_value_with(self, kind: type, factory: Callable[[], Any]) -> "Request":
        if kind is self.kind and not self.fulfilled:
            self.value = factory()
            self.fulfilled = True
        return self


def request_value(kind: type[T], error: BaseException) -> Optional[T]:
    """Ask `error` for a value of `kind`; foreign exceptions never answer."""
    if not isinstance(error, ErrorEnum):
        return None
    request = Request(kind)
    error.provide(request)
    return request.value if request.fulfilled else None


# ---------------------------------------------------------------------------
# Error enumerations and chains


def _rebuild(cls: type, state: dict) -> "ErrorEnum":
    error = cls.__new__(cls)
    error.__dict__.update(state)
    return error


class ErrorEnum(Exception):
    """Base class of generated error enumerations.

    Each generated enum overrides ``__str__``; its variant classes override
    ``_eg_render`` and, where declared, ``cause`` and ``provide``.
    ``repr()`` renders exactly like ``str()``.
    """

    top_level: ClassVar[bool] = False
    variants: ClassVar[dict[str, type]] = {}

    def cause(self) -> Optional[BaseException]:
        """The error this value wraps, if its variant declares one."""
        return None

    def provide(self, request: Request) -> None:
        """Answer a data request; the default answers nothing."""
        return None

    def _eg_render(self, out: list[str]) -> None:
        # Overridden by every variant class
        unreachable(self)

    def __repr__(self) -> str:
        return self.__str__()

    def __reduce__(self):
        return _rebuild, (type(self), self.__dict__.copy())


def error_source(error: BaseException) -> Optional[BaseException]:
    """Direct cause of `error`: ``cause()`` for enums, ``__cause__`` otherwise."""
    if isinstance(error, ErrorEnum):
        return error.cause()
    return error.__cause__


def sources(error: BaseException) -> Iterator[BaseException]:
    """Yield `error` and then every transitive cause, outermost first."""
    seen: set[int] = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = error_source(current)


# ---------------------------------------------------------------------------
# Binding


class Shape(Enum):
    """What a failed operation handed to ``bind()``."""
    ERROR = "error"          # an exception of the variant's declared cause type
    ANY_ERROR = "any_error"  # an exception of any other type
    EMPTY = "empty"          # None, an empty optional


def shape_of(residual: Optional[BaseException], cause_type: Any = None) -> Shape:
    if residual is None:
        return Shape.EMPTY
    if not isinstance(residual, BaseException):
        raise TypeError(f"cannot bind a successful value of type {type(residual).__qualname__}")
    if cause_type is not None and isinstance(residual, cause_type):
        return Shape.ERROR
    return Shape.ANY_ERROR


_EXTRACT: dict[Shape, Callable[[Optional[BaseException]], Optional[BaseException]]] = {
    Shape.ERROR: lambda residual: residual,
    Shape.ANY_ERROR: lambda residual: residual,
    Shape.EMPTY: lambda residual: None,
}


def extract_cause(selector: Any, residual: Optional[BaseException]) -> Optional[BaseException]:
    """Classify `residual` and return the error it carries.

    `selector` is a generated selector value; its ``shapes`` attribute lists
    the shapes its variant can be built from.

    Raises:
        TypeError: when the variant cannot be built from this shape.
    """
    shape = shape_of(residual, selector.cause_type)
    if shape not in selector.shapes:
        expected = getattr(selector.cause_type, "__qualname__", repr(selector.cause_type))
        got = "None" if residual is None else type(residual).__qualname__
        raise TypeError(f"{type(selector).__qualname__} needs a {expected} cause, got {got}")
    return _EXTRACT[shape](residual)


def _catches(selector: Any, catch: tuple[type[BaseException], ...]) -> tuple[type[BaseException], ...]:
    if catch:
        return catch
    cause_type = getattr(selector, "cause_type", None)
    return (cause_type,) if cause_type is not None else (Exception,)


class context:
    """Re-raise exceptions from the block as the selector's variant.

    ``with context(Open(file=path)): ...`` turns an exception accepted by the
    selector (or one of the `catch` types) into ``selector.bind(exc)``,
    chained with ``from``. Other exceptions pass through unchanged.
    """

    def __init__(self, selector: Any, *catch: type[BaseException]):
        self.selector = selector
        self.catch = _catches(selector, catch)

    def __enter__(self) -> "context":
        return self

    def __exit__(self, exc_type: Optional[type[BaseException]], exc: Optional[BaseException],
                 tb: Optional[TracebackType]) -> bool:
        if exc is None or not isinstance(exc, self.catch):
            return False
        raise self.selector.bind(exc) from exc


class with_context:
    """Like ``context`` but builds the selector only when the block fails."""

    def __init__(self, factory: Callable[[], Any], *catch: type[BaseException]):
        self.factory = factory
        self.catch = catch

    def __enter__(self) -> "with_context":
        return self

    def __exit__(self, exc_type: Optional[type[BaseException]], exc: Optional[BaseException],
                 tb: Optional[TracebackType]) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        selector = self.factory()
        if not isinstance(exc, _catches(selector, self.catch)):
            return False
        raise selector.bind(exc) from exc


def ensure(value: Optional[T], selector: Any) -> T:
    """Return `value`, or raise ``selector.bind(None)`` when it is None."""
    if value is None:
        raise selector.bind(None)
    return value
