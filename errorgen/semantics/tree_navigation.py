"""Tree navigation utilities for traversing Lark parse trees."""
from __future__ import annotations
from typing import Iterator, List, Optional, Callable
from lark import Tree, Token


def first(children: List[object], pred: Callable) -> Optional[object]:
    """Find first child matching predicate."""
    for ch in children:
        if pred(ch):
            return ch
    return None


def first_name(children: List[object]) -> Optional[Token]:
    """Get first NAME token from children."""
    return first(children, lambda c: isinstance(c, Token) and c.type == "NAME")  # type: ignore[return-value]


def first_token(children: List[object], type_: str) -> Optional[Token]:
    """Get first token of the given terminal type."""
    return first(children, lambda c: isinstance(c, Token) and c.type == type_)  # type: ignore[return-value]


def first_tree(children: List[object], data: str) -> Optional[Tree]:
    """Get first Tree child with specific data tag."""
    return first(children, lambda c: isinstance(c, Tree) and c.data == data)  # type: ignore[return-value]


def trees(children: List[object], *data: str) -> List[Tree]:
    """All Tree children whose data tag is one of `data`."""
    return [c for c in children if isinstance(c, Tree) and c.data in data]


def find_trees_recursive(n: Tree, data: str) -> Iterator[Tree]:
    """Yield every tree node with a specific data tag, in source order."""
    for sub in n.iter_subtrees_topdown():
        if sub.data == data:
            yield sub


def names(t: Tree) -> List[str]:
    """Text of every NAME token directly under `t`."""
    return [str(c) for c in t.children if isinstance(c, Token) and c.type == "NAME"]
