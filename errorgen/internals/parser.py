"""Lark parser setup for declaration files."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from lark import Lark, Tree

GRAMMAR_PATH = Path(__file__).parent.parent / "grammar.lark"


@lru_cache(maxsize=1)
def get_parser() -> Lark:
    """Build the LALR parser once per process."""
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        lexer="contextual",
        propagate_positions=True,
        maybe_placeholders=False,
    )


def parse_declarations(src: str, dump_parse: bool = False) -> Tree:
    """Parse declaration source into a lark tree.

    Raises:
        lark.UnexpectedInput: on any lexical or grammar error.
    """
    tree = get_parser().parse(src)
    if dump_parse:
        print(tree.pretty())
    return tree
