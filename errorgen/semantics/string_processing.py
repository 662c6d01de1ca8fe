"""String literal decoding for declaration files."""
from __future__ import annotations
from typing import List, Tuple

from errorgen.semantics.exceptions import InvalidEscapeError


SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '0': '\0',
}


def process_string_escapes(raw_string: str) -> Tuple[str, List[int]]:
    r"""Process escape sequences in the body of a string literal.

    Handles C-style escape sequences:
    - \n (newline), \t (tab), \r (carriage return)
    - \\ (backslash), \" (double quote), \' (single quote)
    - \0 (null character)
    - \xNN (hexadecimal escape, e.g., \x41 = 'A')
    - \uNNNN (Unicode escape, e.g., \u0041 = 'A')

    Args:
        raw_string: The literal body without its surrounding quotes

    Returns:
        The decoded string and, for every decoded character plus one
        end-of-string slot, the index in `raw_string` it came from. The map
        lets offsets found in the decoded text point back into the source.

    Raises:
        InvalidEscapeError: for an unknown or truncated escape sequence
    """
    result: List[str] = []
    index_map: List[int] = []
    i = 0
    while i < len(raw_string):
        ch = raw_string[i]
        if ch != '\\':
            result.append(ch)
            index_map.append(i)
            i += 1
            continue

        if i + 1 >= len(raw_string):
            raise InvalidEscapeError('\\', i)
        next_char = raw_string[i + 1]

        if next_char in SIMPLE_ESCAPES:
            result.append(SIMPLE_ESCAPES[next_char])
            index_map.append(i)
            i += 2
        elif next_char in ('x', 'u'):
            width = 2 if next_char == 'x' else 4
            digits = raw_string[i + 2:i + 2 + width]
            try:
                if len(digits) != width:
                    raise ValueError(digits)
                result.append(chr(int(digits, 16)))
            except ValueError:
                raise InvalidEscapeError(raw_string[i:i + 2 + width], i) from None
            index_map.append(i)
            i += 2 + width
        else:
            raise InvalidEscapeError(raw_string[i:i + 2], i)

    index_map.append(len(raw_string))
    return ''.join(result), index_map
