"""
Attribute grammar parser

Parses the text between the braces of an extension header, e.g. the
`type:warning, title:Heads up` in `:::alert{type:warning, title:Heads up}`.

Grammar:
- Comma-separated `name:value` pairs; names are matched case-insensitively
  and stored lower-cased.
- A value starting with ' or " runs to the matching unescaped quote and may
  contain commas and braces.
- A bare value runs to the next comma, except for free-text keys (caption,
  description), which run to the next `, <recognised-key>:` so they can
  hold literal commas.
- Malformed fragments are skipped. The parser never raises.

Example:
    >>> attributes_parse("caption:A, B, width:50", known=["caption", "width"])
    {'caption': 'A, B', 'width': '50'}
"""

import re
from typing import Iterable, Optional, Tuple

from ..models.blocks import AttributeSet


FREE_TEXT_KEYS: Tuple[str, ...] = ("caption", "description")

KEY_PATTERN = re.compile(r'\s*([A-Za-z][\w-]*)\s*:')


def quoted_read(raw: str, position: int) -> Tuple[Optional[str], int]:
    """
    Read a quoted value starting at an opening quote

    Args:
        raw: Attribute text
        position: Index of the opening quote

    Returns:
        (value, index after the closing quote), or (None, position) when the
        quote is never closed
    """
    quote = raw[position]
    chars = []
    index = position + 1
    while index < len(raw):
        char = raw[index]
        if char == '\\' and index + 1 < len(raw) and raw[index + 1] in (quote, '\\'):
            chars.append(raw[index + 1])
            index += 2
            continue
        if char == quote:
            return ''.join(chars), index + 1
        chars.append(char)
        index += 1
    return None, position


def freeText_findEnd(raw: str, position: int, known: Optional[Iterable[str]]) -> int:
    """Find where a free-text value ends: at the next `, <key>:` or the end"""
    if known:
        names = '|'.join(re.escape(name) for name in known)
        pattern = re.compile(rf',\s*(?:{names})\s*:', re.IGNORECASE)
    else:
        pattern = re.compile(r',\s*[A-Za-z][\w-]*\s*:')
    match = pattern.search(raw, position)
    return match.start() if match else len(raw)


def attributes_parse(
    raw: Optional[str],
    known: Optional[Iterable[str]] = None,
    free_text: Iterable[str] = FREE_TEXT_KEYS,
) -> AttributeSet:
    """
    Parse header attribute text into an AttributeSet

    Args:
        raw: Text between the header braces (None or empty gives an empty set)
        known: Keys recognised for the block kind; they delimit free-text
               values. When None any `name:` delimits them.
        free_text: Keys whose bare values may contain commas

    Returns:
        AttributeSet of lower-cased names to stripped values. Unknown keys are
        kept; later duplicates override earlier ones.
    """
    attributes = AttributeSet()
    if not raw:
        return attributes

    free_text = {name.lower() for name in free_text}
    known = [name.lower() for name in known] if known is not None else None
    length = len(raw)
    position = 0

    while position < length:
        while position < length and raw[position] in ', \t\r\n':
            position += 1
        if position >= length:
            break

        key = KEY_PATTERN.match(raw, position)
        if not key:
            # Not a name:value pair - skip the fragment
            comma = raw.find(',', position)
            position = length if comma < 0 else comma + 1
            continue

        name = key.group(1).lower()
        position = key.end()
        while position < length and raw[position] in ' \t':
            position += 1

        if position < length and raw[position] in '"\'':
            value, after = quoted_read(raw, position)
            if value is not None:
                attributes[name] = value
                comma = raw.find(',', after)
                position = length if comma < 0 else comma + 1
                continue

        if name in free_text:
            end = freeText_findEnd(raw, position, known)
        else:
            end = raw.find(',', position)
            end = length if end < 0 else end

        attributes[name] = raw[position:end].strip()
        position = end + 1

    return attributes


def braces_findMatching(text: str, start: int) -> Optional[int]:
    """
    Find the brace closing the one at text[start]

    Quotes only count when they open a value (the previous non-blank
    character is a colon), so apostrophes in bare values are harmless.

    Args:
        text: Header line
        start: Index of the opening "{"

    Returns:
        Index of the matching "}", or None when unbalanced
    """
    depth = 0
    quote = None
    previous = ''
    index = start
    while index < len(text):
        char = text[index]
        if quote:
            if char == '\\':
                index += 2
                continue
            if char == quote:
                quote = None
                previous = char
        elif char in '"\'' and previous == ':':
            quote = char
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return index
        if not quote and not char.isspace():
            previous = char
        index += 1
    return None
