"""
Ordered-list numbering engine

The baseline renderer renumbers ordered lists from their first item and only
recognises nesting at four-space indentation. Authors, however, write their
own numbers ("1.", "2.", "5.") and often indent nested lists by two spaces.
This module reconciles the two:

Source half (text stages):
- ListScanner walks the document tracking which list items are open, the
  way the baseline renderer will see them (blockquote prefixes, paragraphs
  that lists cannot interrupt, indented code)
- entries_collect() records the number and indentation the author wrote for
  every ordered-list item
- indentation_normalize() raises shallow nested ordered items to the
  indentation the renderer needs; no line is ever moved left

Tree half (deferred, after dispatch):
- items_collect() lists a document's rendered ordered-list items in
  depth-first order, matching the source order
- items_renumber() writes the source numbers back, in one batched pass over
  every job queued during a top-level render
"""

import re
from typing import List, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from ..config import AppSettings, appsettings
from ..models.document import OrderedListEntry
from .log import LOG


ORDERED_ITEM = re.compile(r'^(?P<indent>[ \t]*)(?P<number>\d+)\.[ \t]+')
BULLET_ITEM = re.compile(r'^(?P<indent>[ \t]*)[-*+][ \t]+')
QUOTE_PREFIX = re.compile(r'^(?:[ ]{0,3}>[ ]?)+')
BOUNDARY = re.compile(r'^ {0,3}(?:#{1,6}(?:[ \t]|$)|=+[ \t]*$|-{3,}[ \t]*$|\*{3,}[ \t]*$)')
CODE_INDENT = 4

ListJob = Tuple[List[Tag], Sequence[OrderedListEntry]]


def indent_measure(indent: str) -> int:
    """Width of leading whitespace, tabs counting as four columns"""
    return len(indent.replace('\t', '    '))


class ListScanner:
    """
    Line scanner over the list structure of a document

    Keeps a stack of open list items as (source indent, indent after
    normalisation). A line only counts as a list item where the renderer
    will start one: inside an open list, or after a blank line, heading or
    code block, at less than code indentation. Blockquote prefixes are
    stripped before measuring, and a change of quote depth closes every list.

    Attributes:
        entries: Ordered-list entries in source order (filled by scan())
        lines: Lines with shallow nested ordered items raised
    """

    def __init__(self, width: int = 4, settings: AppSettings = appsettings) -> None:
        self.width = width
        self.settings = settings
        self.entries: List[OrderedListEntry] = []
        self.lines: List[str] = []

    def boundary_is(self, text: str) -> bool:
        """Unindented lines that end a paragraph without being part of it"""
        return bool(BOUNDARY.match(text)) or text.startswith(self.settings.placeholder_prefix)

    def scan(self, text: str) -> "ListScanner":
        """
        Scan text, filling entries and lines

        Args:
            text: Extracted, span-masked document text

        Returns:
            self
        """
        self.entries = []
        self.lines = []
        stack: List[Tuple[int, int]] = []
        previous = 'blank'
        quote_depth = 0

        for line in text.split('\n'):
            quote = QUOTE_PREFIX.match(line)
            prefix = quote.group(0) if quote else ''
            rest = line[len(prefix):]
            if prefix.count('>') != quote_depth:
                quote_depth = prefix.count('>')
                stack = []
                previous = 'blank'

            if not rest.strip():
                previous = 'blank'
                self.lines.append(line)
                continue

            item = ORDERED_ITEM.match(rest) or BULLET_ITEM.match(rest)
            if item is None:
                previous, stack = self.text_follow(rest, previous, stack)
                self.lines.append(line)
                continue

            source = indent_measure(item.group('indent'))
            in_list = bool(stack)
            if not in_list and (source >= CODE_INDENT or previous == 'text'):
                # Indented code, or a paragraph line: lists do not interrupt paragraphs
                previous = 'code' if source >= CODE_INDENT and previous != 'text' else 'text'
                self.lines.append(line)
                continue

            while stack and stack[-1][0] >= source:
                stack.pop()
            normalized = source if not stack else max(source, stack[-1][1] + self.width)
            ordered = 'number' in item.groupdict()
            if not ordered:
                normalized = source
            stack.append((source, normalized))
            previous = 'list'

            if ordered:
                self.entries.append(OrderedListEntry(number=int(item.group('number')), indent=source))
                if normalized != source:
                    line = prefix + ' ' * normalized + rest[len(item.group('indent')):]
            self.lines.append(line)

        return self

    def text_follow(
        self, rest: str, previous: str, stack: List[Tuple[int, int]]
    ) -> Tuple[str, List[Tuple[int, int]]]:
        """State after a line that is neither blank nor a list item"""
        indent = indent_measure(rest[:len(rest) - len(rest.lstrip())])
        if indent == 0 and self.boundary_is(rest):
            return 'blank', []
        if indent == 0 and previous == 'blank':
            return 'text', []
        if not stack and indent >= CODE_INDENT and previous in ('blank', 'code'):
            return 'code', stack
        return 'text', stack


def entries_collect(text: str, settings: AppSettings = appsettings) -> List[OrderedListEntry]:
    """
    Capture the numbers the author wrote for ordered-list items

    Expects extracted, span-masked text, so code and extension bodies are
    not scanned.

    Args:
        text: Document text

    Returns:
        One OrderedListEntry per ordered-list item, in source order

    Example:
        >>> entries_collect("1. a\\n  3. b\\n")
        [OrderedListEntry(number=1, indent=0), OrderedListEntry(number=3, indent=2)]
    """
    return ListScanner(settings=settings).scan(text).entries


def indentation_normalize(text: str, width: int = 4, settings: AppSettings = appsettings) -> str:
    """
    Raise shallow nested ordered-list items to multiples of width

    A nested item is indented at least `width` columns past its parent item.
    Lines are never moved left, and items outside an open list (including
    indented code) are left alone. Normalised text normalises to itself.

    Args:
        text: Document text
        width: Spaces per nesting level

    Returns:
        Text with nested ordered-list items re-indented

    Example:
        >>> indentation_normalize("1. a\\n  1. b\\n2. c")
        '1. a\\n    1. b\\n2. c'
    """
    return '\n'.join(ListScanner(width, settings).scan(text).lines)


def items_collect(root: BeautifulSoup) -> List[Tag]:
    """
    Ordered-list items of a rendered document in depth-first order

    Must run before carrier nodes are dispatched, so nested documents'
    lists (numbered by their own jobs) are not included.
    """
    return [item for item in root.find_all('li') if item.parent is not None and item.parent.name == 'ol']


def items_renumber(jobs: Sequence[ListJob]) -> int:
    """
    Write source numbers onto rendered list items

    Each item gets value="<n>" and the has-list-number class. Items beyond
    the captured entries fall back to sequential numbering. All numbers are
    computed before any node is touched.

    Args:
        jobs: (items, entries) pairs queued during a render

    Returns:
        Number of items renumbered
    """
    updates: List[Tuple[Tag, int]] = []
    for items, entries in jobs:
        for index, item in enumerate(items):
            number = entries[index].number if index < len(entries) else index + 1
            updates.append((item, number))

    for item, number in updates:
        item['value'] = str(number)
        classes = item.get('class') or []
        if 'has-list-number' not in classes:
            item['class'] = classes + ['has-list-number']

    LOG(f"Renumbered {len(updates)} list items in {len(jobs)} lists", level=3)
    return len(updates)
