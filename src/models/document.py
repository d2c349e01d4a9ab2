"""
Document-level data models

Type-safe structures passed between the text stages of the pipeline:
span protection, block extraction and ordered-list scanning.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ProtectedSpan:
    """
    A literal code region lifted out of a document

    Attributes:
        id: Index of the span; its placeholder is settings.placeHolder_make(id)
        original: Exact source text of the span, fences and backticks included

    Example:
        For source "Use `x`" the inline code becomes
        ProtectedSpan(id=0, original="`x`")
    """
    id: int
    original: str


@dataclass
class MaskedDocument:
    """
    Result of running the span protector over a document

    Attributes:
        masked: Document text with every protected span replaced by its placeholder
        spans: Protected spans in order of substitution (spans[i].id == i)
    """
    masked: str
    spans: List[ProtectedSpan] = field(default_factory=list)


@dataclass
class BlockHeader:
    """
    A recognised `:::kind{attrs}` header line

    Attributes:
        kind: Lower-cased block kind name
        attributes: Raw text between the braces, or None when there are none
        rest: Text following the header on the same line
        line_number: 1-based source line of the header (for logging)

    Example:
        ":::alert{type:info}Hi:::" at line 3 gives
        BlockHeader(kind="alert", attributes="type:info", rest="Hi:::", line_number=3)
    """
    kind: str
    attributes: Optional[str]
    rest: str
    line_number: int

    @property
    def single_line(self) -> bool:
        """True for the `:::kind{attrs}body:::` form"""
        return bool(self.rest.strip())

    @property
    def body(self) -> str:
        """Body of a single-line header (the text before the trailing :::)"""
        return self.rest.rstrip()[:-3]


@dataclass(frozen=True)
class OrderedListEntry:
    """
    Number and indentation of one ordered-list item as written in the source

    Attributes:
        number: The number the author typed (e.g. 3 for "3. Step")
        indent: Leading whitespace width, tabs counted as four columns
    """
    number: int
    indent: int


@dataclass(frozen=True)
class PreparedDocument:
    """
    Output of the pure text stages, ready for the baseline renderer

    Instances are memoised per source text, so they are immutable.

    Attributes:
        source: The document as the author wrote it
        text: Markdown with blocks carved out into carrier nodes, inline
              extensions rewritten, list indentation normalised and every
              protected span restored
        entries: Ordered-list entries captured from the source, in order
    """
    source: str
    text: str
    entries: Tuple[OrderedListEntry, ...] = ()
