"""
Block extractor for :::kind{attrs} syntax

Carves fenced extension blocks out of a span-protected document and replaces
each with an inert carrier node, so that the baseline Markdown renderer never
sees block bodies.

The extractor operates in two phases:
1. Scanning: one line-oriented pass that recognises block headers and finds
   each block's closing fence, tracking nesting depth, and produces an
   explicit list of segments (literal text or Block)
2. Emission: literal segments are copied, Block segments become carrier nodes

Forms:
- Multi-line: a `:::kind{attrs}` line, the body, then a line holding only
  `:::`. Inner multi-line blocks nest; the body keeps them verbatim and they
  are extracted when the body is rendered as a nested document.
- Single-line: `:::kind{attrs}body:::` (alert, video and link-card only)

Anything that does not form a complete block (unclosed fence, single-line
form of a multi-line kind, empty alert, link-card without url, ...) is left
exactly as written.

Example:
    >>> extractor = BlockExtractor(":::alert{type:info}\\nHello\\n:::\\n")
    >>> [type(segment).__name__ for segment in extractor.parse()]
    ['Block']
"""

import re
from typing import List, Optional, Sequence, Union

from ..config import AppSettings, appsettings
from ..models.blocks import Block
from ..models.document import BlockHeader, ProtectedSpan
from .attributes import attributes_parse, braces_findMatching
from .carrier import carrier_build
from .log import LOG
from .spans import spans_restore


HEADER_PATTERN = re.compile(r'^[ \t]{0,3}:::(?P<kind>[A-Za-z][\w-]*)')
CLOSING_PATTERN = re.compile(r'^[ \t]*:::[ \t]*\r?\n?$')

Segment = Union[str, Block]


class BlockExtractor:
    """
    Extractor for :::kind{attrs} extension blocks

    Handles:
    - Multi-line and single-line block forms
    - Nested blocks (depth tracking on opening headers and closing fences)
    - Per-kind body parsing through the BlockRegistry
    - Restoring protected spans inside extracted bodies
    """

    def __init__(
        self,
        source: str,
        spans: Sequence[ProtectedSpan] = (),
        registry=None,
        settings: AppSettings = appsettings,
    ):
        """
        Initialize extractor with span-protected source text

        Args:
            source: Document text with code regions replaced by placeholders
            spans: Protected spans recorded for source
            registry: Optional BlockRegistry (defaults to the built-in kinds)
            settings: Settings providing the carrier format

        Attributes:
            lines: Source split into lines, line endings kept
            segments: Scan result (filled by parse())
        """
        self.source = source
        self.spans = list(spans)
        self.settings = settings
        self.lines: List[str] = source.splitlines(keepends=True)
        self.segments: List[Segment] = []

        if registry is None:
            from .blocks import BlockRegistry
            registry = BlockRegistry()
        self.registry = registry

    def spans_restoreIn(self, text: str) -> str:
        """Restore the protected spans that fall inside an extracted body"""
        return spans_restore(text, self.spans, self.settings)

    def header_match(self, line: str, line_number: int = 0) -> Optional[BlockHeader]:
        """
        Recognise a block header line

        Args:
            line: Source line (line ending allowed)
            line_number: 1-based line number for logging

        Returns:
            BlockHeader for a multi-line opener or a complete single-line
            block, None for anything else
        """
        match = HEADER_PATTERN.match(line)
        if not match:
            return None

        after = line[match.end():].rstrip('\r\n')
        attributes: Optional[str] = None
        if after.startswith('{'):
            closing = braces_findMatching(after, 0)
            if closing is None:
                return None
            attributes = after[1:closing]
            after = after[closing + 1:]

        header = BlockHeader(
            kind=match.group('kind').lower(),
            attributes=attributes,
            rest=after,
            line_number=line_number,
        )
        if not header.single_line:
            return header
        if attributes is not None and after.rstrip().endswith(':::'):
            return header
        return None

    def closing_is(self, line: str) -> bool:
        """Check whether a line is a bare closing fence"""
        return CLOSING_PATTERN.match(line) is not None

    def fence_findClosing(self, start: int) -> Optional[int]:
        """
        Find the closing fence of a multi-line block

        Args:
            start: Index of the first body line

        Returns:
            Index of the closing line, or None if the block is never closed
        """
        depth = 1
        for index in range(start, len(self.lines)):
            line = self.lines[index]
            if self.closing_is(line):
                depth -= 1
                if depth == 0:
                    return index
                continue
            header = self.header_match(line)
            if header is not None and not header.single_line:
                depth += 1
        return None

    def block_build(self, header: BlockHeader, body: str) -> Optional[Block]:
        """
        Turn a recognised header and its body into a Block

        Args:
            header: Recognised header
            body: Span-masked body text

        Returns:
            Block, or None when the text must be left as written
        """
        spec = self.registry.spec_get(header.kind)
        if spec is None:
            # Carried to dispatch, which reports the unknown kind in place
            return Block(
                kind=header.kind,
                attributes=attributes_parse(header.attributes),
                body=self.spans_restoreIn(body),
            )

        if header.single_line and not spec.single_line:
            LOG(f"Line {header.line_number}: single-line form not allowed for '{header.kind}'", level=2)
            return None

        attributes = attributes_parse(header.attributes, known=spec.keys)
        return spec.build(attributes, body, self.spans_restoreIn)

    def parse(self) -> List[Segment]:
        """
        Scan the source into literal text and Block segments

        Returns:
            Segments in source order; joining literal segments with the
            carriers of Block segments yields the extracted document
        """
        self.segments = []
        literal: List[str] = []

        def literal_flush() -> None:
            if literal:
                self.segments.append(''.join(literal))
                literal.clear()

        index = 0
        while index < len(self.lines):
            line = self.lines[index]
            header = self.header_match(line, index + 1)

            if header is None:
                literal.append(line)
                index += 1
                continue

            if header.single_line:
                block = self.block_build(header, header.body)
                if block is None:
                    literal.append(line)
                else:
                    literal_flush()
                    self.segments.append(block)
                index += 1
                continue

            closing = self.fence_findClosing(index + 1)
            if closing is None:
                LOG(f"Line {header.line_number}: unclosed '{header.kind}' block left as text", level=2)
                literal.append(line)
                index += 1
                continue

            body = ''.join(self.lines[index + 1:closing]).rstrip('\r\n')
            block = self.block_build(header, body)
            if block is None:
                literal.extend(self.lines[index:closing + 1])
            else:
                LOG(f"Line {header.line_number}: extracted '{block.kind}' block", level=3)
                literal_flush()
                self.segments.append(block)
            index = closing + 1

        literal_flush()
        return self.segments

    def extract(self) -> str:
        """
        Scan the source and emit the extracted document

        Returns:
            Source text with every extracted block replaced by its carrier node
        """
        return ''.join(
            segment if isinstance(segment, str) else carrier_build(segment, self.settings)
            for segment in self.parse()
        )
