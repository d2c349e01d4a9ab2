"""
Span protector

Lifts literal code regions out of a document before any extension syntax is
recognised, so that nothing inside a fenced code block or an inline code span
is ever rewritten. Each region is replaced by a unique placeholder token and
restored, exactly once, after the text stages have run.

Recognised regions:
- Fenced code blocks: three or more backticks or tildes, closed by a fence
  of the same character that is at least as long. An unterminated fence
  runs to the end of the document.
- Inline code spans: a run of backticks, non-empty content on one line,
  closed by a run of the same length.

Example:
    >>> masked = spans_protect("Use `==x==` here")
    >>> masked.masked
    'Use \\x00SPAN_0\\x00 here'
    >>> spans_restore(masked.masked, masked.spans)
    'Use `==x==` here'
"""

import re
from typing import List, Optional, Sequence

from ..config import AppSettings, appsettings
from ..models.document import MaskedDocument, ProtectedSpan


FENCE_OPEN = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})')
FENCE_CLOSE = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*\r?\n?$')
INLINE_CODE = re.compile(r'(?<!`)(`+)(?!`)([^\n]+?)(?<!`)\1(?!`)')


def placeHolder_pattern(settings: AppSettings = appsettings) -> re.Pattern:
    """Regex matching any span placeholder token"""
    return re.compile(
        re.escape(settings.placeholder_prefix) + r'\d+' + re.escape(settings.placeholder_suffix)
    )


def fence_findClosing(lines: Sequence[str], start: int, char: str, length: int) -> Optional[int]:
    """
    Find the line that closes a fenced code block

    Args:
        lines: Document lines (with line endings)
        start: Index of the first line after the opening fence
        char: Fence character ("`" or "~")
        length: Length of the opening fence

    Returns:
        Index of the closing line, or None if the fence is never closed
    """
    for index in range(start, len(lines)):
        match = FENCE_CLOSE.match(lines[index])
        if not match:
            continue
        fence = match.group('fence')
        if fence[0] == char and len(fence) >= length:
            return index
    return None


class SpanProtector:
    """
    Replaces code regions with placeholders, recording each original

    One instance protects one document; spans are numbered in order of
    substitution.
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings
        self.spans: List[ProtectedSpan] = []
        self.existing = placeHolder_pattern(settings)

    def span_add(self, original: str) -> str:
        """Record a protected span and return its placeholder"""
        span = ProtectedSpan(id=len(self.spans), original=original)
        self.spans.append(span)
        return self.settings.placeHolder_make(span.id)

    def inlineCode_protect(self, text: str) -> str:
        """Protect inline code spans, leaving existing placeholders alone"""
        pieces = re.split(f"({self.existing.pattern})", text)
        for index, piece in enumerate(pieces):
            if index % 2:
                continue
            pieces[index] = INLINE_CODE.sub(lambda m: self.span_add(m.group(0)), piece)
        return ''.join(pieces)

    def protect(self, document: str) -> MaskedDocument:
        """
        Protect every code region of a document

        Args:
            document: Raw document text

        Returns:
            MaskedDocument with placeholders and the recorded spans
        """
        lines = document.splitlines(keepends=True)
        result: List[str] = []
        pending: List[str] = []

        def pending_flush() -> None:
            if pending:
                result.append(self.inlineCode_protect(''.join(pending)))
                pending.clear()

        index = 0
        while index < len(lines):
            opening = FENCE_OPEN.match(lines[index])
            if not opening:
                pending.append(lines[index])
                index += 1
                continue

            pending_flush()
            fence = opening.group('fence')
            closing = fence_findClosing(lines, index + 1, fence[0], len(fence))
            end = closing if closing is not None else len(lines) - 1
            block = ''.join(lines[index:end + 1])

            # The line ending stays outside the span so the placeholder keeps its own line
            trailer = ''
            if block.endswith('\r\n'):
                trailer = '\r\n'
            elif block.endswith('\n'):
                trailer = '\n'
            original = block[:len(block) - len(trailer)]

            result.append(self.span_add(original) + trailer)
            index = end + 1

        pending_flush()
        return MaskedDocument(masked=''.join(result), spans=list(self.spans))


def spans_protect(document: str, settings: AppSettings = appsettings) -> MaskedDocument:
    """
    Shield literal code regions of a document behind placeholder tokens

    Args:
        document: Raw document text
        settings: Settings providing the placeholder format

    Returns:
        MaskedDocument whose spans restore the document exactly
    """
    return SpanProtector(settings).protect(document)


def spans_restore(
    text: str, spans: Sequence[ProtectedSpan], settings: AppSettings = appsettings
) -> str:
    """
    Put protected spans back in place of their placeholders

    Substitution runs once, from the last span to the first. Placeholders
    that are no longer present (their span was restored inside an extracted
    block body) are skipped.

    Args:
        text: Text containing placeholder tokens
        spans: Spans recorded by spans_protect

    Returns:
        Text with every placeholder replaced by its original
    """
    for span in reversed(spans):
        text = text.replace(settings.placeHolder_make(span.id), span.original)
    return text
