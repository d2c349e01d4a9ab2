"""
Compiler for blockdown documents

Runs the whole pipeline for one document:

    raw text
      → span protection          (spans.py)
      → block extraction         (extractor.py)
      → inline transformation    (inline.py)
      → list scan + re-indent    (lists.py)
      → span restoration
      → baseline Markdown render (Python-Markdown)
      → node tree                (BeautifulSoup)
      → dispatch                 (dispatch.py, recursing through render())
      → deferred list renumbering, once per top-level render

The text stages are pure and memoised per document text. render() is the
single, reentrant entry point: nested documents (tab panes, alert bodies,
chat messages, timeline entries) come back through it with the same
RenderContext.
"""

import html
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import markdown
from bs4 import BeautifulSoup

from ..config import AppSettings, appsettings
from ..models.context import RenderContext, RenderResult
from ..models.document import PreparedDocument
from .blocks import BlockRegistry
from .dispatch import Dispatcher
from .extractor import BlockExtractor
from .inline import InlineTransformer
from .lists import entries_collect, indentation_normalize, items_collect, items_renumber
from .log import LOG, state_connectToLogger
from .spans import spans_protect, spans_restore


REGISTRY = BlockRegistry()

# Settings instance id -> (settings, memoised text stages); the settings are
# held so that their id is never reused by another instance
PREPARERS: Dict[int, Tuple[AppSettings, Callable[[str], PreparedDocument]]] = {}


def preparer_make(settings: AppSettings) -> Callable[[str], PreparedDocument]:
    """Build the memoised text stages for one settings instance"""

    @lru_cache(maxsize=settings.cache_size)
    def document_prepareWith(document: str) -> PreparedDocument:
        masked = spans_protect(document, settings)
        extracted = BlockExtractor(masked.masked, masked.spans, registry=REGISTRY, settings=settings).extract()
        transformed = InlineTransformer(settings).transform(extracted)
        entries = entries_collect(transformed, settings)
        normalized = indentation_normalize(transformed, settings.list_indent_width, settings)
        text = spans_restore(normalized, masked.spans, settings)
        return PreparedDocument(source=document, text=text, entries=tuple(entries))

    return document_prepareWith


def document_prepare(document: str, settings: AppSettings = appsettings) -> PreparedDocument:
    """
    Run the text stages of the pipeline over a document

    Results are memoised per settings instance, keyed by the exact text.

    Args:
        document: Raw document text
        settings: Settings for placeholders, carriers and list indentation

    Returns:
        PreparedDocument holding Markdown for the baseline renderer and the
        ordered-list entries captured from the source

    Example:
        >>> document_prepare("==hi==").text
        '<mark>hi</mark>'
    """
    entry = PREPARERS.get(id(settings))
    if entry is None:
        entry = (settings, preparer_make(settings))
        PREPARERS[id(settings)] = entry
    return entry[1](document)


def baseline_render(text: str, settings: AppSettings = appsettings) -> str:
    """Render prepared Markdown to HTML with Python-Markdown"""
    return markdown.markdown(
        text,
        extensions=list(settings.markdown_extensions),
        extension_configs=dict(settings.markdown_extension_configs),
        output_format="html",
    )


class Compiler:
    """
    Compiles blockdown documents to HTML node trees and standalone pages

    Responsibilities:
    - Run the memoised text stages and the baseline renderer
    - Queue ordered-list renumbering for the deferred batch pass
    - Hand the tree to the Dispatcher
    - Wrap rendered documents into standalone HTML pages (command line)
    """

    def __init__(self, context: Optional[RenderContext] = None, registry: Optional[BlockRegistry] = None) -> None:
        """
        Initialize compiler

        Args:
            context: Render context (a fresh one when omitted)
            registry: Block registry (the shared built-in one when omitted)
        """
        self.context = context or RenderContext()
        self.settings = self.context.settings
        self.registry = registry or REGISTRY

    def document_compile(self, document: str) -> BeautifulSoup:
        """
        Compile one document (top-level or nested) to a node tree

        Args:
            document: Raw document text

        Returns:
            Dispatched node tree; list numbers are written later, when the
            outermost render finishes
        """
        prepared = document_prepare(document, self.settings)
        soup = BeautifulSoup(baseline_render(prepared.text, self.settings), "html.parser")

        if self.settings.renumber_lists:
            items = items_collect(soup)
            if items:
                self.context.list_jobs.append((items, prepared.entries))

        dispatcher = Dispatcher(
            self.context,
            realize=lambda nested, context: render(nested, context).soup,
            registry=self.registry,
        )
        return dispatcher.dispatch(soup)

    def htmlDocument_build(self, content: str, title: str) -> str:
        """
        Build a complete HTML page around rendered content

        Args:
            content: Rendered document HTML
            title: Page title

        Returns:
            Complete HTML document
        """
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(title)}</title>
</head>
<body>
<article class="blockdown">
{content}
</article>
</body>
</html>
"""

    def compile(self, document: str, output_file: Path, title: str) -> Dict[str, Any]:
        """
        Render a document and write it as a standalone page

        Args:
            document: Raw document text
            output_file: Page path (parent directories are created)
            title: Page title

        Returns:
            dict with the output file, title and tab set count
        """
        result = render(document, self.context)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(self.htmlDocument_build(result.html, title), encoding="utf-8")
        LOG(f"Wrote {output_file}", level=2)
        return {
            "status": True,
            "output_file": str(output_file),
            "title": title,
            "tabsets": len(result.tabsets),
        }


def render(document: str, context: Optional[RenderContext] = None) -> RenderResult:
    """
    Render a document, or a nested document, to a node tree

    Called without a context this is a top-level render: a fresh context
    resets heading ids and tab sets. Nested documents pass the context they
    belong to. When the outermost call returns, queued list renumbering runs
    as one batched pass.

    Args:
        document: Raw document text
        context: Context to render in

    Returns:
        RenderResult with the realised tree

    Example:
        >>> result = render(":::alert{type:info}\\nHello\\n:::")
        >>> result.soup.find("div", class_="alert-info") is not None
        True
    """
    if context is None:
        context = RenderContext()

    outermost = context.depth == 0
    if outermost:
        state_connectToLogger(context)

    context.depth += 1
    try:
        soup = Compiler(context).document_compile(document)
    finally:
        context.depth -= 1

    if outermost:
        if context.list_jobs:
            jobs, context.list_jobs = context.list_jobs, []
            context.deferred_schedule(lambda: items_renumber(jobs))
        context.deferred_flush()

    return RenderResult(soup=soup, context=context)
