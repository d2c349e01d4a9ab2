"""
Render context and result models

A RenderContext lives for exactly one top-level render. Nested documents
(tab panes, alert bodies, chat messages, timeline entries) reuse it, which is
how heading ids stay unique and list renumbering is batched across the whole
document tree.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..config import AppSettings, appsettings

if TYPE_CHECKING:
    from bs4 import BeautifulSoup


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


@dataclass
class RenderContext:
    """
    Mutable state shared by one top-level render and all its nested renders

    Attributes:
        settings: Application settings in effect for this render
        verbosity: Logging verbosity level (0-3), read by LOG()
        eager_tabs: Realise all tab panes immediately (static export)
        heading_ids: Slug -> number of times it has been handed out
        tabsets: Tab sets registered during dispatch, in document order
        deferred: Work scheduled to run once the outermost render finishes
        list_jobs: Ordered-list renumbering jobs waiting for the batched pass
        depth: Current render nesting depth (0 when idle)
    """
    settings: AppSettings = field(default_factory=lambda: appsettings)
    verbosity: int = 0
    eager_tabs: Optional[bool] = None
    heading_ids: Dict[str, int] = field(default_factory=dict)
    tabsets: List[Any] = field(default_factory=list)
    deferred: List[Callable[[], None]] = field(default_factory=list)
    list_jobs: List[Any] = field(default_factory=list)
    depth: int = 0

    def __post_init__(self) -> None:
        if self.eager_tabs is None:
            self.eager_tabs = self.settings.eager_tabs

    def headingId_make(self, text: str) -> str:
        """
        Hand out a document-unique heading id

        Args:
            text: Heading text

        Returns:
            The slug of text, suffixed with -1, -2, ... on repeats

        Example:
            >>> context = RenderContext()
            >>> context.headingId_make("Intro"), context.headingId_make("Intro")
            ('intro', 'intro-1')
        """
        base = slugify(text) or "section"
        count = self.heading_ids.get(base, 0)
        self.heading_ids[base] = count + 1
        if count == 0:
            return base
        return f"{base}-{count}"

    def deferred_schedule(self, job: Callable[[], None]) -> None:
        """Queue work to run after the outermost render returns"""
        self.deferred.append(job)

    def deferred_flush(self) -> None:
        """Run and clear every queued job, in scheduling order"""
        jobs, self.deferred = self.deferred, []
        for job in jobs:
            job()


@dataclass
class RenderResult:
    """
    Result of a render() call

    Attributes:
        soup: Realised node tree; tab activation keeps mutating it
        context: The context the render ran in
    """
    soup: "BeautifulSoup"
    context: RenderContext

    @property
    def html(self) -> str:
        """Serialise the tree as it currently stands"""
        return str(self.soup)

    @property
    def tabsets(self) -> List[Any]:
        return self.context.tabsets

    def __str__(self) -> str:
        return self.html
