"""
Models package for blockdown

Contains data structures and type definitions for the rendering pipeline.
"""

from .state import ProgramState, SourceDocument, pipeline
from .document import ProtectedSpan, MaskedDocument, BlockHeader, OrderedListEntry, PreparedDocument
from .blocks import (
    ALERT_TYPES,
    EXTRACTION_ORDER,
    AttributeSet,
    Block,
    BlockKind,
    BlockSpec,
    ChatMessage,
    ChatPerson,
    PayloadError,
    TabPane,
    TimelineItem,
)
from .context import RenderContext, RenderResult, slugify

__all__ = [
    "ProgramState",
    "SourceDocument",
    "pipeline",
    "ProtectedSpan",
    "MaskedDocument",
    "BlockHeader",
    "OrderedListEntry",
    "PreparedDocument",
    "ALERT_TYPES",
    "EXTRACTION_ORDER",
    "AttributeSet",
    "Block",
    "BlockKind",
    "BlockSpec",
    "ChatMessage",
    "ChatPerson",
    "PayloadError",
    "TabPane",
    "TimelineItem",
    "RenderContext",
    "RenderResult",
    "slugify",
]
