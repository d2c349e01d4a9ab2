"""
blockdown - Markdown extension blocks, rendered through Python-Markdown

Preprocessing and dispatch pipeline for :::kind{attrs} blocks and inline
extensions.
"""

__version__ = "1.0.0"

from .spans import spans_protect, spans_restore
from .attributes import attributes_parse
from .extractor import BlockExtractor
from .inline import InlineTransformer
from .blocks import BlockRegistry
from .dispatch import Dispatcher
from .tabs import TabSet
from .compiler import Compiler, document_prepare, render
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "spans_protect",
    "spans_restore",
    "attributes_parse",
    "BlockExtractor",
    "InlineTransformer",
    "BlockRegistry",
    "Dispatcher",
    "TabSet",
    "Compiler",
    "document_prepare",
    "render",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
