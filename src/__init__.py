"""
blockdown - Markdown extension blocks, rendered through Python-Markdown

Alerts, tabs, timelines, chats, link cards, charts and videos written as
:::kind{attrs} blocks, plus inline highlight, superscript, subscript,
attributed images and icon links.
"""

__version__ = "1.0.0"

from .lib import BlockRegistry, Compiler, TabSet, document_prepare, render, LOG, state_connectToLogger

__all__ = [
    "BlockRegistry",
    "Compiler",
    "TabSet",
    "document_prepare",
    "render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
