"""
Inline transformer

Rewrites inline extension syntax into HTML elements that the baseline
Markdown renderer passes through untouched:

    ==text==                  <mark>text</mark>
    ^text^                    <sup>text</sup>
    ~text~                    <sub>text</sub>
    ![alt](url){attrs}        <img> with data-image-* attributes
    [text](url "title")       <a href title>
    [text](url){icon}         <a href data-icon>

`~~text~~` is left for the baseline renderer (pymdownx.tilde).

HTML tags already in the text (carrier nodes, author HTML, earlier output of
this transformer) are masked while the rules run, so running the transformer
twice gives the same result as running it once. Link destinations are masked
while the mark rules run, so `~` and `^` inside a URL stay literal.
"""

import html
import re
from typing import Callable, List, Tuple

from ..config import AppSettings, appsettings
from .attributes import attributes_parse


TAG_PATTERN = re.compile(r'</?[A-Za-z][^<>\n]*>')

HIGHLIGHT = re.compile(r'==([^=\n]+)==')
SUPERSCRIPT = re.compile(r'\^([^\^\n]+)\^')
SUBSCRIPT = re.compile(r'(?<!~)~([^~\n]+)~(?!~)')
IMAGE = re.compile(r'!\[([^\]\n]*)\]\(([^)\s]+)\)[ \t]*\{([^}\n]+)\}')
TITLED_LINK = re.compile(r'(?<!!)\[([^\]\n]+)\]\(([^)\s]+)[ \t]+"([^"\n]+)"\)')
ICON_LINK = re.compile(r'(?<!!)\[([^\]\n]+)\]\(([^)\s]+)\)[ \t]*\{([^}\n]+)\}')

# `](url "title"){attrs}` and `[label]: url` reference definitions
DESTINATION = re.compile(r'\]\([^)\n]*\)(?:[ \t]*\{[^}\n]*\})?')
REFERENCE = re.compile(r'^(?P<label>[ ]{0,3}\[[^\]\n]+\]:)(?P<target>[ \t]*\S.*)$', re.MULTILINE)

IMAGE_KEYS = ("align", "width", "caption")


def attribute_escape(value: str) -> str:
    return html.escape(value, quote=True)


class InlineTransformer:
    """
    Applies the inline extension rules to a document

    Rules run in a fixed order: highlight, superscript and subscript over
    text whose link destinations are masked, then attributed image, titled
    link and icon link once the destinations are back. Every element a rule
    produces is masked straight away, so a later rule never reads it.
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings
        self.masked: List[str] = []
        self.destinations: List[str] = []
        self.markRules: List[Tuple[re.Pattern, Callable[[re.Match], str]]] = [
            (HIGHLIGHT, lambda m: self.wrap("mark", m.group(1))),
            (SUPERSCRIPT, lambda m: self.wrap("sup", m.group(1))),
            (SUBSCRIPT, lambda m: self.wrap("sub", m.group(1))),
        ]
        self.linkRules: List[Tuple[re.Pattern, Callable[[re.Match], str]]] = [
            (IMAGE, self.image_rewrite),
            (TITLED_LINK, self.titledLink_rewrite),
            (ICON_LINK, self.iconLink_rewrite),
        ]

    def tag_mask(self, tag: str) -> str:
        """Stash an HTML tag and return its placeholder"""
        self.masked.append(tag)
        return self.settings.tagPlaceHolder_make(len(self.masked) - 1)

    def tags_unmask(self, text: str) -> str:
        for index in reversed(range(len(self.masked))):
            text = text.replace(self.settings.tagPlaceHolder_make(index), self.masked[index])
        return text

    def destination_mask(self, destination: str) -> str:
        """Stash a link destination and return its placeholder"""
        self.destinations.append(destination)
        return self.settings.linkPlaceHolder_make(len(self.destinations) - 1)

    def destinations_mask(self, text: str) -> str:
        text = DESTINATION.sub(lambda m: self.destination_mask(m.group(0)), text)
        return REFERENCE.sub(lambda m: m.group('label') + self.destination_mask(m.group('target')), text)

    def destinations_unmask(self, text: str) -> str:
        for index in reversed(range(len(self.destinations))):
            text = text.replace(self.settings.linkPlaceHolder_make(index), self.destinations[index])
        return text

    def wrap(self, name: str, content: str) -> str:
        """Surround content with masked opening and closing tags"""
        return f"{self.tag_mask(f'<{name}>')}{content}{self.tag_mask(f'</{name}>')}"

    def image_rewrite(self, match: re.Match) -> str:
        """![alt](url){align:left, width:50, caption:...} -> <img data-image-*>"""
        alt, url, raw = match.groups()
        attributes = attributes_parse(raw, known=IMAGE_KEYS)
        parts = [
            f'src="{attribute_escape(url)}"',
            f'alt="{attribute_escape(alt)}"',
            f'data-image-align="{attribute_escape(attributes.get("align") or "center")}"',
        ]
        if attributes.get("width"):
            parts.append(f'data-image-width="{attribute_escape(attributes["width"])}"')
        if attributes.get("caption"):
            parts.append(f'data-image-caption="{attribute_escape(attributes["caption"])}"')
        return self.tag_mask(f"<img {' '.join(parts)} />")

    def titledLink_rewrite(self, match: re.Match) -> str:
        text, url, title = match.groups()
        opening = f'<a href="{attribute_escape(url)}" title="{attribute_escape(title)}">'
        return f"{self.tag_mask(opening)}{text}{self.tag_mask('</a>')}"

    def iconLink_rewrite(self, match: re.Match) -> str:
        text, url, icon = match.groups()
        opening = f'<a href="{attribute_escape(url)}" data-icon="{attribute_escape(icon.strip())}">'
        return f"{self.tag_mask(opening)}{text}{self.tag_mask('</a>')}"

    def transform(self, text: str) -> str:
        """
        Rewrite every inline extension in text

        Args:
            text: Document text (protected spans still masked)

        Returns:
            Text with inline extensions replaced by HTML elements
        """
        self.masked = []
        self.destinations = []
        text = TAG_PATTERN.sub(lambda m: self.tag_mask(m.group(0)), text)
        text = self.destinations_mask(text)
        for pattern, rewrite in self.markRules:
            text = pattern.sub(rewrite, text)
        text = self.destinations_unmask(text)
        for pattern, rewrite in self.linkRules:
            text = pattern.sub(rewrite, text)
        return self.tags_unmask(text)


def inline_transform(text: str, settings: AppSettings = appsettings) -> str:
    """Convenience wrapper: run a fresh InlineTransformer over text"""
    return InlineTransformer(settings).transform(text)
