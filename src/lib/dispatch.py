"""
Dispatch layer

Walks the node tree produced by the baseline renderer and gives extension
output its final form:

- carrier nodes (marked by the reserved carrier attribute) are decoded once
  and routed to the handler registered for their block kind
- legacy class-marked alerts (div.alert-block.alert-<type>) are still
  recognised, as a deprecated fallback
- attributed images become figures, icon links get their icon, fenced code
  is highlighted with Pygments, and headings receive document-unique ids

Failures are local: a broken block renders an inline error or nothing, and
the rest of the document renders normally.
"""

import re
from typing import Any, Callable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.util import ClassNotFound

from ..models.blocks import Block, PayloadError
from ..models.context import RenderContext
from .blocks import BlockRegistry, alert_make, width_normalize
from .carrier import payload_decode
from .lexer import BlockdownLexer
from .log import LOG, WARN


HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
IMAGE_ALIGNMENTS = ("left", "center", "right")
LEGACY_ALERT_TYPE = re.compile(r'^alert-(?!block$)([\w-]+)$')


def onlyChild_is(parent: Tag, child: Tag) -> bool:
    """True when child is the only non-blank node inside parent"""
    for node in parent.contents:
        if node is child:
            continue
        if isinstance(node, NavigableString) and not node.strip():
            continue
        return False
    return True


def lexer_get(language: Optional[str]) -> Lexer:
    """Pygments lexer for a fenced code language, plain text when unknown"""
    if not language:
        return TextLexer()
    try:
        if language.lower() == 'blockdown':
            return BlockdownLexer()
        return get_lexer_by_name(language)
    except ClassNotFound:
        return TextLexer()


class Dispatcher:
    """
    Routes carrier nodes to block handlers and presents inline extension output

    Handlers receive the dispatcher itself, which gives them tag creation,
    inline errors and nested-document realisation.
    """

    def __init__(
        self,
        context: RenderContext,
        realize: Callable[[str, RenderContext], BeautifulSoup],
        registry: Optional[BlockRegistry] = None,
    ) -> None:
        """
        Initialize dispatcher

        Args:
            context: Context of the render being dispatched
            realize: Renders a nested document in a context; the pipeline's
                     reentrant render entry point
            registry: Optional BlockRegistry (defaults to the built-in kinds)
        """
        self.context = context
        self.settings = context.settings
        self.realize = realize
        self.registry = registry or BlockRegistry()
        self.factory = BeautifulSoup("", "html.parser")

    def tag_make(self, name: str, classes: Optional[List[str]] = None, string: Optional[str] = None, **attrs: Any) -> Tag:
        """Create a detached tag"""
        tag = self.factory.new_tag(name, attrs={key: value for key, value in attrs.items()})
        if classes:
            tag["class"] = list(classes)
        if string is not None:
            tag.string = string
        return tag

    def error_make(self, message: str) -> Tag:
        """Inline, visible error standing in for a block that failed"""
        return self.tag_make("div", classes=["render-error"], string=message, role="alert")

    def document_realizeInto(self, document: str, parent: Tag) -> Tag:
        """
        Render a nested document through the full pipeline into parent

        Args:
            document: Nested document text
            parent: Element receiving the rendered nodes

        Returns:
            parent
        """
        fragment = self.realize(document, self.context)
        for node in list(fragment.contents):
            parent.append(node.extract())
        return parent

    def dispatch(self, soup: BeautifulSoup) -> BeautifulSoup:
        """
        Present every extension node of a rendered document

        Presentation passes run before carrier dispatch, so nodes realised
        inside nested documents (which have had their own passes) are not
        visited twice.

        Args:
            soup: Tree produced by the baseline renderer

        Returns:
            The same tree, transformed in place
        """
        self.headings_identify(soup)
        self.images_present(soup)
        self.iconLinks_present(soup)
        self.codeBlocks_present(soup)
        self.legacyAlerts_dispatch(soup)

        carriers = soup.find_all(attrs={self.settings.carrier_attribute: True})
        LOG(f"Dispatching {len(carriers)} carrier nodes", level=3)
        for carrier in carriers:
            self.carrier_dispatch(carrier)
        return soup

    def carrier_dispatch(self, carrier: Tag) -> None:
        """Decode one carrier node and replace it with its presentation"""
        encoded = carrier.get(self.settings.payload_attribute, "")
        try:
            block = payload_decode(encoded)
        except PayloadError as e:
            WARN(f"Dropping '{carrier.get(self.settings.carrier_attribute)}' block: {e}")
            carrier.decompose()
            return

        node = self.block_present(block)
        target = carrier
        if carrier.parent is not None and carrier.parent.name == "p" and onlyChild_is(carrier.parent, carrier):
            target = carrier.parent
        if node is None:
            target.decompose()
        else:
            target.replace_with(node)

    def block_present(self, block: Block) -> Optional[Tag]:
        """Run the handler registered for a block's kind"""
        spec = self.registry.spec_get(block.kind)
        if spec is None:
            WARN(f"Unknown block type: {block.kind}")
            return self.error_make(f"Unknown block type: {block.kind}")
        return spec.handler(block, self)

    def legacyAlerts_dispatch(self, soup: BeautifulSoup) -> None:
        """
        Deprecated: present author-written div.alert-block.alert-<type>

        Carrier nodes are the supported route; this keeps older documents
        with hand-written alert markup rendering the same way.
        """
        for legacy in soup.select("div.alert-block"):
            alert_type = "info"
            for name in legacy.get("class", []):
                match = LEGACY_ALERT_TYPE.match(name)
                if match:
                    alert_type = match.group(1)
                    break
            alert, content = alert_make(self, alert_type, legacy.get("data-alert-title") or legacy.get("title"))
            for node in list(legacy.contents):
                content.append(node.extract())
            legacy.replace_with(alert)

    def headings_identify(self, soup: BeautifulSoup) -> None:
        """Give every heading without an id a document-unique one"""
        for heading in soup.find_all(HEADINGS):
            if not heading.get("id"):
                heading["id"] = self.context.headingId_make(heading.get_text())

    def images_present(self, soup: BeautifulSoup) -> None:
        """Turn attributed images into aligned figures with optional captions"""
        for image in soup.find_all("img", attrs={"data-image-align": True}):
            align = image.attrs.pop("data-image-align").strip().lower()
            if align not in IMAGE_ALIGNMENTS:
                align = "center"
            width = width_normalize(image.attrs.pop("data-image-width", None))
            caption = image.attrs.pop("data-image-caption", None)

            figure = self.tag_make("figure", classes=["image", f"image-align-{align}"])
            if width:
                figure["style"] = f"width: {width}"

            paragraph = image.parent
            if paragraph is not None and paragraph.name == "p" and onlyChild_is(paragraph, image):
                paragraph.insert_before(figure)
                figure.append(image.extract())
                paragraph.decompose()
            else:
                image.insert_before(figure)
                figure.append(image.extract())
            if caption:
                figure.append(self.tag_make("figcaption", string=caption))

    def iconLinks_present(self, soup: BeautifulSoup) -> None:
        """Prefix icon links with their icon element"""
        for link in soup.find_all("a", attrs={"data-icon": True}):
            if link.find("span", class_="link-icon"):
                continue
            icon = link["data-icon"]
            classes = link.get("class") or []
            link["class"] = classes + ["icon-link"]
            link.insert(0, self.tag_make(
                "span", classes=["link-icon", f"icon-{icon}"], **{"data-icon": icon, "aria-hidden": "true"}
            ))

    def codeBlocks_present(self, soup: BeautifulSoup) -> None:
        """Highlight fenced code and add the language label, copy button and collapse flag"""
        formatter = HtmlFormatter(style=self.settings.pygments_style, noclasses=True)
        for code in soup.select("pre > code"):
            pre = code.parent
            language = None
            for name in code.get("class", []):
                if name.startswith("language-"):
                    language = name[len("language-"):]
                    break

            source = code.get_text()
            highlighted = BeautifulSoup(highlight(source, lexer_get(language), formatter), "html.parser")

            block = self.tag_make("div", classes=["code-block"], **{"data-language": language or "text"})
            header = self.tag_make("div", classes=["code-block-header"])
            header.append(self.tag_make("span", classes=["code-language"], string=language or "text"))
            header.append(self.tag_make(
                "button", classes=["code-copy"], string="Copy", type="button", **{"aria-label": "Copy code"}
            ))
            block.append(header)
            for node in list(highlighted.contents):
                block.append(node.extract())

            if len(source.rstrip("\n").split("\n")) > self.settings.code_collapse_lines:
                block["data-collapsible"] = "true"
            pre.replace_with(block)
