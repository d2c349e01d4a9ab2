"""
Block implementations for blockdown

Each block kind has two halves, kept together in one BlockSpec:
- build: runs in the extractor, turns header attributes and the (still
  span-masked) body into a typed Block, or returns None to leave the source
  text untouched
- handler: runs in the dispatcher, turns a decoded Block into a node tree

Nested documents (alert bodies, tab panes, chat messages, timeline entries)
are realised through the dispatcher, which routes them back through the full
pipeline.
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, urlparse

from bs4 import Tag

from ..config import appsettings
from ..models.blocks import (
    ALERT_TYPES,
    EXTRACTION_ORDER,
    AttributeSet,
    Block,
    BlockKind,
    BlockSpec,
    ChatMessage,
    ChatPerson,
    TabPane,
    TimelineItem,
)
from .attributes import attributes_parse
from .log import LOG


MINECRAFT_NAME = re.compile(r'^[a-zA-Z0-9_]{3,16}$')
YEAR_PREFIX = re.compile(r'^\d{4}')
OPENER = re.compile(r'^[ \t]{0,3}:::[A-Za-z][\w-]*(\{.*\})?[ \t]*$')
CLOSER = re.compile(r'^[ \t]*:::[ \t]*$')

VIDEO_ALIGNMENTS = ("left", "center", "right")


def sections_split(body: str, marker: str) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Split a block body on `@marker` lines

    Only markers at depth 0 count: lines inside nested extension blocks are
    left alone (code fences are already masked out of the body).

    Args:
        body: Block body text
        marker: Marker name without the "@" (tab, item, person)

    Returns:
        (text before the first marker, [(marker header, section text), ...])

    Example:
        >>> sections_split("@tab A\\none\\n@tab B\\ntwo", "tab")
        ('', [('A', 'one'), ('B', 'two')])
    """
    pattern = re.compile(rf'^@{re.escape(marker)}\b[ \t]*(.*)$')
    preamble: List[str] = []
    sections: List[Tuple[str, List[str]]] = []
    depth = 0

    for line in body.split('\n'):
        stripped = line.rstrip('\r')
        if depth == 0:
            match = pattern.match(stripped)
            if match:
                sections.append((match.group(1).strip(), []))
                continue
        if OPENER.match(stripped):
            depth += 1
        elif CLOSER.match(stripped) and depth > 0:
            depth -= 1
        (sections[-1][1] if sections else preamble).append(line)

    return '\n'.join(preamble), [(header, '\n'.join(lines)) for header, lines in sections]


def avatar_resolve(avatar: Optional[str], name: str) -> Optional[str]:
    """
    Resolve the avatar attribute of a chat speaker

    "minecraft" maps to the configured avatar service when the name is a
    valid player name; any other value is used as the image URL.

    Example:
        >>> avatar_resolve("minecraft", "Steve")
        'https://mc-heads.net/avatar/Steve'
        >>> avatar_resolve("minecraft", "Not a player") is None
        True
    """
    if not avatar:
        return None
    if avatar.strip().lower() == "minecraft":
        if MINECRAFT_NAME.match(name):
            return appsettings.avatar_url_template.format(name=quote(name, safe=''))
        return None
    return avatar.strip()


def width_normalize(width: Optional[str]) -> Optional[str]:
    """Percent or pixel widths pass through, a bare number becomes a percentage"""
    if not width:
        return None
    width = width.strip()
    if re.fullmatch(r'\d+(\.\d+)?', width):
        return f"{width}%"
    if re.fullmatch(r'\d+(\.\d+)?(%|px)', width):
        return width
    return None


def alert_make(dispatcher: Any, alert_type: str, title: Optional[str]) -> Tuple[Tag, Tag]:
    """
    Build the alert frame shared by carrier alerts and legacy class-marked alerts

    Returns:
        (alert element, element receiving the alert content)
    """
    if alert_type not in ALERT_TYPES:
        alert_type = "info"
    alert = dispatcher.tag_make("div", classes=["alert", f"alert-{alert_type}"], role="note")
    if title:
        alert.append(dispatcher.tag_make("p", classes=["alert-title"], string=title))
    content = dispatcher.tag_make("div", classes=["alert-content"])
    alert.append(content)
    return alert, content


class BlockRegistry:
    """
    Registry of block specifications

    Maps block kind names to BlockSpec objects. Registration order is the
    extraction resolution order: chart, video, alert, chat, tabs, link-card,
    timeline.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in block kinds"""
        self.specs: Dict[str, BlockSpec] = {}
        registrars: Dict[BlockKind, Callable[[], None]] = {
            BlockKind.CHART: self.chartBlock_register,
            BlockKind.VIDEO: self.videoBlock_register,
            BlockKind.ALERT: self.alertBlock_register,
            BlockKind.CHAT: self.chatBlock_register,
            BlockKind.TABS: self.tabsBlock_register,
            BlockKind.LINK_CARD: self.linkCardBlock_register,
            BlockKind.TIMELINE: self.timelineBlock_register,
        }
        for kind in EXTRACTION_ORDER:
            registrars[kind]()

    def register(self, spec: BlockSpec) -> None:
        """Register a block specification"""
        self.specs[spec.name] = spec

    def spec_get(self, name: str) -> Optional[BlockSpec]:
        """Get the block specification for a kind name"""
        return self.specs.get(name.lower())

    def kinds_list(self) -> List[str]:
        """Registered kind names in resolution order"""
        return list(self.specs)

    def chartBlock_register(self) -> None:
        """Register :::chart - JSON chart options handed to a chart runtime"""

        def chart_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Block:
            return Block(kind="chart", attributes=attributes, body=restore(body).strip())

        def chart_handler(block: Block, dispatcher: Any) -> Tag:
            """Validate the options; failures stay local to this block"""
            try:
                option = json.loads(block.body)
            except ValueError:
                return dispatcher.error_make("Chart data must be valid JSON")

            settings = dispatcher.settings
            chart_kind = (block.attributes.get("type") or settings.chart_default_kind).strip().lower()
            if chart_kind not in settings.chart_kinds:
                return dispatcher.error_make(f"Unknown chart type: {chart_kind}")

            chart = dispatcher.tag_make(
                "div",
                classes=["chart"],
                **{
                    "data-chart-type": chart_kind,
                    "data-chart-option": json.dumps(option, separators=(",", ":"), ensure_ascii=False),
                },
            )
            height = block.attributes.get("height")
            if height:
                chart["style"] = f"height: {height}px" if height.isdigit() else f"height: {height}"
            return chart

        self.register(BlockSpec(
            kind=BlockKind.CHART,
            description="Chart rendered from JSON options",
            build=chart_build,
            handler=chart_handler,
            keys=("type", "height"),
            examples=[':::chart{type:echarts}\n{"series": [{"type": "bar", "data": [1, 2]}]}\n:::'],
        ))

    def videoBlock_register(self) -> None:
        """Register :::video - an embedded video player"""

        def video_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            url = restore(body).strip()
            if not url:
                return None
            return Block(kind="video", attributes=attributes, body=url)

        def video_handler(block: Block, dispatcher: Any) -> Tag:
            attributes = block.attributes
            align = (attributes.get("align") or "center").strip().lower()
            if align not in VIDEO_ALIGNMENTS:
                align = "center"

            video = dispatcher.tag_make("video", src=block.body, preload="metadata")
            for name, default in (("controls", True), ("autoplay", False), ("loop", False), ("muted", False)):
                if attributes.flag(name, default):
                    video[name] = ""
            if attributes.flag("autoplay"):
                video["playsinline"] = ""

            caption = attributes.get("caption")
            container = dispatcher.tag_make(
                "figure" if caption else "div", classes=["video", f"video-align-{align}"]
            )
            width = width_normalize(attributes.get("width"))
            if width:
                container["style"] = f"width: {width}"
            container.append(video)
            if caption:
                container.append(dispatcher.tag_make("figcaption", string=caption))
            return container

        self.register(BlockSpec(
            kind=BlockKind.VIDEO,
            description="Embedded video with alignment, width and caption",
            build=video_build,
            handler=video_handler,
            keys=("align", "width", "autoplay", "loop", "muted", "controls", "caption"),
            single_line=True,
            examples=[
                ":::video{align:left, width:60, caption:Launch, day one}https://example.com/a.mp4:::",
            ],
        ))

    def alertBlock_register(self) -> None:
        """Register :::alert - a callout box"""

        def alert_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            content = restore(body).strip('\n')
            if not content.strip():
                return None
            alert_type = (attributes.get("type") or "").strip().lower()
            attributes["type"] = alert_type if alert_type in ALERT_TYPES else "info"
            return Block(kind="alert", attributes=attributes, body=content)

        def alert_handler(block: Block, dispatcher: Any) -> Tag:
            alert, content = alert_make(
                dispatcher, block.attributes.get("type", "info"), block.attributes.get("title")
            )
            dispatcher.document_realizeInto(block.body, content)
            return alert

        self.register(BlockSpec(
            kind=BlockKind.ALERT,
            description="Callout box: info, success, warning or error",
            build=alert_build,
            handler=alert_handler,
            keys=("type", "title"),
            single_line=True,
            examples=[
                ":::alert{type:warning, title:Heads up}\nBody in **Markdown**.\n:::",
                ":::alert{type:success}Saved:::",
            ],
        ))

    def chatBlock_register(self) -> None:
        """Register :::chat - a conversation transcript"""

        def chat_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            _, sections = sections_split(body, "person")
            messages: List[ChatMessage] = []
            for header, text in sections:
                person_attributes = attributes_parse(restore(header), known=("name", "avatar"))
                name = person_attributes.get("name") or "Unknown"
                content = restore(text).strip()
                if not content:
                    continue
                person = ChatPerson(name=name, avatar=avatar_resolve(person_attributes.get("avatar"), name))
                messages.append(ChatMessage(person=person, content=content))
            if not messages:
                return None
            return Block(kind="chat", attributes=attributes, body=messages)

        def chat_handler(block: Block, dispatcher: Any) -> Tag:
            chat = dispatcher.tag_make("div", classes=["chat"])
            for message in block.body:
                person = message.person
                row = dispatcher.tag_make("div", classes=["chat-message"])
                if person.avatar:
                    row.append(dispatcher.tag_make(
                        "img", classes=["chat-avatar"], src=person.avatar, alt=person.name, loading="lazy"
                    ))
                else:
                    row.append(dispatcher.tag_make(
                        "span", classes=["chat-avatar", "chat-avatar-initial"],
                        string=person.name[:1].upper(), **{"aria-hidden": "true"},
                    ))
                bubble = dispatcher.tag_make("div", classes=["chat-bubble"])
                bubble.append(dispatcher.tag_make("span", classes=["chat-name"], string=person.name))
                content = dispatcher.tag_make("div", classes=["chat-content"])
                dispatcher.document_realizeInto(message.content, content)
                bubble.append(content)
                row.append(bubble)
                chat.append(row)
            return chat

        self.register(BlockSpec(
            kind=BlockKind.CHAT,
            description="Conversation transcript with per-speaker avatars",
            build=chat_build,
            handler=chat_handler,
            examples=[":::chat\n@person name:Steve, avatar:minecraft\nHello!\n@person name:Alex\nHi.\n:::"],
        ))

    def tabsBlock_register(self) -> None:
        """Register :::tabs - labelled panes, realised lazily"""

        def tabs_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            _, sections = sections_split(body, "tab")
            panes = [
                TabPane(label=restore(label) or f"Tab {index + 1}", content=restore(text).strip('\n'))
                for index, (label, text) in enumerate(sections)
            ]
            if not panes:
                return None
            return Block(kind="tabs", attributes=attributes, body=panes)

        def tabs_handler(block: Block, dispatcher: Any) -> Tag:
            from .tabs import TabSet

            return TabSet(block.body, dispatcher).element

        self.register(BlockSpec(
            kind=BlockKind.TABS,
            description="Tabbed panes; the first is rendered up front, the rest on activation",
            build=tabs_build,
            handler=tabs_handler,
            examples=[":::tabs\n@tab Python\n`pip install x`\n@tab Node\n`npm i x`\n:::"],
        ))

    def linkCardBlock_register(self) -> None:
        """Register :::link-card - a rich link preview"""

        def linkCard_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            if not attributes.get("url"):
                LOG("link-card without url left as text", level=2)
                return None
            text = restore(body).strip()
            if not attributes.get("title"):
                attributes["title"] = text or attributes["url"]
            return Block(kind="link-card", attributes=attributes, body=text)

        def linkCard_handler(block: Block, dispatcher: Any) -> Tag:
            attributes = block.attributes
            url = attributes["url"]
            card = dispatcher.tag_make(
                "a", classes=["link-card"], href=url, target="_blank", rel="noopener noreferrer"
            )
            if attributes.get("image"):
                card.append(dispatcher.tag_make(
                    "img", classes=["link-card-image"], src=attributes["image"], alt="", loading="lazy"
                ))
            text = dispatcher.tag_make("span", classes=["link-card-text"])
            text.append(dispatcher.tag_make("span", classes=["link-card-title"], string=attributes["title"]))
            if attributes.get("description"):
                text.append(dispatcher.tag_make(
                    "span", classes=["link-card-description"], string=attributes["description"]
                ))
            text.append(dispatcher.tag_make(
                "span", classes=["link-card-url"], string=urlparse(url).netloc or url
            ))
            card.append(text)
            return card

        self.register(BlockSpec(
            kind=BlockKind.LINK_CARD,
            description="Rich link preview card",
            build=linkCard_build,
            handler=linkCard_handler,
            keys=("url", "title", "description", "image"),
            single_line=True,
            examples=[":::link-card{url:https://example.com, description:An example, of sorts}Example:::"],
        ))

    def timelineBlock_register(self) -> None:
        """Register :::timeline - dated entries"""

        def timeline_build(attributes: AttributeSet, body: str, restore: Callable[[str], str]) -> Optional[Block]:
            _, sections = sections_split(body, "item")
            items: List[TimelineItem] = []
            for header, text in sections:
                header = restore(header)
                date: Optional[str] = None
                title: Optional[str] = None
                if "|" in header:
                    date_part, title_part = header.split("|", 1)
                    date = date_part.strip() or None
                    title = title_part.strip() or None
                elif YEAR_PREFIX.match(header):
                    date = header
                elif header:
                    title = header
                items.append(TimelineItem(date=date, title=title, content=restore(text).strip('\n')))
            if not items:
                return None
            return Block(kind="timeline", attributes=attributes, body=items)

        def timeline_handler(block: Block, dispatcher: Any) -> Tag:
            timeline = dispatcher.tag_make("div", classes=["timeline"])
            for item in block.body:
                entry = dispatcher.tag_make("div", classes=["timeline-item"])
                entry.append(dispatcher.tag_make("span", classes=["timeline-marker"], **{"aria-hidden": "true"}))
                if item.date:
                    entry.append(dispatcher.tag_make("time", classes=["timeline-date"], string=item.date))
                if item.title:
                    entry.append(dispatcher.tag_make("div", classes=["timeline-title"], string=item.title))
                content = dispatcher.tag_make("div", classes=["timeline-content"])
                dispatcher.document_realizeInto(item.content, content)
                entry.append(content)
                timeline.append(entry)
            return timeline

        self.register(BlockSpec(
            kind=BlockKind.TIMELINE,
            description="Vertical timeline of dated entries",
            build=timeline_build,
            handler=timeline_handler,
            examples=[":::timeline\n@item 2023-01 | Launch\nShipped v1.\n@item 2024\nGrew.\n:::"],
        ))
