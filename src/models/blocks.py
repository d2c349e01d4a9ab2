"""
Block specification and payload models

Defines the closed vocabulary of block kinds, the typed block records that
travel inside carrier nodes, and the BlockSpec metadata used by the
BlockRegistry for extraction and dispatch.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union


class BlockKind(Enum):
    """
    Block extension kinds

    Declaration order is the order in which the extractor resolves kinds.
    """
    CHART = "chart"
    VIDEO = "video"
    ALERT = "alert"
    CHAT = "chat"
    TABS = "tabs"
    LINK_CARD = "link-card"
    TIMELINE = "timeline"


EXTRACTION_ORDER: Tuple[BlockKind, ...] = tuple(BlockKind)

ALERT_TYPES: Tuple[str, ...] = ("info", "success", "warning", "error")


class PayloadError(ValueError):
    """Raised when a carrier payload cannot be decoded into a Block"""


class AttributeSet(dict):
    """
    Attributes parsed from a block header or an image suffix

    Keys are lower-cased attribute names. Dict equality already ignores
    insertion order, which is the comparison the attribute grammar needs.
    """

    def flag(self, name: str, default: bool = False) -> bool:
        """
        Interpret an attribute as a boolean

        Args:
            name: Attribute name
            default: Value when the attribute is absent

        Returns:
            True for "true", False for "false", default otherwise

        Example:
            >>> AttributeSet(controls="false").flag("controls", True)
            False
        """
        value = self.get(name)
        if value is None:
            return default
        value = value.strip().lower()
        if value == "true":
            return True
        if value == "false":
            return False
        return default


@dataclass
class TabPane:
    """One pane of a tabs block: a label and a nested document"""
    label: str
    content: str


@dataclass
class ChatPerson:
    """
    Speaker of a chat message

    Attributes:
        name: Display name ("Unknown" when the header carried none)
        avatar: Resolved avatar URL, or None for the initial-letter fallback
    """
    name: str
    avatar: Optional[str] = None


@dataclass
class ChatMessage:
    """A chat message: its speaker and the message body as a nested document"""
    person: ChatPerson
    content: str


@dataclass
class TimelineItem:
    """
    One timeline entry

    Attributes:
        date: Date part of the "@item" header, if any
        title: Title part of the "@item" header, if any
        content: Entry body as a nested document
    """
    date: Optional[str]
    title: Optional[str]
    content: str


BlockBody = Union[str, List[TabPane], List[ChatMessage], List[TimelineItem]]


@dataclass
class Block:
    """
    A block extension carved out of a document

    Attributes:
        kind: Block kind name (e.g. "alert"); unknown kinds are carried too
              so that dispatch can report them
        attributes: Header attributes
        body: Raw body text, or the parsed pane/message/item list for
              tabs, chat and timeline

    Example:
        ":::alert{type:warning}Careful:::" becomes
        Block(kind="alert", attributes={"type": "warning"}, body="Careful")
    """
    kind: str
    attributes: AttributeSet = field(default_factory=AttributeSet)
    body: BlockBody = ""

    def payload_make(self) -> Dict[str, Any]:
        """Build the JSON-serialisable payload carried by the carrier node"""
        body: Any = self.body
        if isinstance(body, list):
            body = [self.item_toPayload(item) for item in body]
        return {"kind": self.kind, "attributes": dict(self.attributes), "body": body}

    @staticmethod
    def item_toPayload(item: Any) -> Dict[str, Any]:
        if isinstance(item, TabPane):
            return {"label": item.label, "content": item.content}
        if isinstance(item, ChatMessage):
            return {
                "person": {"name": item.person.name, "avatar": item.person.avatar},
                "content": item.content,
            }
        if isinstance(item, TimelineItem):
            return {"date": item.date, "title": item.title, "content": item.content}
        raise TypeError(f"Cannot serialise block item {item!r}")

    @classmethod
    def payload_load(cls, payload: Any) -> "Block":
        """
        Rebuild a Block from a decoded payload

        Args:
            payload: Object produced by json.loads on a carrier payload

        Returns:
            Block with typed body items

        Raises:
            PayloadError: If the payload does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise PayloadError("Payload is not an object")

        kind = payload.get("kind")
        attributes = payload.get("attributes", {})
        body = payload.get("body", "")
        if not isinstance(kind, str) or not isinstance(attributes, dict):
            raise PayloadError("Payload is missing its kind or attributes")

        try:
            if kind == BlockKind.TABS.value:
                body = [TabPane(label=item["label"], content=item["content"]) for item in body]
            elif kind == BlockKind.CHAT.value:
                body = [
                    ChatMessage(
                        person=ChatPerson(
                            name=item["person"]["name"], avatar=item["person"].get("avatar")
                        ),
                        content=item["content"],
                    )
                    for item in body
                ]
            elif kind == BlockKind.TIMELINE.value:
                body = [
                    TimelineItem(date=item.get("date"), title=item.get("title"), content=item["content"])
                    for item in body
                ]
            elif not isinstance(body, str):
                raise PayloadError(f"Payload body for '{kind}' is not text")
        except (KeyError, TypeError, AttributeError) as e:
            raise PayloadError(f"Malformed '{kind}' payload: {e}") from e

        return cls(kind=kind, attributes=AttributeSet(attributes), body=body)


@dataclass
class BlockSpec:
    """
    Specification for a block kind

    Pairs the extraction side of a kind (turning header attributes and a body
    into a Block) with its dispatch side (turning a decoded Block into a
    presentation node). Used by BlockRegistry.

    Attributes:
        kind: Block kind handled by this spec
        description: Human-readable description
        build: Extraction function (attributes, body, restore) -> Block | None;
               returning None leaves the source text untouched
        handler: Presentation function (block, dispatcher) -> Tag | None
        keys: Recognised header attribute names; they delimit free-text values
        single_line: Whether the ":::kind{attrs}body:::" form is accepted
        examples: Example usage strings
    """
    kind: BlockKind
    description: str
    build: Callable[[AttributeSet, str, Callable[[str], str]], Optional[Block]]
    handler: Callable
    keys: Tuple[str, ...] = ()
    single_line: bool = False
    examples: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.kind.value
