"""
Tab sets

A tabs block becomes a TabSet: a tab list, one panel per pane, and the
bookkeeping for lazy realisation. Only the active pane is rendered while the
document is rendered; the others are rendered the first time they are
activated and stay rendered (hidden) afterwards. With eager tabs every pane
is rendered up front.
"""

from typing import Any, List, Set
from urllib.parse import quote

from bs4 import Tag

from ..models.blocks import TabPane
from .log import LOG


class TabSet:
    """
    Interactive state of one tabs block

    Attributes:
        panes: Pane labels and nested documents
        identifier: Document-unique id prefix (tabs-0, tabs-1, ...)
        element: Root element placed in the document
        buttons: Tab buttons, one per pane
        panels: Tab panels, one per pane
        realized: Indices of panes whose document has been rendered
        active: Index of the visible pane
    """

    def __init__(self, panes: List[TabPane], dispatcher: Any) -> None:
        self.panes = panes
        self.dispatcher = dispatcher
        context = dispatcher.context
        self.identifier = f"tabs-{len(context.tabsets)}"
        context.tabsets.append(self)

        self.realized: Set[int] = set()
        self.active = 0
        self.buttons: List[Tag] = []
        self.panels: List[Tag] = []

        self.element = dispatcher.tag_make("div", classes=["tabs"], **{"data-tabset": self.identifier})
        tablist = dispatcher.tag_make("div", classes=["tab-list"], role="tablist")
        self.element.append(tablist)

        for index, pane in enumerate(panes):
            button = dispatcher.tag_make(
                "button",
                classes=["tab"],
                string=pane.label,
                type="button",
                role="tab",
                id=f"{self.identifier}-tab-{index}",
                **{
                    "aria-controls": f"{self.identifier}-panel-{index}",
                    "aria-selected": "false",
                    "data-tab-index": str(index),
                },
            )
            panel = dispatcher.tag_make(
                "div",
                classes=["tab-panel"],
                role="tabpanel",
                id=f"{self.identifier}-panel-{index}",
                **{
                    "aria-labelledby": f"{self.identifier}-tab-{index}",
                    "data-tab-index": str(index),
                    "data-pane-source": quote(pane.content, safe=''),
                },
            )
            tablist.append(button)
            self.element.append(panel)
            self.buttons.append(button)
            self.panels.append(panel)

        if context.eager_tabs:
            for index in range(len(panes)):
                self.pane_realize(index)
        self.activate(0)

    def pane_realize(self, index: int) -> Tag:
        """Render a pane's document into its panel, once"""
        panel = self.panels[index]
        if index in self.realized:
            return panel
        LOG(f"{self.identifier}: realising pane {index} ({self.panes[index].label})", level=3)
        self.dispatcher.document_realizeInto(self.panes[index].content, panel)
        del panel["data-pane-source"]
        self.realized.add(index)
        return panel

    def activate(self, index: int) -> Tag:
        """
        Make a pane the visible one, rendering it on first activation

        Args:
            index: Pane index

        Returns:
            The pane's panel element

        Raises:
            IndexError: If index does not name a pane
        """
        if not 0 <= index < len(self.panes):
            raise IndexError(f"{self.identifier} has no pane {index}")

        panel = self.pane_realize(index)
        for position, (button, other) in enumerate(zip(self.buttons, self.panels)):
            selected = position == index
            button["aria-selected"] = "true" if selected else "false"
            button["tabindex"] = "0" if selected else "-1"
            if selected:
                other.attrs.pop("hidden", None)
            else:
                other["hidden"] = ""
        self.active = index
        return panel

    @property
    def labels(self) -> List[str]:
        return [pane.label for pane in self.panes]
