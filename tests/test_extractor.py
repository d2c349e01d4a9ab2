"""
Block extractor tests

Tests header recognition, closing fences, nesting, per-kind body parsing,
and the cases that must leave the source untouched.
"""

import pytest

from blockdown.lib.blocks import BlockRegistry, sections_split
from blockdown.lib.carrier import payload_decode
from blockdown.lib.extractor import BlockExtractor
from blockdown.lib.spans import spans_protect
from blockdown.models.blocks import Block, ChatMessage, TabPane, TimelineItem


def blocks_of(source):
    """Protect spans, extract, and return only the Block segments"""
    masked = spans_protect(source)
    segments = BlockExtractor(masked.masked, masked.spans).parse()
    return [segment for segment in segments if isinstance(segment, Block)]


def extracted(source):
    masked = spans_protect(source)
    return BlockExtractor(masked.masked, masked.spans).extract()


class TestForms:
    """Test multi-line and single-line forms"""

    def test_multi_line_alert(self):
        blocks = blocks_of(":::alert{type:warning, title:Hi}\nBody text\n:::\n")

        assert len(blocks) == 1
        assert blocks[0].kind == "alert"
        assert blocks[0].attributes == {"type": "warning", "title": "Hi"}
        assert blocks[0].body == "Body text"

    def test_single_line_alert(self):
        blocks = blocks_of(":::alert{type:success}Saved:::")

        assert blocks[0].attributes["type"] == "success"
        assert blocks[0].body == "Saved"

    def test_header_without_attributes(self):
        blocks = blocks_of(":::alert\nHello\n:::")

        assert blocks[0].attributes == {"type": "info"}

    def test_kind_is_case_insensitive(self):
        assert blocks_of(":::Alert{type:info}\nHi\n:::")[0].kind == "alert"

    def test_single_line_not_allowed_for_tabs(self):
        source = ":::tabs{}@tab A:::"
        assert extracted(source) == source

    def test_text_after_header_is_not_a_block(self):
        source = ":::alert{type:info} trailing words\nbody\n:::\n"
        assert blocks_of(source) == []

    def test_indented_four_spaces_is_not_a_header(self):
        source = "    :::alert{type:info}\n    x\n:::\n"
        assert extracted(source) == source


class TestClosingFence:
    """Test closing fence and nesting rules"""

    def test_unclosed_block_stays_literal(self):
        source = "intro\n:::alert{type:info}\nnever closed\n"
        assert extracted(source) == source

    def test_nested_block_stays_in_body(self):
        source = ":::tabs\n@tab A\n:::alert{type:info}\nInner\n:::\n@tab B\nTwo\n:::\n"
        blocks = blocks_of(source)

        assert len(blocks) == 1
        assert blocks[0].body == [
            TabPane(label="A", content=":::alert{type:info}\nInner\n:::"),
            TabPane(label="B", content="Two"),
        ]

    def test_single_line_block_does_not_change_depth(self):
        source = ":::tabs\n@tab A\n:::alert{type:info}Note:::\nafter\n:::\n"
        blocks = blocks_of(source)

        assert len(blocks) == 1
        assert blocks[0].body[0].content == ":::alert{type:info}Note:::\nafter"

    def test_fence_inside_code_is_ignored(self):
        source = ":::alert{type:info}\n```\n:::\n```\nstill alert\n:::\n"
        blocks = blocks_of(source)

        assert len(blocks) == 1
        assert blocks[0].body == "```\n:::\n```\nstill alert"

    def test_two_blocks_in_sequence(self):
        source = ":::alert{type:info}\nA\n:::\ntext\n:::alert{type:error}\nB\n:::\n"
        assert [block.body for block in blocks_of(source)] == ["A", "B"]


class TestCarriers:
    """Test carrier emission"""

    def test_carrier_replaces_block(self):
        result = extracted("before\n\n:::alert{type:info}\nHi\n:::\n\nafter\n")

        assert ":::" not in result
        assert 'data-blockdown="alert"' in result
        assert result.startswith("before\n")
        assert result.rstrip().endswith("after")

    def test_carrier_payload_decodes_to_block(self):
        source = ':::alert{type:warning, title:"A \\"quoted\\" <title>"}\nBody & more\n:::\n'
        result = extracted(source)
        encoded = result.split('data-payload="')[1].split('"')[0]

        assert payload_decode(encoded) == blocks_of(source)[0]

    def test_payload_has_no_markup_characters(self):
        result = extracted(":::alert{type:info}\n<b>*x*</b> ==y== `z`\n:::\n")
        encoded = result.split('data-payload="')[1].split('"')[0]

        for char in "<>*=`\"' \n":
            assert char not in encoded

    def test_unknown_kind_is_carried(self):
        blocks = blocks_of(":::mystery{a:1}\nx\n:::\n")

        assert blocks[0].kind == "mystery"
        assert blocks[0].body == "x"


class TestSpansInBodies:
    """Protected spans are restored inside extracted bodies"""

    def test_code_restored_in_alert(self):
        blocks = blocks_of(":::alert{type:info}\nRun `make ==all==`\n:::\n")
        assert blocks[0].body == "Run `make ==all==`"

    def test_marker_inside_code_does_not_split_tabs(self):
        source = ":::tabs\n@tab Real\n```\n@tab fake\n```\n:::\n"
        panes = blocks_of(source)[0].body

        assert len(panes) == 1
        assert panes[0].content == "```\n@tab fake\n```"


class TestAbandonedBlocks:
    """Blocks that must stay as written"""

    def test_empty_alert(self):
        source = ":::alert{type:info}\n\n:::\n"
        assert extracted(source) == source

    def test_empty_single_line_alert(self):
        source = ":::alert{type:info}:::"
        assert extracted(source) == source

    def test_link_card_without_url(self):
        source = ":::link-card{title:X}body:::"
        assert extracted(source) == source

    def test_empty_video(self):
        source = ":::video{align:left}\n   \n:::\n"
        assert extracted(source) == source

    def test_chat_without_messages(self):
        source = ":::chat\n@person name:Steve\n\n:::\n"
        assert extracted(source) == source

    def test_tabs_without_panes(self):
        source = ":::tabs\nno markers here\n:::\n"
        assert extracted(source) == source


class TestKindBodies:
    """Test per-kind body parsing"""

    def test_alert_type_defaults_to_info(self):
        assert blocks_of(":::alert{type:danger}\nx\n:::")[0].attributes["type"] == "info"

    def test_tabs_preamble_discarded(self):
        panes = blocks_of(":::tabs\nignored\n@tab One\n1\n@tab Two\n2\n:::")[0].body
        assert [pane.label for pane in panes] == ["One", "Two"]
        assert [pane.content for pane in panes] == ["1", "2"]

    def test_timeline_headers(self):
        source = (
            ":::timeline\n"
            "@item 2023-01 | Launch\nShipped.\n"
            "@item 2024\nGrew.\n"
            "@item Later on\nMaybe.\n"
            ":::\n"
        )
        assert blocks_of(source)[0].body == [
            TimelineItem(date="2023-01", title="Launch", content="Shipped."),
            TimelineItem(date="2024", title=None, content="Grew."),
            TimelineItem(date=None, title="Later on", content="Maybe."),
        ]

    def test_chat_messages(self):
        source = (
            ":::chat\n"
            "before any speaker\n"
            "@person name:Steve, avatar:minecraft\nHello!\n"
            "@person name:Not A Player, avatar:minecraft\nHi.\n"
            "@person avatar:https://example.com/a.png\nWho am I?\n"
            "@person name:Silent\n\n"
            ":::\n"
        )
        messages = blocks_of(source)[0].body

        assert len(messages) == 3
        assert messages[0].person.name == "Steve"
        assert messages[0].person.avatar == "https://mc-heads.net/avatar/Steve"
        assert messages[0].content == "Hello!"
        assert messages[1].person.avatar is None
        assert messages[2].person.name == "Unknown"
        assert messages[2].person.avatar == "https://example.com/a.png"

    def test_link_card_title_falls_back_to_body(self):
        block = blocks_of(":::link-card{url:https://example.com}Example Site:::")[0]

        assert block.attributes["title"] == "Example Site"
        assert block.body == "Example Site"

    def test_video_caption_keeps_commas(self):
        block = blocks_of(":::video{caption:Launch, day one, width:60}https://x.io/v.mp4:::")[0]

        assert block.attributes == {"caption": "Launch, day one", "width": "60"}
        assert block.body == "https://x.io/v.mp4"

    def test_chart_always_extracted(self):
        block = blocks_of(":::chart\n{not json\n:::")[0]

        assert block.kind == "chart"
        assert block.body == "{not json"


class TestSections:
    """Test depth-aware body splitting"""

    def test_split(self):
        assert sections_split("@tab A\none\n@tab B\ntwo", "tab") == ("", [("A", "one"), ("B", "two")])

    def test_marker_inside_nested_block_ignored(self):
        preamble, sections = sections_split("@tab A\n:::tabs\n@tab inner\nx\n:::\n@tab B\ny", "tab")

        assert preamble == ""
        assert [label for label, _ in sections] == ["A", "B"]

    def test_marker_must_start_the_line(self):
        _, sections = sections_split("@tab A\nsee @tab B\n", "tab")
        assert len(sections) == 1


class TestRegistry:
    """Test block registry order"""

    def test_resolution_order(self):
        assert BlockRegistry().kinds_list() == [
            "chart", "video", "alert", "chat", "tabs", "link-card", "timeline",
        ]

    def test_single_line_kinds(self):
        registry = BlockRegistry()
        single = {name for name in registry.kinds_list() if registry.spec_get(name).single_line}
        assert single == {"alert", "video", "link-card"}
