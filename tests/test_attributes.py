"""
Attribute grammar tests

Tests name:value pairs, quoting, free-text values, and tolerance of junk.
"""

import pytest

from blockdown.lib.attributes import attributes_parse, braces_findMatching
from blockdown.models.blocks import AttributeSet


class TestPairs:
    """Test basic name:value parsing"""

    def test_two_pairs(self):
        assert attributes_parse("type:warning, title:Heads up") == {"type": "warning", "title": "Heads up"}

    def test_empty(self):
        assert attributes_parse("") == {}
        assert attributes_parse(None) == {}

    def test_names_are_case_insensitive(self):
        assert attributes_parse("TYPE:info, Title:X") == {"type": "info", "title": "X"}

    def test_whitespace_around_separators(self):
        assert attributes_parse("  align : left ,width:50  ") == {"align": "left", "width": "50"}

    def test_unknown_keys_are_kept(self):
        assert attributes_parse("type:info, flavour:mint")["flavour"] == "mint"

    def test_later_duplicate_wins(self):
        assert attributes_parse("type:info, type:error") == {"type": "error"}

    def test_order_independent_equality(self):
        assert attributes_parse("a:1, b:2") == attributes_parse("b:2, a:1")

    def test_value_may_contain_colon(self):
        """Only the first colon separates name from value"""
        assert attributes_parse("url:https://example.com/x") == {"url": "https://example.com/x"}


class TestQuotedValues:
    """Test quoted values"""

    def test_double_quotes_hold_commas(self):
        assert attributes_parse('caption:"A, B",width:50') == {"caption": "A, B", "width": "50"}

    def test_single_quotes(self):
        assert attributes_parse("title:'Hello, world'") == {"title": "Hello, world"}

    def test_escaped_quote(self):
        assert attributes_parse('title:"say \\"hi\\""') == {"title": 'say "hi"'}

    def test_unterminated_quote_is_bare(self):
        assert attributes_parse('title:"oops') == {"title": '"oops'}


class TestFreeText:
    """Test free-text keys that run to the next recognised key"""

    def test_caption_with_commas(self):
        result = attributes_parse("caption:A, B, width:50", known=["caption", "width"])
        assert result == {"caption": "A, B", "width": "50"}

    def test_caption_at_end(self):
        result = attributes_parse("width:50, caption:Launch, day one", known=["caption", "width"])
        assert result["caption"] == "Launch, day one"

    def test_unrecognised_key_does_not_end_free_text(self):
        result = attributes_parse("description:Fast, note: slow, url:x", known=["description", "url"])
        assert result == {"description": "Fast, note: slow", "url": "x"}

    def test_without_known_keys_any_name_ends_free_text(self):
        result = attributes_parse("caption:A, B, width:50")
        assert result == {"caption": "A, B", "width": "50"}


class TestMalformed:
    """Malformed input is skipped, never raised"""

    def test_fragments_without_colon_are_skipped(self):
        assert attributes_parse("novalue, type:info, :x") == {"type": "info"}

    @pytest.mark.parametrize("raw", ["{{{", ":::", ",,,", '"', "a:'", "1:2", "\x00"])
    def test_never_raises(self, raw):
        assert isinstance(attributes_parse(raw), AttributeSet)


class TestFlags:
    """Test boolean attribute helper"""

    def test_false(self):
        assert AttributeSet(controls="false").flag("controls", True) is False

    def test_true_case_insensitive(self):
        assert AttributeSet(loop="TRUE").flag("loop") is True

    def test_default_when_absent_or_odd(self):
        assert AttributeSet().flag("muted") is False
        assert AttributeSet(muted="maybe").flag("muted", True) is True


class TestBraces:
    """Test quote-aware brace matching in header lines"""

    def test_simple(self):
        assert braces_findMatching("{a:1} rest", 0) == 4

    def test_quoted_brace(self):
        text = "{a:1, b:'}'} rest"
        assert braces_findMatching(text, 0) == 11

    def test_apostrophe_in_bare_value(self):
        text = "{caption:It's fine, x:1}"
        assert braces_findMatching(text, 0) == len(text) - 1

    def test_unbalanced(self):
        assert braces_findMatching("{a:1", 0) is None
