"""
Blockdown lexer tests

Tests token classification for block headers, attributes, section markers
and inline extensions.
"""

from pygments.lexers import get_lexer_by_name
from pygments.token import Generic, Keyword, Name, Punctuation, String

from blockdown.lib.dispatch import lexer_get
from blockdown.lib.lexer import BlockdownLexer, get_lexer


def tokens_of(source):
    return [(token, value) for token, value in BlockdownLexer().get_tokens(source) if value.strip()]


class TestHeaders:
    """Test block header tokens"""

    def test_kind_and_attributes(self):
        tokens = tokens_of(":::alert{type:warning, title:\"Hi, there\"}\n")

        assert (Punctuation, ":::") in tokens
        assert (Keyword.Declaration, "alert") in tokens
        assert (Name.Attribute, "type") in tokens
        assert (String, "warning") in tokens
        assert (String.Double, '"Hi, there"') in tokens

    def test_header_without_attributes(self):
        tokens = tokens_of(":::tabs\n@tab One\n:::\n")

        assert (Keyword.Declaration, "tabs") in tokens
        assert (Name.Decorator, "@tab") in tokens
        assert tokens[-1] == (Punctuation, ":::")


class TestInline:
    """Test inline extension tokens"""

    def test_marks(self):
        tokens = tokens_of("==hot== x^2^ H~2~O ~~old~~")

        assert (Generic.Strong, "==hot==") in tokens
        assert (Generic.Emph, "^2^") in tokens
        assert (Generic.Emph, "~2~") in tokens
        assert (Generic.Deleted, "~~old~~") in tokens


class TestLookup:
    """Test lexer lookup"""

    def test_get_lexer(self):
        assert isinstance(get_lexer(), BlockdownLexer)

    def test_fence_language(self):
        assert isinstance(lexer_get("blockdown"), BlockdownLexer)
        assert lexer_get("python").name == get_lexer_by_name("python").name

    def test_unknown_language_is_plain_text(self):
        assert lexer_get("no-such-language").name == "Text only"
        assert lexer_get(None).name == "Text only"
