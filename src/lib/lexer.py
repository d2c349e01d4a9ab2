"""
Custom Pygments lexer for blockdown syntax highlighting

Provides syntax highlighting for extension markup when a document shows
blockdown source in a ```blockdown fence.

Token types:
- Keyword.Declaration: Block kinds in headers (e.g. :::alert)
- Punctuation: Fences, braces, commas and colons
- Name.Attribute: Attribute names inside header braces
- Literal.String: Attribute values
- Name.Decorator: Body section markers (@tab, @item, @person)
- Generic.*: Inline extensions (==mark==, ^sup^, ~sub~)
"""

from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Comment,
    Generic,
)


class BlockdownLexer(RegexLexer):
    """
    Lexer for Markdown with blockdown extensions

    Example:
        :::alert{type:warning}
        ==Careful== with H~2~O
        :::

    Tokens:
        ::: → Punctuation
        alert → Keyword.Declaration
        { → Punctuation, then type → Name.Attribute, warning → String
        ==Careful== → Generic.Strong
    """

    name = 'Blockdown'
    aliases = ['blockdown']
    filenames = ['*.bd.md']

    tokens = {
        'root': [
            # HTML comments
            (r'<!--.*?-->', Comment),

            # Block header with attributes
            (r'^([ \t]{0,3})(:::)([A-Za-z][\w-]*)(\{)',
             bygroups(Text, Punctuation, Keyword.Declaration, Punctuation), 'attributes'),

            # Block header without attributes
            (r'^([ \t]{0,3})(:::)([A-Za-z][\w-]*)',
             bygroups(Text, Punctuation, Keyword.Declaration)),

            # Closing fence (alone on a line or ending a single-line block)
            (r':::', Punctuation),

            # Body section markers
            (r'^(@(?:tab|item|person))\b', Name.Decorator),

            # Inline extensions
            (r'==[^=\n]+==', Generic.Strong),
            (r'\^[^\^\n]+\^', Generic.Emph),
            (r'~~[^~\n]+~~', Generic.Deleted),
            (r'~[^~\n]+~', Generic.Emph),

            # Attribute suffix of images and icon links
            (r'(\))(\{)', bygroups(Text, Punctuation), 'attributes'),

            # HTML tags pass through
            (r'<[^>\n]+>', Name.Builtin),

            (r'[^:@=^~<){\n]+', Text),
            (r'\n', Text),
            (r'.', Text),
        ],

        'attributes': [
            (r'\}', Punctuation, '#pop'),
            (r'([A-Za-z][\w-]*)(\s*)(:)',
             bygroups(Name.Attribute, Text, Punctuation)),
            (r'"(\\\\|\\"|[^"])*"', String.Double),
            (r"'(\\\\|\\'|[^'])*'", String.Single),
            (r',', Punctuation),
            (r'\s+', Text),
            (r'[^,}\s"\']+', String),
            (r'.', String),
        ],
    }


def get_lexer() -> BlockdownLexer:
    """
    Get the BlockdownLexer instance

    Returns:
        BlockdownLexer instance ready for use with Pygments
    """
    return BlockdownLexer()
