"""
Carrier node codec

A carrier node is the inert element that carries an extracted block across
the baseline Markdown renderer:

    <div data-blockdown="alert" data-payload="%7B%22kind%22..."></div>

The payload is the block serialised as JSON and percent-encoded, so the
renderer never sees Markdown, HTML or extension syntax inside it. It is
decoded once, by the dispatcher.
"""

import json
from urllib.parse import quote, unquote

from ..config import AppSettings, appsettings
from ..models.blocks import Block, PayloadError


def payload_encode(block: Block) -> str:
    """
    Serialise a block for a carrier attribute

    Args:
        block: Extracted block

    Returns:
        Percent-encoded JSON text containing no markup-significant characters
    """
    return quote(json.dumps(block.payload_make(), ensure_ascii=False), safe='')


def payload_decode(encoded: str) -> Block:
    """
    Rebuild a block from a carrier attribute

    Args:
        encoded: Value of the payload attribute

    Returns:
        Decoded Block

    Raises:
        PayloadError: On invalid percent-encoding, invalid UTF-8, invalid
                      JSON or an unexpected payload shape
    """
    try:
        text = unquote(encoded, errors='strict')
    except UnicodeDecodeError as e:
        raise PayloadError(f"Payload is not valid UTF-8: {e}") from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadError(f"Payload is not valid JSON: {e}") from e

    return Block.payload_load(payload)


def carrier_build(block: Block, settings: AppSettings = appsettings) -> str:
    """
    Build the carrier node markup for a block

    The node is surrounded by blank lines so the baseline renderer treats it
    as a raw HTML block.

    Example:
        >>> carrier_build(Block(kind="video", body="a.mp4"))
        '\\n<div data-blockdown="video" data-payload="%7B%22kind%22..."></div>\\n\\n'
    """
    return (
        f'\n<div {settings.carrier_attribute}="{block.kind}" '
        f'{settings.payload_attribute}="{payload_encode(block)}"></div>\n\n'
    )
