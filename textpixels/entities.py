"""Character reference decoding for highlighter markup.

Numeric references become the character they name.  Named references
(``&amp;``, ``&lt;`` ...) all become U+FFFD: only the column they occupy
matters for the raster, not the glyph.
"""

import re

REPLACEMENT_CHARACTER = "\ufffd"
MAX_CODEPOINT = 0x10FFFF

_ENTITY_RE = re.compile(
    r"&#(?P<dec>\d+);?"
    r"|&#[xX](?P<hex>[0-9a-fA-F]+);?"
    r"|&\w+;"
)


def _codepoint(value: int) -> str:
    # out of range and surrogate code points are not characters
    if value > MAX_CODEPOINT or 0xD800 <= value <= 0xDFFF:
        return REPLACEMENT_CHARACTER
    return chr(value)


def _replace(match: "re.Match") -> str:
    if match.group("dec") is not None:
        return _codepoint(int(match.group("dec")))
    if match.group("hex") is not None:
        return _codepoint(int(match.group("hex"), 16))
    return REPLACEMENT_CHARACTER


def decode_entities(text: str) -> str:
    """Decode character references in a single left-to-right pass.

    Decoded output is never rescanned, so ``&#38;amp;`` yields ``&amp;``.
    """
    return _ENTITY_RE.sub(_replace, text)
