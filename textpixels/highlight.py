"""Syntax highlighting via Pygments, one HTML block per file."""

import logging

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer

from textpixels.sources import FileBlob
from textpixels.stylesheet import lang_css

logger = logging.getLogger(__name__)


def lexer_for(blob: FileBlob):
    if blob.language:
        return get_lexer_by_name(blob.language)
    return TextLexer()


def htmlize(blob: FileBlob) -> str:
    """Highlight ``blob`` wrapped in a ``<div class="lang-...">`` block."""
    formatter = HtmlFormatter(cssclass=lang_css(blob.language))
    return highlight(blob.read_text(), lexer_for(blob), formatter)
