"""Convert highlighter HTML into fixed-width rows of colours.

Every character of source becomes one colour: the foreground of the
innermost enclosing scope for visible characters, its background for
whitespace.  Scopes live on a stack; ``<span class>`` pushes, ``</span>``
pops.  A classed ``<div>`` additionally replaces the base scope, so the
per-file language wrapper sets the default colours of every later line,
including the padding that fills rows out to the full width.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from textpixels.config import UNKNOWN_LANG_CLASS
from textpixels.entities import decode_entities
from textpixels.pixels import pad
from textpixels.stylesheet import ColorStyle

logger = logging.getLogger(__name__)

# Pygments closes each file's block on a line of its own
FOOTER = "</pre></div>"

_TAG_SPLIT_RE = re.compile(r"(<[^>]+>)")
_CLASSED_OPEN_RE = re.compile(r'<(\w+) [^>]*class="([^"]+)">')
_BARE_OPEN_RE = re.compile(r"<(span|div)>")
_CLOSE_RE = re.compile(r"</(span|div)")

_EMPTY = ColorStyle()


def source_lines(markup: str) -> List[str]:
    """Split on newlines only.

    Form feeds, U+2028 and the other characters ``str.splitlines`` breaks
    on stay inside their source line.
    """
    lines = markup.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass(frozen=True)
class ColorScope:
    """Resolved colours at one nesting level."""
    fg: str
    bg: str

    def merged(self, style: ColorStyle) -> "ColorScope":
        return ColorScope(fg=style.fg or self.fg, bg=style.bg or self.bg)


class ScopeStack:
    """Stack of scopes that never pops its base entry."""

    def __init__(self, base: ColorScope):
        self._scopes = [base]

    @property
    def top(self) -> ColorScope:
        return self._scopes[-1]

    @property
    def base(self) -> ColorScope:
        return self._scopes[0]

    def push(self, scope: ColorScope, block: bool = False):
        self._scopes.append(scope)
        if block:
            self._scopes[0] = scope

    def pop(self) -> bool:
        # unmatched close tags are dropped rather than emptying the stack
        if len(self._scopes) == 1:
            return False
        self._scopes.pop()
        return True

    def __len__(self):
        return len(self._scopes)


class MarkupRasterizer:
    """Rasterize per-file highlighter markup against a colour table."""

    def __init__(self, table: Mapping[str, ColorStyle], cols: int,
                 fg: str, bg: str):
        self.table = table
        self.cols = cols
        self.default = ColorScope(fg=fg, bg=bg)

    def base_scope(self, lang_class: Optional[str] = None) -> ColorScope:
        cls = lang_class or UNKNOWN_LANG_CLASS
        return self.default.merged(self.table.get(cls, _EMPTY))

    def line_colors(self, line: str, stack: ScopeStack) -> List[str]:
        """Colours for one decoded markup line, updating ``stack`` in place."""
        colors: List[str] = []
        for part in _TAG_SPLIT_RE.split(line):
            if not part:
                continue
            if part.startswith("<") and part.endswith(">"):
                self._apply_tag(part, stack)
                continue
            scope = stack.top
            for char in part:
                colors.append(scope.bg if char.isspace() else scope.fg)
        return colors

    def _apply_tag(self, tag: str, stack: ScopeStack):
        classed = _CLASSED_OPEN_RE.match(tag)
        if classed:
            name, cls = classed.groups()
            merged = stack.top.merged(self.table.get(cls, _EMPTY))
            stack.push(merged, block=(name == "div"))
        elif _BARE_OPEN_RE.match(tag):
            stack.push(stack.top)
        elif _CLOSE_RE.match(tag):
            if not stack.pop():
                logger.debug("Ignoring unmatched %s", tag)
        # <pre>, </pre> and anything else carry no colour

    def rasterize_file(self, markup: str,
                       lang_class: Optional[str] = None) -> List[List[str]]:
        stack = ScopeStack(self.base_scope(lang_class))
        rows = []
        for raw in source_lines(markup):
            line = decode_entities(raw)
            colors = self.line_colors(line, stack)
            if line == FOOTER:
                continue
            rows.append(pad(colors, self.cols, stack.base.bg))
        return rows

    def rasterize(self, markups: Sequence[str],
                  lang_classes: Optional[Sequence[Optional[str]]] = None
                  ) -> List[List[str]]:
        """Rows for every file, in file order then line order."""
        rows: List[List[str]] = []
        for i, markup in enumerate(markups):
            lang_class = lang_classes[i] if lang_classes and i < len(lang_classes) else None
            file_rows = self.rasterize_file(markup, lang_class)
            logger.debug("  file %d/%d: %d rows", i + 1, len(markups), len(file_rows))
            rows.extend(file_rows)
        logger.info("Rasterized %d files into %d rows", len(markups), len(rows))
        return rows
