"""Colour tables parsed from highlighter stylesheets.

Only two declarations matter for pixel output: ``color`` (foreground) and
``background-color``.  Everything else in a rule is ignored, as are lines
that do not open a ``.class {`` rule.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from pygments.formatters import HtmlFormatter

from textpixels.config import LANGUAGE_COLORS, UNKNOWN_LANG_CLASS, ColorProperty

logger = logging.getLogger(__name__)

_RULE_RE = re.compile(r"^\.(\S+) \{")
_FG_RE = re.compile(r" color: #([\da-f]+)", re.IGNORECASE)
_BG_RE = re.compile(r" background-color: #([\da-f]+)", re.IGNORECASE)


@dataclass(frozen=True)
class ColorStyle:
    """Foreground/background pair declared for one CSS class."""
    fg: Optional[str] = None
    bg: Optional[str] = None


ColorTable = Dict[str, ColorStyle]


def parse_css(css: str) -> ColorTable:
    """Parse foreground and background colours out of stylesheet text.

    A class may appear on several lines; each field keeps the last value
    declared for it.
    """
    classes: ColorTable = {}
    for line in css.splitlines():
        rule = _RULE_RE.match(line)
        if not rule:
            continue
        cls = rule.group(1)
        style = classes.get(cls, ColorStyle())
        fg = _FG_RE.search(line)
        bg = _BG_RE.search(line)
        classes[cls] = ColorStyle(
            fg=fg.group(1).lower() if fg else style.fg,
            bg=bg.group(1).lower() if bg else style.bg,
        )
    return classes


def lang_css(alias: Optional[str]) -> str:
    """CSS class for a language alias (``lang-unknown`` when undetected)."""
    return f"lang-{alias}" if alias else UNKNOWN_LANG_CLASS


def theme_css(style: Optional[str]) -> ColorTable:
    """Colour table of a named Pygments style, empty when none is chosen."""
    if not style:
        return {}
    css = HtmlFormatter(style=style).get_style_defs("")
    table = parse_css(css)
    logger.debug("Theme %s defines %d classes", style, len(table))
    return table


def class_to_color(bg: str) -> Dict[str, str]:
    """Language CSS class -> canonical colour, plus the unknown fallback."""
    colors = {lang_css(alias): color for alias, color in LANGUAGE_COLORS.items()}
    colors[UNKNOWN_LANG_CLASS] = f"#{bg}"
    return colors


def language_css_text(bg: str, props: Iterable[ColorProperty]) -> str:
    """Synthetic stylesheet: one declaration per language and property."""
    props = list(props)
    lines = []
    for cls, color in class_to_color(bg).items():
        for prop in props:
            lines.append(f".{cls} {{ {ColorProperty(prop).value}: {color} }}")
    return "\n".join(lines)


def language_css(bg: str, props: Iterable[ColorProperty]) -> ColorTable:
    props = list(props)
    if not props:
        return {}
    return parse_css(language_css_text(bg, props))


def merge_tables(language: Mapping[str, ColorStyle],
                 theme: Mapping[str, ColorStyle]) -> ColorTable:
    """Overlay the theme table on the language table; theme wins per class."""
    merged = dict(language)
    merged.update(theme)
    return merged


def build_color_table(style: Optional[str], bg: str,
                      props: Iterable[ColorProperty]) -> ColorTable:
    return merge_tables(language_css(bg, props), theme_css(style))
