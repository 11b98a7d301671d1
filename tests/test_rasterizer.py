"""Tests for markup → colour conversion.

Covers the stylesheet parser, entity decoding, pixel packing, padding and
the scope-stack rasterizer on hand-written markup.
"""

from __future__ import annotations

import pytest

from textpixels.config import ColorProperty
from textpixels.entities import REPLACEMENT_CHARACTER, decode_entities
from textpixels.pixels import ColorPacker, pad
from textpixels.rasterizer import ColorScope, MarkupRasterizer, ScopeStack
from textpixels.stylesheet import (
    ColorStyle,
    build_color_table,
    language_css,
    language_css_text,
    lang_css,
    merge_tables,
    parse_css,
    theme_css,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rasterizer(table, cols, fg="000000", bg="ffffff"):
    return MarkupRasterizer(table, cols, fg, bg)


WHITE = "ffffff"
BLACK = "000000"
RED = "ff0000"


# ---------------------------------------------------------------------------
# Tests: stylesheet parsing
# ---------------------------------------------------------------------------

class TestParseCss:
    def test_color_and_background(self):
        table = parse_css(".foo { color: #112233; background-color: #445566 }")
        assert table == {"foo": ColorStyle(fg="112233", bg="445566")}

    def test_unmatched_lines_ignored(self):
        css = "\n".join([
            "pre { line-height: 125%; }",
            "td.linenos { color: #000000 }",
            "  .indented { color: #123456 }",
            "garbage",
            ".ok { color: #abcdef }",
        ])
        assert parse_css(css) == {"ok": ColorStyle(fg="abcdef")}

    def test_later_line_overwrites_only_its_field(self):
        css = "\n".join([
            ".foo { color: #111111 }",
            ".foo { background-color: #222222 }",
            ".foo { color: #333333 }",
        ])
        assert parse_css(css)["foo"] == ColorStyle(fg="333333", bg="222222")

    def test_background_alone_is_not_a_foreground(self):
        table = parse_css(".hll { background-color: #ffffcc }")
        assert table["hll"] == ColorStyle(fg=None, bg="ffffcc")

    def test_uppercase_hex_is_lowered(self):
        assert parse_css(".k { color: #66D9EF }")["k"].fg == "66d9ef"

    def test_class_without_colours(self):
        assert parse_css(".b { font-weight: bold }") == {"b": ColorStyle()}


class TestColorTables:
    def test_theme_from_pygments_style(self):
        table = theme_css("monokai")
        assert "k" in table
        assert len(table["k"].fg) == 6

    def test_no_theme(self):
        assert theme_css(None) == {}

    def test_language_css_text(self):
        text = language_css_text("ffffff", [ColorProperty.FOREGROUND])
        assert ".lang-python { color: #3572a5 }" in text.splitlines()
        assert ".lang-unknown { color: #ffffff }" in text.splitlines()

    def test_language_css_both_properties(self):
        table = language_css("eeeeee", [ColorProperty.FOREGROUND, ColorProperty.BACKGROUND])
        assert table["lang-python"] == ColorStyle(fg="3572a5", bg="3572a5")
        assert table["lang-unknown"] == ColorStyle(fg="eeeeee", bg="eeeeee")

    def test_language_css_without_properties_is_empty(self):
        assert language_css("ffffff", []) == {}

    def test_theme_wins_on_conflict(self):
        language = {"lang-python": ColorStyle(fg="3572a5"), "x": ColorStyle(fg="010101")}
        theme = {"lang-python": ColorStyle(bg="000000")}
        merged = merge_tables(language, theme)
        assert merged["lang-python"] == ColorStyle(bg="000000")
        assert merged["x"] == ColorStyle(fg="010101")

    def test_build_color_table_combines(self):
        table = build_color_table("default", "ffffff", [ColorProperty.BACKGROUND])
        assert table["lang-ruby"].bg == "701516"
        assert "k" in table

    def test_lang_css(self):
        assert lang_css("python") == "lang-python"
        assert lang_css(None) == "lang-unknown"


# ---------------------------------------------------------------------------
# Tests: entity decoding
# ---------------------------------------------------------------------------

class TestDecodeEntities:
    def test_decimal(self):
        assert decode_entities("&#65;") == "A"

    def test_decimal_unterminated(self):
        assert decode_entities("&#65B") == "AB"

    def test_hex(self):
        assert decode_entities("&#x41;") == "A"
        assert decode_entities("&#X6a;") == "j"

    def test_hex_unterminated(self):
        assert decode_entities("&#x41z") == "Az"

    def test_named_becomes_replacement(self):
        assert decode_entities("&amp;") == REPLACEMENT_CHARACTER
        r = REPLACEMENT_CHARACTER
        assert decode_entities("a &lt;b&gt;") == f"a {r}b{r}"

    def test_pygments_quote(self):
        assert decode_entities("&#39;x&#39;") == "'x'"

    def test_no_double_substitution(self):
        assert decode_entities("&#38;amp;") == "&amp;"
        assert decode_entities("&#38;#65;") == "&#65;"

    def test_out_of_range(self):
        assert decode_entities("&#1114112;") == REPLACEMENT_CHARACTER
        assert decode_entities("&#99999999999999999999999;") == REPLACEMENT_CHARACTER
        assert decode_entities("&#xFFFFFFFF;") == REPLACEMENT_CHARACTER

    def test_surrogates(self):
        assert decode_entities("&#xD800;") == REPLACEMENT_CHARACTER

    def test_malformed_left_alone(self):
        assert decode_entities("&#; & &x") == "&#; & &x"

    def test_plain_text_unchanged(self):
        assert decode_entities("if x:") == "if x:"


# ---------------------------------------------------------------------------
# Tests: packing and padding
# ---------------------------------------------------------------------------

class TestColorPacker:
    def test_rgb(self):
        assert ColorPacker().pack("ff9900", False) == bytes([255, 153, 0])

    def test_rgb_with_alpha_is_opaque(self):
        assert ColorPacker().pack("ff9900", True) == bytes([255, 153, 0, 255])

    def test_rgba_without_alpha_drops_it(self):
        assert ColorPacker().pack("ff990080", False) == bytes([255, 153, 0])

    def test_rgba_with_alpha(self):
        assert ColorPacker().pack("ff990080", True) == bytes([255, 153, 0, 128])

    def test_memoized(self):
        packer = ColorPacker()
        first = packer.pack("123456", False)
        assert packer.pack("123456", False) is first
        with_alpha = packer.pack("123456", True)
        assert with_alpha == bytes([0x12, 0x34, 0x56, 255])
        assert packer.pack("123456", True) is with_alpha

    def test_fresh_packer_per_run(self):
        from textpixels.config import RunConfig
        from textpixels.phases import PhaseContext

        first = PhaseContext(config=RunConfig())
        second = PhaseContext(config=RunConfig())
        assert first.packer is not second.packer


class TestPad:
    @pytest.mark.parametrize("cols", range(0, 6))
    @pytest.mark.parametrize("colors", [[], ["a"], ["a", "b", "c"]])
    def test_always_exact_width(self, colors, cols):
        out = pad(colors, cols, "z")
        assert len(out) == cols
        if len(colors) >= cols:
            assert out == colors[:cols]
        else:
            assert out[:len(colors)] == colors
            assert out[len(colors):] == ["z"] * (cols - len(colors))

    def test_truncates_from_the_end(self):
        assert pad(["a", "b", "c"], 2, "z") == ["a", "b"]


# ---------------------------------------------------------------------------
# Tests: scope stack
# ---------------------------------------------------------------------------

class TestScopeStack:
    def test_never_pops_base(self):
        base = ColorScope(fg=BLACK, bg=WHITE)
        stack = ScopeStack(base)
        assert stack.pop() is False
        assert len(stack) == 1
        assert stack.top == base

    def test_block_push_replaces_base(self):
        stack = ScopeStack(ColorScope(fg=BLACK, bg=WHITE))
        scope = ColorScope(fg=RED, bg=BLACK)
        stack.push(scope, block=True)
        assert stack.base == scope
        assert stack.pop() is True
        assert stack.top == scope

    def test_merge_inherits_missing_fields(self):
        scope = ColorScope(fg=BLACK, bg=WHITE).merged(ColorStyle(fg=RED))
        assert scope == ColorScope(fg=RED, bg=WHITE)


# ---------------------------------------------------------------------------
# Tests: rasterizer
# ---------------------------------------------------------------------------

class TestRasterizer:
    def test_end_to_end_row(self):
        table = {
            "lang-unknown": ColorStyle(fg=BLACK, bg=WHITE),
            "k": ColorStyle(fg=RED),
        }
        markup = '<div class="lang-unknown"><span class="k">if</span> x</div>'
        rows = _rasterizer(table, 6).rasterize([markup])
        assert rows == [[RED, RED, WHITE, BLACK, WHITE, WHITE]]

    def test_nested_spans(self):
        table = {
            "a": ColorStyle(fg="aa0000", bg="00aa00"),
            "b": ColorStyle(fg="0000bb"),
        }
        markup = '<span class="a"><span class="b">X</span>Y</span>'
        rows = _rasterizer(table, 2, fg="111111", bg="222222").rasterize([markup])
        assert rows == [["0000bb", "aa0000"]]

    def test_nested_whitespace_uses_inherited_background(self):
        table = {
            "a": ColorStyle(fg="aa0000", bg="00aa00"),
            "b": ColorStyle(fg="0000bb"),
        }
        markup = '<span class="a"><span class="b"> </span></span>'
        rows = _rasterizer(table, 1).rasterize([markup])
        assert rows == [["00aa00"]]

    def test_unmatched_close_is_ignored(self):
        rows = _rasterizer({}, 2, fg="111111", bg="222222").rasterize(["</span></div>x"])
        assert rows == [["111111", "222222"]]

    def test_unknown_class_inherits(self):
        rows = _rasterizer({}, 1, fg="111111").rasterize(['<span class="nope">x</span>'])
        assert rows == [["111111"]]

    def test_div_redefines_defaults_for_later_lines(self):
        table = {"d": ColorStyle(fg="dd0000", bg="0000dd")}
        markup = '<div class="d"><pre>ab\nc\n</pre></div>'
        rows = _rasterizer(table, 3).rasterize([markup])
        assert rows == [
            ["dd0000", "dd0000", "0000dd"],
            ["dd0000", "0000dd", "0000dd"],
        ]

    def test_padding_uses_base_not_span_background(self):
        table = {"a": ColorStyle(fg="aa0000", bg="00aa00")}
        rows = _rasterizer(table, 4, bg="222222").rasterize(['<span class="a">ab'])
        assert rows == [["aa0000", "aa0000", "222222", "222222"]]

    def test_span_carries_across_lines(self):
        table = {"s": ColorStyle(fg="5a5a5a")}
        rows = _rasterizer(table, 1).rasterize(['<span class="s">"a\nb"</span>\nc'])
        assert rows == [["5a5a5a"], ["5a5a5a"], [BLACK]]

    def test_footer_not_emitted(self):
        rows = _rasterizer({}, 1).rasterize(["<div><pre>x\n</pre></div>"])
        assert len(rows) == 1

    def test_bare_span_stays_balanced(self):
        table = {"k": ColorStyle(fg=RED)}
        markup = '<span class="k"><span></span>i</span>'
        rows = _rasterizer(table, 1).rasterize([markup])
        assert rows == [[RED]]

    def test_entities_take_one_column(self):
        rows = _rasterizer({}, 4).rasterize(["&lt;a&gt;"])
        assert rows == [[BLACK, BLACK, BLACK, WHITE]]

    def test_truncates_long_lines(self):
        rows = _rasterizer({}, 3).rasterize(["abcdef"])
        assert rows == [[BLACK] * 3]

    def test_empty_line_is_all_background(self):
        rows = _rasterizer({}, 2, bg="abcabc").rasterize(["a\n\nb"])
        assert rows[1] == ["abcabc", "abcabc"]

    @pytest.mark.parametrize("sep", ["\x0c", "\x0b", "\x1c", "\x85", "\u2028", "\u2029"])
    def test_only_newline_ends_a_row(self, sep):
        rows = _rasterizer({}, 3).rasterize([f"a{sep}b\nc\n"])
        assert rows == [[BLACK, WHITE, BLACK], [BLACK, WHITE, WHITE]]

    def test_carriage_return_is_stripped(self):
        rows = _rasterizer({}, 2, bg="222222").rasterize(["a\r\nb\r\n"])
        assert rows == [[BLACK, "222222"], [BLACK, "222222"]]

    def test_files_in_order_with_fresh_stacks(self):
        table = {
            "p": ColorStyle(fg="0000a1", bg="a10000"),
            "q": ColorStyle(fg="0000b2"),
        }
        markups = ['<div class="p">a', '<div class="q">b\nc']
        rows = _rasterizer(table, 1).rasterize(markups)
        assert rows == [["0000a1"], ["0000b2"], ["0000b2"]]

    def test_language_class_sets_base(self):
        table = {"lang-python": ColorStyle(fg="3572a5"), "lang-unknown": ColorStyle(fg="999999")}
        r = _rasterizer(table, 1)
        assert r.rasterize(["x"], ["lang-python"]) == [["3572a5"]]
        assert r.rasterize(["x"]) == [["999999"]]
