"""Command line interface for textpixels.

Usage:
    textpixels [--files-from <repo|list>] [-o out.png] [--cols 100]
               [--phases findfiles,identify,htmlize,pixelate,magick]
               [--finish PHASE] [--save-state state.json] [--load-state state.json]

Phases:
  findfiles — List tracked files of a git repo, or read paths from a file/stdin
  identify  — Drop binary, generated and vendored files; detect languages
  htmlize   — Highlight every file with Pygments
  pixelate  — Turn highlighted markup into rows of colours
  blit      — Write raw pixels to stdout
  magick    — Render the image with ImageMagick
  png       — Render the image with Pillow

A long run can be checkpointed with ``--finish pixelate --save-state s.json``
and resumed later with ``--load-state s.json``; phases already run are skipped.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from textpixels.config import (
    DEFAULT_BG,
    DEFAULT_COLS,
    DEFAULT_FG,
    DEFAULT_OUT,
    DEFAULT_PHASES,
    ColorProperty,
    Phase,
    RunConfig,
)
from textpixels.executor import PipelineConfigError, PipelineExecutor
from textpixels.run_state import StateFormatError

logger = logging.getLogger("textpixels")


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _split_phases(value: str) -> List[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textpixels",
        description="Render source code as pixel art, one pixel per character.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    # -- phases --
    parser.add_argument("--phases", type=_split_phases,
                        default=[p.value for p in DEFAULT_PHASES],
                        help="Comma-separated phases to run (%s)"
                             % ", ".join(p.value for p in Phase))
    parser.add_argument("--finish", default=None,
                        help="Stop after this phase")
    parser.add_argument("--load-state", type=Path, default=None,
                        help="Resume from a saved state file")
    parser.add_argument("--save-state", type=Path, default=None,
                        help="Save state here when the run ends")

    # -- input / output --
    parser.add_argument("--files-from", type=Path, default=None,
                        help="Git repo directory or file listing paths (default: stdin)")
    parser.add_argument("-o", "--out", type=Path, default=DEFAULT_OUT,
                        help=f"Output image (default: {DEFAULT_OUT})")
    parser.add_argument("--line-limit", type=int, default=None,
                        help="Only draw the first N lines")
    parser.add_argument("--height", type=int, default=None,
                        help="Cut the image into strips this many rows high, side by side")
    parser.add_argument("--crop", default=None,
                        help="Crop geometry applied after --height (e.g. 1920x1080+0+0)")
    parser.add_argument("--magick-command", default="convert",
                        help="ImageMagick executable (default: convert)")

    # -- colours --
    parser.add_argument("--cols", type=int, default=DEFAULT_COLS,
                        help=f"Pixels per line (default: {DEFAULT_COLS})")
    parser.add_argument("--fg", default=DEFAULT_FG,
                        help=f"Default foreground colour (default: {DEFAULT_FG})")
    parser.add_argument("--bg", default=DEFAULT_BG,
                        help=f"Default background colour (default: {DEFAULT_BG})")
    parser.add_argument("--alpha", action="store_true",
                        help="Emit RGBA pixels")
    parser.add_argument("--style", default=None,
                        help="Pygments style for token colours (e.g. monokai)")
    parser.add_argument("--lang-as", action="append", default=[],
                        choices=[p.value for p in ColorProperty],
                        help="Apply each language's colour to this CSS property (repeatable)")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        phases=args.phases,
        finish=args.finish,
        cols=args.cols,
        fg=args.fg,
        bg=args.bg,
        alpha=args.alpha,
        line_limit=args.line_limit,
        style=args.style,
        lang_as=args.lang_as,
        load_state=args.load_state,
        save_state=args.save_state,
        files_from=args.files_from,
        out=args.out,
        height=args.height,
        crop=args.crop,
        magick_command=args.magick_command,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    config = config_from_args(args)
    try:
        executor = PipelineExecutor(config)
        executor.run()
    except (PipelineConfigError, StateFormatError) as e:
        logger.error("%s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
