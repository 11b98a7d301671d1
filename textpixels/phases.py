"""Phase handlers and the RunState fields each one reads and writes."""

import logging
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Dict, Optional, TextIO, Tuple

from textpixels.config import Phase, RunConfig
from textpixels.highlight import htmlize
from textpixels.pixels import ColorPacker, blit, top
from textpixels.rasterizer import MarkupRasterizer
from textpixels.render import magick, render_png
from textpixels.run_state import RunState
from textpixels.sources import classify, find_files
from textpixels.stylesheet import build_color_table, lang_css

logger = logging.getLogger(__name__)


@dataclass
class PhaseContext:
    """Per-run resources shared by the handlers."""
    config: RunConfig
    packer: ColorPacker = field(default_factory=ColorPacker)
    stdin: Optional[TextIO] = None
    stdout: Optional[BinaryIO] = None

    def output_stream(self) -> BinaryIO:
        return self.stdout if self.stdout is not None else sys.stdout.buffer


Handler = Callable[[RunState, PhaseContext], None]


@dataclass(frozen=True)
class PhaseSpec:
    handler: Handler
    reads: Tuple[str, ...]
    writes: Tuple[str, ...]


# ---- findfiles ----

def run_findfiles(state: RunState, ctx: PhaseContext):
    state.filenames = find_files(ctx.config.files_from, ctx.stdin)
    logger.info("Found %d files", len(state.filenames))


# ---- identify ----

def run_identify(state: RunState, ctx: PhaseContext):
    kept = 0
    for i, (path, root) in enumerate(state.filenames):
        blob = classify(path, root)
        logger.debug("  [%d/%d] %s", i + 1, len(state.filenames), path)
        if blob is None:
            continue
        state.blobs.append(blob)
        kept += 1
    logger.info("Kept %d of %d files", kept, len(state.filenames))


# ---- htmlize ----

def run_htmlize(state: RunState, ctx: PhaseContext):
    for i, blob in enumerate(state.blobs):
        logger.debug("  [%d/%d] highlighting %s (%s)", i + 1, len(state.blobs),
                     blob.name, blob.language or "unknown")
        state.html.append(htmlize(blob))
    logger.info("Highlighted %d files", len(state.blobs))


# ---- pixelate ----

def run_pixelate(state: RunState, ctx: PhaseContext):
    config = ctx.config
    table = build_color_table(config.style, config.bg, config.lang_as)
    rasterizer = MarkupRasterizer(table, config.cols, config.fg, config.bg)
    lang_classes = None
    if len(state.blobs) == len(state.html):
        lang_classes = [lang_css(blob.language) for blob in state.blobs]
    state.colorrows = rasterizer.rasterize(state.html, lang_classes)


# ---- blit / magick / png ----

def run_blit(state: RunState, ctx: PhaseContext):
    rows = top(state.colorrows, ctx.config.line_limit)
    out = ctx.output_stream()
    blit(rows, out, ctx.packer, ctx.config.alpha)
    out.flush()


def run_magick(state: RunState, ctx: PhaseContext):
    config = ctx.config
    magick(top(state.colorrows, config.line_limit), config.cols, config.bg,
           config.alpha, config.out, ctx.packer, height=config.height,
           crop=config.crop, program=config.magick_command)


def run_png(state: RunState, ctx: PhaseContext):
    config = ctx.config
    render_png(top(state.colorrows, config.line_limit), config.bg,
               config.alpha, config.out, ctx.packer, height=config.height,
               crop=config.crop)


PHASES: Dict[Phase, PhaseSpec] = {
    Phase.FINDFILES: PhaseSpec(run_findfiles, reads=(), writes=("filenames",)),
    Phase.IDENTIFY: PhaseSpec(run_identify, reads=("filenames",), writes=("blobs",)),
    Phase.HTMLIZE: PhaseSpec(run_htmlize, reads=("blobs",), writes=("html",)),
    Phase.PIXELATE: PhaseSpec(run_pixelate, reads=("html", "blobs"), writes=("colorrows",)),
    Phase.BLIT: PhaseSpec(run_blit, reads=("colorrows",), writes=()),
    Phase.MAGICK: PhaseSpec(run_magick, reads=("colorrows",), writes=()),
    Phase.PNG: PhaseSpec(run_png, reads=("colorrows",), writes=()),
}
