"""Encode colour rows as an image.

Two encoders: ImageMagick fed raw pixels through a pipe, and Pillow
working on a numpy raster.  Both support cutting a tall raster into
strips of ``height`` rows placed side by side, then cropping.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from textpixels.pixels import ColorPacker, blit, to_array

logger = logging.getLogger(__name__)

_GEOMETRY_RE = re.compile(r"^(\d+)x(\d+)(?:\+(\d+)\+(\d+))?$")


def magick_command(cols: int, rows: int, bg: str, alpha: bool, out: Path,
                   height: Optional[int] = None, crop: Optional[str] = None,
                   program: str = "convert") -> List[str]:
    cmd = [program, "-size", f"{cols}x{rows}"]
    cmd += ["-background", f"#{bg[:6]}"]
    cmd += ["-depth", "8", f"{'rgba' if alpha else 'rgb'}:-"]
    if height:
        cmd += ["-crop", f"x{height}", "+append"]
        if crop:
            cmd += ["-crop", crop]
    cmd.append(str(out))
    return cmd


def magick(colorrows: Sequence[Sequence[str]], cols: int, bg: str, alpha: bool,
           out: Path, packer: ColorPacker, height: Optional[int] = None,
           crop: Optional[str] = None, program: str = "convert") -> Path:
    """Pipe raw pixels into ImageMagick, which writes ``out``."""
    cmd = magick_command(cols, len(colorrows), bg, alpha, out,
                         height=height, crop=crop, program=program)
    logger.info("Running %s", " ".join(cmd))
    proc = subprocess.Popen(cmd, stdin=subprocess.PIPE, stdout=subprocess.PIPE)
    proc.stdout.close()
    broken = None
    try:
        try:
            blit(colorrows, proc.stdin, packer, alpha)
        finally:
            proc.stdin.close()
    except BrokenPipeError as e:
        # the exit status below says why it stopped reading
        logger.warning("%s stopped reading its input", program)
        broken = e
    returncode = proc.wait()
    if returncode:
        raise subprocess.CalledProcessError(returncode, cmd)
    if broken is not None:
        raise broken
    return Path(out)


def parse_geometry(geometry: str) -> Tuple[int, int, int, int]:
    """Parse ``WxH`` or ``WxH+X+Y`` into (x, y, w, h)."""
    m = _GEOMETRY_RE.match(geometry.strip())
    if not m:
        raise ValueError(f"Bad crop geometry: {geometry!r}")
    w, h, x, y = m.groups()
    return int(x or 0), int(y or 0), int(w), int(h)


def background_pixel(bg: str, alpha: bool, packer: ColorPacker) -> np.ndarray:
    return np.frombuffer(packer.pack(bg, alpha), dtype=np.uint8)


def tile_strips(raster: np.ndarray, height: int, fill: np.ndarray) -> np.ndarray:
    """Cut ``raster`` into strips of ``height`` rows laid left to right.

    The last strip is filled out with ``fill`` when the row count is not a
    multiple of ``height``.
    """
    rows, width, depth = raster.shape
    n_strips = max(1, -(-rows // height))
    padded = np.empty((n_strips * height, width, depth), dtype=np.uint8)
    padded[:] = fill
    padded[:rows] = raster
    strips = [padded[i * height:(i + 1) * height] for i in range(n_strips)]
    return np.hstack(strips)


def render_png(colorrows: Sequence[Sequence[str]], bg: str, alpha: bool,
               out: Path, packer: ColorPacker, height: Optional[int] = None,
               crop: Optional[str] = None) -> Optional[Path]:
    """Encode ``colorrows`` with Pillow; format follows ``out``'s suffix.

    Returns None without writing anything when there is nothing to draw.
    """
    raster = to_array(colorrows, packer, alpha)
    if height and raster.size:
        raster = tile_strips(raster, height, background_pixel(bg, alpha, packer))
        if crop:
            x, y, w, h = parse_geometry(crop)
            raster = raster[y:y + h, x:x + w]
    if not raster.size:
        logger.warning("Nothing to render (%d rows), not writing %s", len(colorrows), out)
        return None
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    # (H, W, 3) arrays load as RGB, (H, W, 4) as RGBA
    Image.fromarray(np.ascontiguousarray(raster)).save(out)
    logger.info("Wrote %dx%d image → %s", raster.shape[1], raster.shape[0], out)
    return out
