"""Colour strings to raw pixel bytes."""

import logging
from typing import BinaryIO, Dict, List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

OPAQUE = 255


class ColorPacker:
    """Pack hex colours (``"ff9900"`` / ``"ff990080"``) into pixel bytes.

    Results are cached per (colour, alpha) pair for the packer's lifetime;
    a pipeline run owns one packer, so the cache starts empty on every run.
    """

    def __init__(self):
        self._cache: Dict[Tuple[str, bool], bytes] = {}

    def pack(self, color: str, alpha: bool) -> bytes:
        key = (color, alpha)
        packed = self._cache.get(key)
        if packed is None:
            components = [int(color[i:i + 2], 16) for i in range(0, len(color), 2)]
            if alpha and len(components) < 4:
                components.append(OPAQUE)
            if not alpha and len(components) > 3:
                components = components[:3]
            packed = bytes(components)
            self._cache[key] = packed
        return packed


def channels(alpha: bool) -> int:
    return 4 if alpha else 3


def pad(colors: Sequence[str], cols: int, fill: str) -> List[str]:
    """Pad ``colors`` with ``fill`` up to ``cols`` entries, or truncate."""
    if len(colors) < cols:
        return list(colors) + [fill] * (cols - len(colors))
    return list(colors[:cols])


def top(rows: Sequence, limit=None) -> Sequence:
    """First ``limit`` rows, or all of them when no limit is set."""
    return rows if limit is None else rows[:limit]


def pack_row(row: Sequence[str], packer: ColorPacker, alpha: bool) -> bytes:
    return b"".join(packer.pack(color, alpha) for color in row)


def blit(colorrows: Sequence[Sequence[str]], out: BinaryIO,
         packer: ColorPacker, alpha: bool) -> int:
    """Write ``colorrows`` to ``out`` as raw row-major pixels, no header.

    Returns the number of bytes written.
    """
    written = 0
    for i, row in enumerate(colorrows):
        data = pack_row(row, packer, alpha)
        out.write(data)
        written += len(data)
        if i and i % 10000 == 0:
            logger.debug("  blitted %d/%d rows", i, len(colorrows))
    logger.info("Blitted %d rows (%d bytes)", len(colorrows), written)
    return written


def to_array(colorrows: Sequence[Sequence[str]], packer: ColorPacker,
             alpha: bool) -> np.ndarray:
    """Build an (H, W, C) uint8 raster from equal-width colour rows."""
    depth = channels(alpha)
    if not colorrows:
        return np.zeros((0, 0, depth), dtype=np.uint8)
    width = len(colorrows[0])
    raw = b"".join(pack_row(row, packer, alpha) for row in colorrows)
    return np.frombuffer(raw, dtype=np.uint8).reshape(len(colorrows), width, depth)
