"""Resumable state threaded through the pipeline phases.

The state is saved as a versioned JSON document so a run can be stopped
after any phase and resumed later, possibly by a newer release.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from textpixels.sources import FileBlob

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateFormatError(ValueError):
    """Raised when a saved state document cannot be loaded."""


@dataclass
class RunState:
    """Everything the phases hand to each other.

    ``html`` lines up with ``blobs``; ``colorrows`` is every file's rows
    concatenated in file order then line order.
    """
    filenames: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    blobs: List[FileBlob] = field(default_factory=list)
    html: List[str] = field(default_factory=list)
    colorrows: List[List[str]] = field(default_factory=list)
    ran: Set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "version": STATE_VERSION,
            "filenames": [[path, root] for path, root in self.filenames],
            "blobs": [blob.to_dict() for blob in self.blobs],
            "html": list(self.html),
            "colorrows": [list(row) for row in self.colorrows],
            "ran": sorted(self.ran),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RunState":
        version = d.get("version")
        if version != STATE_VERSION:
            raise StateFormatError(f"Unsupported state version: {version!r}")
        return cls(
            filenames=[(path, root) for path, root in d.get("filenames", [])],
            blobs=[FileBlob.from_dict(b) for b in d.get("blobs", [])],
            html=list(d.get("html", [])),
            colorrows=[list(row) for row in d.get("colorrows", [])],
            ran=set(d.get("ran", [])),
        )


def save_state(state: RunState, path: Path) -> Path:
    """Write ``state`` to ``path`` atomically (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise
    logger.info("Saved state (%s) → %s", ", ".join(sorted(state.ran)) or "nothing run", path)
    return path


def load_state(path: Path) -> RunState:
    with open(path, encoding="utf-8") as f:
        state = RunState.from_dict(json.load(f))
    logger.info("Loaded state from %s (already ran: %s)",
                path, ", ".join(sorted(state.ran)) or "nothing")
    return state
