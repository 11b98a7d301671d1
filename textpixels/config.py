"""Run configuration: phases, colour defaults, language colour table."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_COLS = 100
DEFAULT_FG = "000000"
DEFAULT_BG = "ffffff"
DEFAULT_OUT = Path("textpixels.png")

# CSS class used when a file's language could not be determined
UNKNOWN_LANG_CLASS = "lang-unknown"


# ---------------------------------------------------------------------------
# Canonical language colours (GitHub linguist palette), keyed by the
# highlighter's primary alias for the language.
# ---------------------------------------------------------------------------
LANGUAGE_COLORS: Dict[str, str] = {
    "bash": "#89e051",
    "c": "#555555",
    "clojure": "#db5855",
    "cpp": "#f34b7d",
    "csharp": "#178600",
    "css": "#563d7c",
    "dart": "#00b4ab",
    "docker": "#384d54",
    "elixir": "#6e4a7e",
    "emacs-lisp": "#c065db",
    "erlang": "#b83998",
    "go": "#00add8",
    "haskell": "#5e5086",
    "html": "#e34c26",
    "java": "#b07219",
    "javascript": "#f1e05a",
    "json": "#292929",
    "kotlin": "#a97bff",
    "lua": "#000080",
    "make": "#427819",
    "markdown": "#083fa1",
    "objective-c": "#438eff",
    "ocaml": "#ef7a08",
    "perl": "#0298c3",
    "php": "#4f5d95",
    "python": "#3572a5",
    "ruby": "#701516",
    "rust": "#dea584",
    "scala": "#c22d40",
    "sql": "#e38c00",
    "swift": "#f05138",
    "toml": "#9c4221",
    "typescript": "#3178c6",
    "vim": "#199f4b",
    "yaml": "#cb171e",
    "zig": "#ec915c",
}


class Phase(str, Enum):
    FINDFILES = "findfiles"
    IDENTIFY = "identify"
    HTMLIZE = "htmlize"
    PIXELATE = "pixelate"
    BLIT = "blit"
    MAGICK = "magick"
    PNG = "png"                 # encode with Pillow instead of ImageMagick


DEFAULT_PHASES = [
    Phase.FINDFILES,
    Phase.IDENTIFY,
    Phase.HTMLIZE,
    Phase.PIXELATE,
    Phase.MAGICK,
]


class ColorProperty(str, Enum):
    """CSS property a language colour is applied to."""
    FOREGROUND = "color"
    BACKGROUND = "background-color"


def normalize_color(value: str) -> str:
    """Strip a leading '#' and lowercase a hex colour."""
    return value.lstrip("#").lower()


@dataclass
class RunConfig:
    """Top-level run configuration."""
    # Phase control
    phases: List[str] = field(default_factory=lambda: [p.value for p in DEFAULT_PHASES])
    finish: Optional[str] = None            # stop once this phase has run

    # Raster
    cols: int = DEFAULT_COLS
    fg: str = DEFAULT_FG
    bg: str = DEFAULT_BG
    alpha: bool = False
    line_limit: Optional[int] = None        # only emit the first N rows

    # Colours
    style: Optional[str] = None             # Pygments style name
    lang_as: List[ColorProperty] = field(default_factory=list)

    # State persistence
    load_state: Optional[Path] = None
    save_state: Optional[Path] = None

    # Input / output
    files_from: Optional[Path] = None       # directory, list file, or None for stdin
    out: Path = DEFAULT_OUT
    height: Optional[int] = None            # tile height for side-by-side strips
    crop: Optional[str] = None              # geometry applied after tiling
    magick_command: str = "convert"

    def __post_init__(self):
        self.fg = normalize_color(self.fg)
        self.bg = normalize_color(self.bg)
        self.lang_as = [ColorProperty(p) for p in self.lang_as]
