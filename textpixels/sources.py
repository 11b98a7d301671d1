"""Find source files and decide which of them are worth drawing.

Binary, generated and vendored files are dropped.  Language detection is
delegated to Pygments' filename-based lexer lookup.
"""

import logging
import os
import re
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

# bytes inspected when sniffing for binary content
SNIFF_BYTES = 8000

VENDORED_DIRS = {
    "node_modules", "bower_components", "vendor", "vendors", "third_party",
    "third-party", "thirdparty", ".venv", "venv", "site-packages", "Pods",
}

GENERATED_NAMES = {
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "Cargo.lock",
    "Gemfile.lock", "poetry.lock", "composer.lock", "go.sum",
}

_GENERATED_NAME_RE = re.compile(
    r"(\.min\.(js|css)$|\.map$|_pb2\.py$|\.pb\.(go|cc|h)$|\.designer\.cs$)"
)
_GENERATED_MARKER_RE = re.compile(
    r"(auto-?generated|generated by|do not edit|@generated)", re.IGNORECASE
)
_MARKER_LINES = 5


@dataclass
class FileBlob:
    """A source file accepted for drawing."""
    path: str
    root: Optional[str] = None
    language: Optional[str] = None      # Pygments lexer alias

    def to_dict(self) -> dict:
        return {"path": self.path, "root": self.root, "language": self.language}

    @classmethod
    def from_dict(cls, d: dict) -> "FileBlob":
        return cls(path=d["path"], root=d.get("root"), language=d.get("language"))

    @property
    def name(self) -> str:
        if self.root:
            return os.path.relpath(self.path, self.root)
        return self.path

    def read_text(self) -> str:
        return Path(self.path).read_text(encoding="utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

def git_ls_files(repo: Path) -> List[Tuple[str, Optional[str]]]:
    """Files tracked by git under ``repo`` that exist as regular files."""
    rel = str(repo)
    git_dir = os.path.join(rel, ".git")
    if not os.path.isdir(git_dir):
        git_dir = rel                   # bare repository
    result = subprocess.run(
        ["git", f"--git-dir={git_dir}", "ls-files"],
        check=True,
        capture_output=True,
        text=True,
    )
    files = []
    for entry in result.stdout.split("\n"):
        if not entry:
            continue
        path = os.path.join(rel, entry)
        if os.path.isfile(path):
            files.append((path, rel))
    return files


def read_file_list(lines) -> List[Tuple[str, Optional[str]]]:
    paths = (line.rstrip("\r\n") for line in lines)
    return [(path, None) for path in paths if path]


def find_files(source: Optional[Path],
               stdin: Optional[TextIO] = None) -> List[Tuple[str, Optional[str]]]:
    """Enumerate (path, root) pairs from a repo, a list file, or stdin."""
    if source is None:
        return read_file_list(stdin if stdin is not None else sys.stdin)
    source = Path(source)
    if source.is_dir():
        return git_ls_files(source)
    with open(source, encoding="utf-8") as f:
        return read_file_list(f)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def is_binary(head: bytes) -> bool:
    return b"\0" in head[:SNIFF_BYTES]


def is_vendored(path: str) -> bool:
    return any(part in VENDORED_DIRS for part in Path(path).parts)


def is_generated(path: str, head: bytes) -> bool:
    name = os.path.basename(path)
    if name in GENERATED_NAMES or _GENERATED_NAME_RE.search(name):
        return True
    first_lines = head.decode("utf-8", errors="replace").splitlines()[:_MARKER_LINES]
    return any(_GENERATED_MARKER_RE.search(line) for line in first_lines)


def detect_language(path: str) -> Optional[str]:
    try:
        lexer = get_lexer_for_filename(path)
    except ClassNotFound:
        return None
    return lexer.aliases[0] if lexer.aliases else None


def classify(path: str, root: Optional[str] = None) -> Optional[FileBlob]:
    """Return a FileBlob for ``path``, or None if it should be skipped."""
    with open(path, "rb") as f:
        head = f.read(SNIFF_BYTES)
    if is_binary(head):
        logger.debug("  skip binary %s", path)
        return None
    if is_vendored(os.path.relpath(path, root) if root else path):
        logger.debug("  skip vendored %s", path)
        return None
    if is_generated(path, head):
        logger.debug("  skip generated %s", path)
        return None
    return FileBlob(path=path, root=root, language=detect_language(path))
