"""Source code as pixel art.

Every character of a code base becomes one pixel, coloured by its
syntax-highlighting scope.  The work is split into resumable phases:
find files, identify them, highlight, pixelate, and render.
"""

from .config import Phase, RunConfig
from .executor import PipelineConfigError, PipelineExecutor, run_pipeline
from .rasterizer import MarkupRasterizer
from .run_state import RunState

__all__ = [
    "MarkupRasterizer",
    "Phase",
    "PipelineConfigError",
    "PipelineExecutor",
    "RunConfig",
    "RunState",
    "run_pipeline",
]
