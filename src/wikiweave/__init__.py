"""wikiweave: wiki links and transclusion for Markdown document trees."""

from .models import Reference, ResolvedLink, TransformOptions
from .pipeline import transform, transform_markdown
from .render import render_html
from .transclusion import TransclusionCycleError, TransclusionDepthError, TransclusionError
from .tree import Node

__version__ = "0.1.0"

__all__ = [
    "Node",
    "Reference",
    "ResolvedLink",
    "TransformOptions",
    "TransclusionCycleError",
    "TransclusionDepthError",
    "TransclusionError",
    "render_html",
    "transform",
    "transform_markdown",
]
