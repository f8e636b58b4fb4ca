"""Markdown and wiki reference parsing."""

from .markdown import create_parser, parse_document, parse_markdown, strip_frontmatter
from .references import find_references, match_link_reference, parse_reference, tokenize

__all__ = [
    "create_parser",
    "find_references",
    "match_link_reference",
    "parse_document",
    "parse_markdown",
    "parse_reference",
    "strip_frontmatter",
    "tokenize",
]
