"""Transform pipeline entry points.

Pass order:
1. normalize references: every wiki reference becomes a ``wikiReference`` node
2. resolve references: links become anchors, embeds are expanded
   (expanded content has already been through the whole pipeline)
3. PDF embeds
4. images
5. highlights

Later passes see markup produced by earlier ones, so the order is fixed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .loader import ContentLoader, FileSystemLoader
from .models import TransformOptions
from .parser.markdown import parse_document
from .rewriter import (
    normalize_references,
    resolve_references,
    rewrite_highlights,
    rewrite_images,
    rewrite_pdf_embeds,
)
from .transclusion import TransclusionEngine, TransformContext, chain_key
from .tree import Node

log = logging.getLogger(__name__)

PASSES: list[tuple[str, Callable[[Node, TransformContext], None]]] = [
    ("references", lambda tree, ctx: normalize_references(tree)),
    ("resolve", resolve_references),
    ("pdf", lambda tree, ctx: rewrite_pdf_embeds(tree)),
    ("images", lambda tree, ctx: rewrite_images(tree, ctx.options)),
    ("highlights", lambda tree, ctx: rewrite_highlights(tree, ctx.options)),
]


def run_passes(tree: Node, context: TransformContext) -> Node:
    """Apply every pass to ``tree`` in order and return it."""
    for name, apply_pass in PASSES:
        log.debug("Running %s pass (embed depth %d)", name, len(context.chain))
        apply_pass(tree, context)
    return tree


def build_context(
    options: TransformOptions | None = None,
    *,
    loader: ContentLoader | None = None,
    source_title: str | None = None,
) -> TransformContext:
    """Assemble the context for a top-level run.

    Transclusion is enabled when a loader is given, or when the options name
    a ``document_root`` to load from. ``source_title`` seeds cycle detection
    with the document being transformed, so a page embedding itself is
    caught at the first level.
    """
    options = options or TransformOptions()
    if loader is None and options.document_root is not None:
        loader = FileSystemLoader(options.document_root)

    engine = TransclusionEngine(loader, run_passes) if loader is not None else None
    chain = (chain_key(source_title),) if source_title else ()
    return TransformContext(options=options, engine=engine, chain=chain)


def transform(
    tree: Node,
    options: TransformOptions | None = None,
    *,
    loader: ContentLoader | None = None,
    source_title: str | None = None,
) -> Node:
    """Rewrite wiki links, embeds, images, PDFs and highlights in ``tree``.

    The tree is mutated in place and returned.

    Args:
        tree: Document tree (``root`` node).
        options: Transform options; defaults apply when omitted.
        loader: Source for embedded documents, overriding ``document_root``.
        source_title: Title of the document ``tree`` was parsed from.

    Returns:
        The same tree.

    Raises:
        TransclusionError: On embed cycles or nesting past ``max_embed_depth``
            (unless ``on_embed_error`` is ``"link"``).
    """
    context = build_context(options, loader=loader, source_title=source_title)
    return run_passes(tree, context)


def transform_markdown(
    content: str,
    options: TransformOptions | None = None,
    *,
    loader: ContentLoader | None = None,
    source_title: str | None = None,
) -> Node:
    """Parse a Markdown document (front matter allowed) and transform it."""
    options = options or TransformOptions()
    tree = parse_document(content, breaks=options.breaks)
    return transform(tree, options, loader=loader, source_title=source_title)
