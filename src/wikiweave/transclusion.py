"""Recursive transclusion of ``![[Title]]`` embeds.

An embed is replaced by the content of the document it names. The loaded
document goes through the full transform pipeline before it is spliced in,
so embeds inside embeds are expanded too. Every expansion carries the chain
of titles currently being expanded; meeting a title already on the chain,
or nesting deeper than ``max_embed_depth``, raises instead of recursing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from .loader import ContentLoader
from .models import Reference, TransformOptions
from .parser.markdown import parse_document
from .slugs import slugify
from .tree import Node, to_string

log = logging.getLogger(__name__)


class TransclusionError(Exception):
    """Raised when an embed cannot be expanded safely."""

    def __init__(self, title: str, chain: tuple[str, ...], message: str) -> None:
        self.title = title
        self.chain = chain
        self.message = message
        super().__init__(f"{title}: {message}")


class TransclusionCycleError(TransclusionError):
    """An embed leads back to a document that is already being expanded."""

    def __init__(self, title: str, chain: tuple[str, ...]) -> None:
        path = " -> ".join((*chain, title))
        super().__init__(title, chain, f"embed cycle ({path})")


class TransclusionDepthError(TransclusionError):
    """Embeds are nested deeper than the configured limit."""

    def __init__(self, title: str, chain: tuple[str, ...], limit: int) -> None:
        super().__init__(title, chain, f"embeds nested deeper than {limit} levels")


def chain_key(title: str) -> str:
    """Normalize a title for cycle detection."""
    return title.strip().casefold()


@dataclass(frozen=True)
class TransformContext:
    """State of one pipeline run: options, embed engine and expansion chain."""

    options: TransformOptions
    engine: TransclusionEngine | None = None
    chain: tuple[str, ...] = ()

    def descend(self, title: str) -> TransformContext:
        return replace(self, chain=(*self.chain, chain_key(title)))


def extract_section(nodes: list[Node], heading: str) -> list[Node] | None:
    """Return the heading whose text slugs like ``heading`` and its section.

    The section runs until the next heading of the same or a higher level.

    Returns:
        The section nodes, or None when no heading matches.
    """
    target = slugify(heading)
    for start, node in enumerate(nodes):
        if node.type != "heading" or slugify(to_string(node)) != target:
            continue
        depth = node.attrs.get("depth", 1)
        end = len(nodes)
        for i in range(start + 1, len(nodes)):
            if nodes[i].type == "heading" and nodes[i].attrs.get("depth", 1) <= depth:
                end = i
                break
        return nodes[start:end]
    return None


class TransclusionEngine:
    """Loads embedded documents and runs the pipeline over them.

    Args:
        loader: Source of document text.
        run: The pipeline entry, called on each loaded document tree.
    """

    def __init__(self, loader: ContentLoader, run: Callable[[Node, TransformContext], Node]):
        self.loader = loader
        self._run = run

    def expand(self, reference: Reference, context: TransformContext) -> list[Node]:
        """Produce the nodes that replace an embed.

        Args:
            reference: The embed reference.
            context: Context of the document containing the embed.

        Returns:
            Top-level nodes of the processed document, in order. Empty when
            the document does not exist.

        Raises:
            TransclusionCycleError: If the title is already being expanded.
            TransclusionDepthError: If the chain is at ``max_embed_depth``.
        """
        key = chain_key(reference.title)
        if key in context.chain:
            raise TransclusionCycleError(reference.title, context.chain)

        limit = context.options.max_embed_depth
        if len(context.chain) >= limit:
            raise TransclusionDepthError(reference.title, context.chain, limit)

        content = self.loader.load(reference.title)
        if content is None:
            log.debug("Embed %r has no document, inserting nothing", reference.title)
            return []

        tree = parse_document(content, breaks=context.options.breaks)

        if reference.heading:
            section = extract_section(tree.children or [], reference.heading)
            if section is None:
                log.info(
                    "Heading %r not found in %r, embedding the whole document",
                    reference.heading,
                    reference.title,
                )
            else:
                tree.children = section

        self._run(tree, context.descend(reference.title))
        return list(tree.children or [])
