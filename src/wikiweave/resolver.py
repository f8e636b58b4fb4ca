"""Reference to URL resolution."""

from __future__ import annotations

from .models import Reference, ResolvedLink, TransformOptions
from .slugs import slugify


def resolve(reference: Reference, options: TransformOptions) -> ResolvedLink:
    """Map a reference to its URL and display label.

    The URL always comes from the title, never the alias. A heading adds a
    slugged fragment. Errors raised by ``options.title_to_url`` propagate
    to the caller.

    Args:
        reference: Parsed reference.
        options: Transform options supplying ``title_to_url``.

    Returns:
        ResolvedLink with the URL and the alias (or title) as label.
    """
    url = options.title_to_url(reference.title)
    if reference.heading:
        url = f"{url}#{slugify(reference.heading)}"
    return ResolvedLink(url=url, label=reference.display)


def display_text(link: ResolvedLink, options: TransformOptions) -> str:
    """Text shown inside the anchor, bracketed again unless brackets are stripped."""
    if options.strip_brackets:
        return link.label
    return f"[[{link.label}]]"
