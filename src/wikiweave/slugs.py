"""Slug generation for titles and heading fragments."""

import re
import unicodedata


def slugify(title: str) -> str:
    """Convert title to URL-friendly slug (lowercase, hyphens, alphanumeric only).

    Accented letters are folded to their ASCII base ("Café" -> "cafe").
    """
    slug = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = slug.lower()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def default_title_to_url(title: str) -> str:
    """Map a page title to a root-relative URL path: "Page Title" -> "/page-title"."""
    return f"/{slugify(title)}"
