"""Document loading for transclusion.

The transclusion engine only needs ``load(title) -> text or None``; the
filesystem is one implementation of that capability.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from .config import DOCUMENT_SUFFIX

log = logging.getLogger(__name__)


class ContentLoader(Protocol):
    """Source of raw document text, addressed by reference title."""

    def load(self, title: str) -> str | None:
        """Return the document text, or None when there is no such document."""
        ...


class FileSystemLoader:
    """Loads ``<root>/<title>.md`` as UTF-8 text."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, title: str) -> Path:
        return self.root / f"{title}{DOCUMENT_SUFFIX}"

    def load(self, title: str) -> str | None:
        path = self.path_for(title)

        root = self.root.resolve()
        resolved = path.resolve()
        if root != resolved and root not in resolved.parents:
            log.warning("Embed %r points outside %s, ignoring", title, self.root)
            return None

        if not path.is_file():
            log.debug("No document for embed %r at %s", title, path)
            return None

        return path.read_text(encoding="utf-8")


class MappingLoader:
    """Serves documents from an in-memory title -> text mapping."""

    def __init__(self, documents: Mapping[str, str]):
        self.documents = dict(documents)

    def load(self, title: str) -> str | None:
        return self.documents.get(title)
