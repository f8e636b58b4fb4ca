"""Pydantic models for references, resolved links and transform options."""

from collections.abc import Callable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_MAX_EMBED_DEPTH
from .slugs import default_title_to_url


class Reference(BaseModel):
    """A parsed [[Title#Heading|Alias]] or ![[Title]] reference."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)  # Target document title, used for the URL
    heading: str = ""  # Fragment after '#', without the '#'
    alias: str = ""  # Display text after '|'
    is_embed: bool = False  # Written as ![[...]]

    @property
    def display(self) -> str:
        """Text shown for the link: the alias when given, else the title."""
        return self.alias or self.title


class ResolvedLink(BaseModel):
    """URL and display label for a reference."""

    model_config = ConfigDict(frozen=True)

    url: str
    label: str


class TransformOptions(BaseModel):
    """Read-only settings for one pipeline run.

    ``document_root`` gates transclusion: without it (and without an
    injected loader) embeds are rendered as links and never inlined.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    title_to_url: Callable[[str], str] = default_title_to_url
    strip_brackets: bool = True
    highlight_class_name: str = ""
    document_root: Path | None = None
    figure_class_name: str = ""
    max_embed_depth: int = Field(default=DEFAULT_MAX_EMBED_DEPTH, ge=1)
    # What to do when an embed cycles or nests too deep
    on_embed_error: Literal["raise", "link"] = "raise"
    # Treat soft line breaks as hard breaks when parsing loaded documents
    breaks: bool = False

    @field_validator("document_root", mode="before")
    @classmethod
    def _empty_root_disables(cls, value: object) -> object:
        return value or None
