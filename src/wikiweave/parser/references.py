"""Wiki reference parsing.

A reference body is the text between the double brackets:

    Title
    Title|Alias
    Title#Heading
    Title#Heading|Alias

Precedence is heading first, alias second. The first ``#`` starts the
heading, which runs up to the next ``|``; that ``#heading`` segment is cut
out, and the first ``|`` in what remains separates title from alias. So
``A|B#C`` reads as title ``A``, alias ``B``, heading ``C``, and a heading can
never contain ``|``.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from ..models import Reference
from ..tree import Node, to_string

# !?[[body]] where body has no brackets and no line break
REFERENCE_PATTERN = re.compile(r"(!?)\[\[([^\[\]\n]+)\]\]")


class Token(NamedTuple):
    kind: str  # "text", "hash" or "pipe"
    text: str


class ReferenceSpan(NamedTuple):
    """Location of a !?[[...]] span inside a string."""

    start: int
    end: int
    body: str
    embed: bool


def tokenize(body: str) -> list[Token]:
    """Split a reference body into text runs and ``#`` / ``|`` separators.

    ``\\|`` is a pipe as well, so aliases can be written inside table cells.
    """
    tokens: list[Token] = []
    run: list[str] = []
    i = 0
    while i < len(body):
        separator = body[i : i + 2] if body.startswith("\\|", i) else body[i]
        if separator in ("#", "|", "\\|"):
            if run:
                tokens.append(Token("text", "".join(run)))
                run = []
            tokens.append(Token("hash" if separator == "#" else "pipe", separator))
        else:
            run.append(separator)
        i += len(separator)
    if run:
        tokens.append(Token("text", "".join(run)))
    return tokens


def _join(tokens: list[Token]) -> str:
    return "".join(token.text for token in tokens)


def _first(tokens: list[Token], kind: str, start: int = 0) -> int | None:
    for i in range(start, len(tokens)):
        if tokens[i].kind == kind:
            return i
    return None


def parse_reference(body: str, *, embed: bool = False) -> Reference | None:
    """Parse a reference body into a Reference.

    Args:
        body: Text between ``[[`` and ``]]``.
        embed: Whether the span was written with a leading ``!``.

    Returns:
        The Reference, or None when the body has no title (e.g. ``[[#Heading]]``).
    """
    tokens = tokenize(body)

    heading = ""
    hash_at = _first(tokens, "hash")
    if hash_at is not None:
        end = _first(tokens, "pipe", hash_at + 1)
        if end is None:
            end = len(tokens)
        heading = _join(tokens[hash_at + 1 : end])
        tokens = tokens[:hash_at] + tokens[end:]

    alias = ""
    pipe_at = _first(tokens, "pipe")
    if pipe_at is not None:
        title = _join(tokens[:pipe_at])
        alias = _join(tokens[pipe_at + 1 :])
    else:
        title = _join(tokens)

    title = title.strip()
    if not title:
        return None

    return Reference(title=title, heading=heading.strip(), alias=alias.strip(), is_embed=embed)


def find_references(text: str) -> list[ReferenceSpan]:
    """Find every ``[[...]]`` and ``![[...]]`` span in plain text."""
    return [
        ReferenceSpan(m.start(), m.end(), m.group(2), bool(m.group(1)))
        for m in REFERENCE_PATTERN.finditer(text)
    ]


def match_link_reference(parent: Node, index: int) -> tuple[str, bool] | None:
    """Recognize a foreign ``linkReference`` node written as ``[[label]]``.

    Parsers that know nothing about wiki links read ``[[Page]]`` as a text
    ``[``, a linkReference labelled ``Page`` and a text ``]``. The node only
    counts as a wiki reference when both bracket neighbours are present and
    the label parses; the brackets (and a leading ``!``) are then removed
    from the neighbours.

    Returns:
        ``(body, is_embed)``, or None when the neighbours do not match.
    """
    siblings = parent.children or []
    node = siblings[index]
    previous = siblings[index - 1] if index > 0 else None
    following = siblings[index + 1] if index + 1 < len(siblings) else None

    if previous is None or previous.type != "text" or not (previous.value or "").endswith("["):
        return None
    if following is None or following.type != "text" or not (following.value or "").startswith("]"):
        return None

    embed = previous.value.endswith("![")
    body = node.attrs.get("label") or to_string(node)
    if parse_reference(body, embed=embed) is None:
        return None

    previous.value = previous.value[: -2 if embed else -1]
    following.value = following.value[1:]
    return body, embed
