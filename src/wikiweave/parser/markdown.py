"""Markdown parsing into document trees.

Markdown is tokenized with markdown-it-py extended by a wikilink inline
rule, so ``[[...]]`` and ``![[...]]`` arrive as ``wikiReference`` nodes
rather than as loose bracket text. The token stream is then converted into
the mdast-shaped ``Node`` tree the transform passes work on.

Backslash escapes and entities become text nodes flagged ``literal``, so
``\\[\\[Page\\]\\]`` stays literal bracket text through every pass.
"""

from __future__ import annotations

import logging
import re

import frontmatter
from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline
from markdown_it.tree import SyntaxTreeNode

from ..tree import Node
from .references import REFERENCE_PATTERN, parse_reference

log = logging.getLogger(__name__)

# Fallback for front matter python-frontmatter refuses to load
_FRONTMATTER_BLOCK = re.compile(r"\A\s*---[\s\S]+?---")

_ALIGN_PATTERN = re.compile(r"text-align:\s*(\w+)")

# markdown-it container types that map one-to-one onto tree types
_CONTAINER_TYPES = {
    "paragraph": "paragraph",
    "blockquote": "blockquote",
    "list_item": "listItem",
    "em": "emphasis",
    "strong": "strong",
    "s": "delete",
    "table": "table",
    "thead": "tableHead",
    "tbody": "tableBody",
    "tr": "tableRow",
}


def strip_frontmatter(content: str) -> str:
    """Remove a leading ``---`` YAML block from document text.

    Args:
        content: Raw document text.

    Returns:
        The body without front matter. Text without front matter is
        returned unchanged apart from surrounding whitespace.
    """
    try:
        return frontmatter.loads(content).content
    except Exception as e:
        log.warning("Unreadable front matter, stripping block as text: %s", e)
        return _FRONTMATTER_BLOCK.sub("", content, count=1).strip()


def _wikilink_rule(state: StateInline, silent: bool) -> bool:
    """Inline rule matching ``[[body]]`` and ``![[body]]``."""
    src = state.src
    pos = state.pos

    if src[pos] not in "![":
        return False

    match = REFERENCE_PATTERN.match(src, pos)
    if match is None or match.end() > state.posMax:
        return False

    body = match.group(2)
    embed = bool(match.group(1))
    if parse_reference(body, embed=embed) is None:
        return False

    if not silent:
        token = state.push("wikilink", "", 0)
        token.content = body
        token.markup = "![[" if embed else "[["
        token.meta = {"label": body, "embed": embed}

    state.pos = match.end()
    return True


def wikilink_plugin(md: MarkdownIt) -> None:
    """Register the wikilink rule ahead of markdown-it's own link rules."""
    md.inline.ruler.before("link", "wikilink", _wikilink_rule)


def create_parser(*, breaks: bool = False) -> MarkdownIt:
    """Build the MarkdownIt instance used for all documents."""
    md = MarkdownIt("commonmark", {"breaks": breaks})
    md.enable(["table", "strikethrough"])
    # Escapes and entities stay separate text_special tokens; _TreeBuilder
    # joins plain text itself and keeps escaped text apart as literal
    md.disable("text_join")
    md.use(wikilink_plugin)
    return md


class _TreeBuilder:
    """Converts markdown-it syntax trees into document trees."""

    def __init__(self, *, breaks: bool = False) -> None:
        self.breaks = breaks

    def build(self, root: SyntaxTreeNode) -> Node:
        return Node("root", children=self._children(root))

    def _children(self, node: SyntaxTreeNode) -> list[Node]:
        result: list[Node] = []
        for child in node.children:
            for converted in self._convert(child):
                previous = result[-1] if result else None
                if (
                    previous is not None
                    and previous.type == converted.type == "text"
                    and previous.attrs == converted.attrs
                ):
                    previous.value = (previous.value or "") + (converted.value or "")
                else:
                    result.append(converted)
        return result

    def _convert(self, node: SyntaxTreeNode) -> list[Node]:
        kind = node.type

        # Inline containers only wrap their tokens
        if kind == "inline":
            return self._children(node)

        if kind == "text":
            return [Node.text(node.content)]
        if kind == "text_special":
            # Backslash escapes and entities: text, but never wiki syntax
            return [Node("text", value=node.content, attrs={"literal": True})]
        if kind == "softbreak":
            return [Node("break")] if self.breaks else [Node.text("\n")]
        if kind == "hardbreak":
            return [Node("break")]
        if kind == "code_inline":
            return [Node("inlineCode", value=node.content)]
        if kind in ("fence", "code_block"):
            lang = node.info.strip() or None
            return [Node("code", value=node.content, attrs={"lang": lang})]
        if kind in ("html_block", "html_inline"):
            return [Node.html(node.content)]
        if kind == "hr":
            return [Node("thematicBreak")]
        if kind == "wikilink":
            return [
                Node("wikiReference", attrs={"label": node.meta["label"], "embed": node.meta["embed"]})
            ]
        if kind == "heading":
            return [Node("heading", children=self._children(node), attrs={"depth": int(node.tag[1:])})]
        if kind in ("bullet_list", "ordered_list"):
            return [self._list(node)]
        if kind == "link":
            attrs = {"url": node.attrs.get("href", ""), "title": node.attrs.get("title")}
            return [Node("link", children=self._children(node), attrs=attrs)]
        if kind == "image":
            attrs = {
                "url": node.attrs.get("src", ""),
                "alt": node.content,
                "title": node.attrs.get("title"),
            }
            return [Node("image", attrs=attrs)]
        if kind in ("th", "td"):
            align = _ALIGN_PATTERN.search(str(node.attrs.get("style", "")))
            attrs = {"header": kind == "th", "align": align.group(1) if align else None}
            return [Node("tableCell", children=self._children(node), attrs=attrs)]
        if kind in _CONTAINER_TYPES:
            return [Node(_CONTAINER_TYPES[kind], children=self._children(node))]

        log.debug("Unhandled markdown-it node type %s", kind)
        return self._children(node)

    def _list(self, node: SyntaxTreeNode) -> Node:
        ordered = node.type == "ordered_list"
        paragraphs = [
            block for item in node.children for block in item.children if block.type == "paragraph"
        ]
        attrs = {
            "ordered": ordered,
            "start": int(node.attrs.get("start", 1)) if ordered else None,
            "tight": all(p.hidden for p in paragraphs),
        }
        return Node("list", children=self._children(node), attrs=attrs)


def parse_markdown(text: str, *, breaks: bool = False) -> Node:
    """Parse Markdown text into a document tree.

    Args:
        text: Markdown source without front matter.
        breaks: Turn soft line breaks into ``break`` nodes.

    Returns:
        A ``root`` node.
    """
    tokens = create_parser(breaks=breaks).parse(text)
    return _TreeBuilder(breaks=breaks).build(SyntaxTreeNode(tokens))


def parse_document(content: str, *, breaks: bool = False) -> Node:
    """Parse a full document file: strip front matter, then parse the body."""
    return parse_markdown(strip_frontmatter(content), breaks=breaks)
