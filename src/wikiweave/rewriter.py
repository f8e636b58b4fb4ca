"""Tree rewrite passes.

Each pass is a single sweep over the tree that turns matching nodes into
raw-markup ``html`` nodes (or splices in transcluded content). The order
the pipeline runs them in matters; see ``pipeline.PASSES``.
"""

from __future__ import annotations

import logging
import re
from html import escape

from .config import PDF_FRAME_HEIGHT, PDF_SUFFIX
from .models import ResolvedLink, TransformOptions
from .parser.references import find_references, match_link_reference, parse_reference
from .render import INLINE_TAGS, HtmlRenderer
from .resolver import display_text, resolve
from .transclusion import TransclusionError, TransformContext
from .tree import Node, Plan, Visit, to_string, visit

log = logging.getLogger(__name__)

# "Caption|100x200" or "Caption|100" at the end of an image's alt text
IMAGE_SIZE_PATTERN = re.compile(r"^(?P<alt>.*)\|\s*(?P<width>\d+)(?:\s*x\s*(?P<height>\d+))?\s*$")

HIGHLIGHT_PATTERN = re.compile(r"==(.+?)==")

# Stand-in for markup the highlight pattern must not see
_HELD = "\ue000{}\ue001"
_HELD_PATTERN = re.compile("\ue000(\\d+)\ue001")

# Containers in which bracket text is literal
_LITERAL_CONTAINERS = frozenset({"link", "linkReference", "code", "inlineCode"})

# Parents that cannot hold block content
_INLINE_PARENTS = frozenset({"heading", "tableCell", "emphasis", "strong", "delete", "link"})

# Embedded blocks waiting to be lifted out of the paragraph they were written in
_BLOCK_RUN = "blockRun"


def _attr(value: str) -> str:
    return escape(value, quote=True)


def link_markup(link: ResolvedLink, options: TransformOptions) -> str:
    """``<a href="URL" title="LABEL">LABEL</a>``."""
    text = escape(display_text(link, options), quote=False)
    return f'<a href="{_attr(link.url)}" title="{_attr(link.label)}">{text}</a>'


def pdf_markup(label: str) -> str:
    """``<iframe src="/LABEL" ...></iframe>`` for an embedded PDF."""
    return f'<iframe src="/{_attr(label)}" width="100%" height="{PDF_FRAME_HEIGHT}"></iframe>'


def image_markup(node: Node, options: TransformOptions) -> str:
    """Render an image node as a captioned figure.

    The alt text falls back to the title, then to the empty string. A
    trailing ``|WIDTHxHEIGHT`` (or ``|WIDTH``) in the alt text becomes pixel
    size attributes and is removed from the alt.
    """
    url = node.attrs.get("url") or ""
    title = node.attrs.get("title") or ""
    alt = node.attrs.get("alt") or title

    size = ""
    match = IMAGE_SIZE_PATTERN.match(alt)
    if match:
        alt = match.group("alt").strip()
        size = f' width="{match.group("width")}px"'
        if match.group("height"):
            size += f' height="{match.group("height")}px"'

    return (
        f'<figure className="{_attr(options.figure_class_name)}">'
        f'<img src="{_attr(url)}" alt="{_attr(alt)}" title="{_attr(title)}"{size}/>'
        f"<figcaption>{escape(title, quote=False)}</figcaption>"
        f"</figure>"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Reference normalization
# ─────────────────────────────────────────────────────────────────────────────


def _reference_node(body: str, embed: bool) -> Node:
    return Node("wikiReference", attrs={"label": body, "embed": embed})


def _normalize_link_reference(match: Visit, plan: Plan) -> None:
    if match.parent is None or match.index is None:
        return
    found = match_link_reference(match.parent, match.index)
    if found is None:
        return
    body, embed = found
    plan.replace(match.parent, match.index, [_reference_node(body, embed)])


def _split_text_references(match: Visit, plan: Plan) -> None:
    if match.parent is None or match.index is None or match.node.attrs.get("literal"):
        return
    if any(ancestor.type in _LITERAL_CONTAINERS for ancestor in match.ancestors):
        return

    value = match.node.value or ""
    pieces: list[Node] = []
    cursor = 0
    for span in find_references(value):
        if parse_reference(span.body, embed=span.embed) is None:
            continue
        if span.start > cursor:
            pieces.append(Node.text(value[cursor : span.start]))
        pieces.append(_reference_node(span.body, span.embed))
        cursor = span.end

    if not pieces:
        return
    if cursor < len(value):
        pieces.append(Node.text(value[cursor:]))
    plan.replace(match.parent, match.index, pieces)


def normalize_references(tree: Node) -> None:
    """Bring every wiki reference into ``wikiReference`` form.

    Handles both shapes other parsers leave behind: a ``linkReference``
    node between literal bracket texts, and ``[[...]]`` inside plain text.
    Trees from ``parser.markdown`` already use ``wikiReference`` nodes.
    """
    visit(tree, "linkReference", _normalize_link_reference)
    visit(tree, "text", _split_text_references)


# ─────────────────────────────────────────────────────────────────────────────
# Reference resolution and transclusion
# ─────────────────────────────────────────────────────────────────────────────


def _is_blank(node: Node) -> bool:
    return node.type == "text" and not (node.value or "").strip()


def _embed_slot(match: Visit) -> tuple[Node | None, int | None]:
    """Position the expanded content replaces.

    An embed that is the only content of its paragraph replaces the whole
    paragraph, so embedded blocks are not nested inside a ``<p>``.
    """
    parent = match.parent
    if parent is not None and parent.type == "paragraph" and len(match.ancestors) >= 2:
        others = [child for child in parent.children or [] if child is not match.node]
        if all(_is_blank(child) for child in others):
            grandparent = match.ancestors[-2]
            return grandparent, (grandparent.children or []).index(parent)
    return parent, match.index


def resolve_references(tree: Node, context: TransformContext) -> None:
    """Turn ``wikiReference`` nodes into links, or expand them when embedded.

    Embeds are expanded only when the context has a transclusion engine.
    Embeds of ``.pdf`` documents are left for ``rewrite_pdf_embeds``.

    Raises:
        TransclusionError: On embed cycles or excessive nesting, unless
            ``on_embed_error`` is ``"link"``.
    """
    options = context.options

    def _resolve(match: Visit, plan: Plan) -> None:
        node = match.node
        reference = parse_reference(node.attrs.get("label", ""), embed=node.attrs.get("embed", False))
        if reference is None:
            # Hand-built node without a usable title; keep its source text
            node.value = to_string(node)
            node.type = "text"
            node.attrs = {}
            return

        if reference.is_embed and reference.title.lower().endswith(PDF_SUFFIX):
            return

        if reference.is_embed and context.engine is not None and match.parent is not None:
            try:
                nodes = context.engine.expand(reference, context)
            except TransclusionError as e:
                if options.on_embed_error == "raise":
                    raise
                log.warning("Rendering embed as a link: %s", e)
            else:
                parent, index = _embed_slot(match)
                if parent is match.parent and nodes:
                    if len(nodes) == 1 and nodes[0].type == "paragraph":
                        # Inline embed of a one-paragraph document
                        nodes = nodes[0].children or []
                    elif parent.type == "paragraph":
                        nodes = [Node(_BLOCK_RUN, children=nodes)]
                    elif parent.type in _INLINE_PARENTS:
                        log.info(
                            "Embed %r has block content inside a %s, rendering as a link",
                            reference.title,
                            parent.type,
                        )
                        node.make_html(link_markup(resolve(reference, options), options))
                        return
                plan.replace(parent, index, nodes)
                return

        node.make_html(link_markup(resolve(reference, options), options))

    visit(tree, "wikiReference", _resolve)
    visit(tree, "paragraph", _split_paragraph)


def _paragraph(run: list[Node]) -> list[Node]:
    """Wrap an inline run as a paragraph, trimming whitespace at its edges."""
    if run and run[0].type == "text":
        run[0].value = (run[0].value or "").lstrip()
    if run and run[-1].type == "text":
        run[-1].value = (run[-1].value or "").rstrip()
    if all(_is_blank(node) for node in run):
        return []
    return [Node("paragraph", children=run)]


def _split_paragraph(match: Visit, plan: Plan) -> None:
    """Lift embedded blocks out of a paragraph, splitting it around them.

    ``Before ![[Doc]] after`` becomes a paragraph ``Before``, the blocks of
    ``Doc``, then a paragraph ``after``.
    """
    children = match.node.children or []
    if match.parent is None or match.index is None:
        return
    if not any(child.type == _BLOCK_RUN for child in children):
        return

    pieces: list[Node] = []
    run: list[Node] = []
    for child in children:
        if child.type == _BLOCK_RUN:
            pieces.extend(_paragraph(run))
            pieces.extend(child.children or [])
            run = []
        else:
            run.append(child)
    pieces.extend(_paragraph(run))
    plan.replace(match.parent, match.index, pieces)


# ─────────────────────────────────────────────────────────────────────────────
# PDF, image and highlight passes
# ─────────────────────────────────────────────────────────────────────────────


def rewrite_pdf_embeds(tree: Node) -> None:
    """Replace ``![[file.pdf]]`` embeds with an inline frame.

    A PDF embed alone in its paragraph replaces the paragraph.
    """

    def _pdf(match: Visit, plan: Plan) -> None:
        node = match.node
        reference = parse_reference(node.attrs.get("label", ""), embed=node.attrs.get("embed", False))
        if reference is None or not reference.is_embed:
            return
        if not reference.title.lower().endswith(PDF_SUFFIX):
            return

        frame = pdf_markup(reference.title)
        parent, index = _embed_slot(match)
        if parent is None or index is None or parent is match.parent:
            node.make_html(frame)
        else:
            plan.replace(parent, index, [Node.html(frame)])

    visit(tree, "wikiReference", _pdf)


def rewrite_images(tree: Node, options: TransformOptions) -> None:
    """Replace image nodes with captioned figures."""

    def _image(match: Visit, plan: Plan) -> None:
        match.node.make_html(image_markup(match.node, options))

    visit(tree, "image", _image)


class _HighlightRenderer(HtmlRenderer):
    """Inline renderer that marks ``==text==`` in the author's text only.

    Everything that is not plain text (links, code, raw markup, escaped
    characters) is rendered, set aside and replaced by a placeholder, so
    the pattern never matches inside attributes or code. Emphasis, strong
    and strikethrough are highlighted inside first and then set aside too,
    which keeps a mark from straddling their tags.
    """

    def __init__(self, class_name: str) -> None:
        self.class_name = class_name
        self.held: list[str] = []
        self.marks = 0

    def highlight(self, html: str) -> str:
        html, count = HIGHLIGHT_PATTERN.subn(self._mark, html)
        self.marks += count
        return html

    def restore(self, html: str) -> str:
        return _HELD_PATTERN.sub(lambda m: self.restore(self.held[int(m.group(1))]), html)

    def node(self, node: Node, *, tight: bool = False) -> str:
        if node.type == "text" and not node.attrs.get("literal"):
            return super().node(node, tight=tight)
        if node.type in INLINE_TAGS:
            tag = INLINE_TAGS[node.type]
            html = f"<{tag}>{self.highlight(self.inline(node.children))}</{tag}>"
        else:
            html = super().node(node, tight=tight)
        self.held.append(html)
        return _HELD.format(len(self.held) - 1)

    def _mark(self, m: re.Match[str]) -> str:
        return f'<mark className="{self.class_name}">{m.group(1)}</mark>'


def rewrite_highlights(tree: Node, options: TransformOptions) -> None:
    """Wrap ``==text==`` in paragraphs with ``<mark>`` elements."""
    class_name = _attr(options.highlight_class_name)

    def _highlight(match: Visit, plan: Plan) -> None:
        renderer = _HighlightRenderer(class_name)
        html = renderer.highlight(renderer.inline(match.node.children))
        if not renderer.marks:
            return
        match.node.make_html(f"<p>{renderer.restore(html)}</p>")

    visit(tree, "paragraph", _highlight)
