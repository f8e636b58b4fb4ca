"""HTML rendering of document trees.

Raw-markup (``html``) nodes are emitted verbatim; everything else is
escaped. Wiki references that survived the transform (for example a PDF
embed outside a paragraph) render as their source text.
"""

from __future__ import annotations

from html import escape

from .tree import Node, to_string

# Node types rendered as a plain wrapping tag around their children
INLINE_TAGS = {"emphasis": "em", "strong": "strong", "delete": "s"}
_BLOCK_TAGS = {
    "blockquote": "blockquote",
    "table": "table",
    "tableHead": "thead",
    "tableBody": "tbody",
    "tableRow": "tr",
}


def _attr(value: str) -> str:
    return escape(value, quote=True)


class HtmlRenderer:
    """Renders a Node tree to an HTML string."""

    def render(self, node: Node) -> str:
        if node.type == "root":
            return self.blocks(node.children or [])
        return self.node(node)

    def blocks(self, nodes: list[Node]) -> str:
        parts = []
        for child in nodes:
            html = self.node(child)
            if child.type == "html" and not html.endswith("\n"):
                html += "\n"
            parts.append(html)
        return "".join(parts)

    def inline(self, nodes: list[Node] | None) -> str:
        return "".join(self.node(child) for child in nodes or [])

    def node(self, node: Node, *, tight: bool = False) -> str:
        kind = node.type

        if kind == "text":
            return escape(node.value or "", quote=False)
        if kind == "html":
            return node.value or ""
        if kind == "break":
            return "<br />\n"
        if kind == "inlineCode":
            return f"<code>{escape(node.value or '', quote=False)}</code>"
        if kind == "code":
            lang = node.attrs.get("lang")
            cls = f' class="language-{_attr(lang)}"' if lang else ""
            return f"<pre><code{cls}>{escape(node.value or '', quote=False)}</code></pre>\n"
        if kind == "thematicBreak":
            return "<hr />\n"
        if kind == "paragraph":
            inner = self.inline(node.children)
            return inner if tight else f"<p>{inner}</p>\n"
        if kind == "heading":
            depth = node.attrs.get("depth", 1)
            return f"<h{depth}>{self.inline(node.children)}</h{depth}>\n"
        if kind == "list":
            return self._list(node)
        if kind == "listItem":
            return self._list_item(node, tight=tight)
        if kind == "link":
            title = node.attrs.get("title")
            title_attr = f' title="{_attr(title)}"' if title else ""
            href = _attr(node.attrs.get("url") or "")
            return f'<a href="{href}"{title_attr}>{self.inline(node.children)}</a>'
        if kind == "image":
            title = node.attrs.get("title")
            title_attr = f' title="{_attr(title)}"' if title else ""
            src = _attr(node.attrs.get("url") or "")
            alt = _attr(node.attrs.get("alt") or "")
            return f'<img src="{src}" alt="{alt}"{title_attr} />'
        if kind == "tableCell":
            tag = "th" if node.attrs.get("header") else "td"
            align = node.attrs.get("align")
            style = f' style="text-align:{_attr(align)}"' if align else ""
            return f"<{tag}{style}>{self.inline(node.children)}</{tag}>\n"
        if kind == "wikiReference":
            return escape(to_string(node), quote=False)
        if kind in INLINE_TAGS:
            tag = INLINE_TAGS[kind]
            return f"<{tag}>{self.inline(node.children)}</{tag}>"
        if kind in _BLOCK_TAGS:
            tag = _BLOCK_TAGS[kind]
            return f"<{tag}>\n{self.blocks(node.children or [])}</{tag}>\n"
        return self.inline(node.children)

    def _list(self, node: Node) -> str:
        ordered = node.attrs.get("ordered", False)
        tag = "ol" if ordered else "ul"
        start = node.attrs.get("start")
        start_attr = f' start="{start}"' if ordered and start not in (None, 1) else ""
        tight = node.attrs.get("tight", False)
        items = "".join(self.node(item, tight=tight) for item in node.children or [])
        return f"<{tag}{start_attr}>\n{items}</{tag}>\n"

    def _list_item(self, node: Node, *, tight: bool) -> str:
        if not tight:
            return f"<li>{self.blocks(node.children or [])}</li>\n"
        parts = []
        for child in node.children or []:
            html = self.node(child, tight=True)
            if child.type != "paragraph" and parts and not parts[-1].endswith("\n"):
                html = "\n" + html
            parts.append(html)
        return f"<li>{''.join(parts)}</li>\n"


def render_html(node: Node) -> str:
    """Render a tree (or any subtree) to HTML."""
    return HtmlRenderer().render(node)
