"""Tests for the rewrite passes.

Coverage:
- src/wikiweave/rewriter.py - link, image, PDF and highlight markup;
  normalization of foreign parser output
"""

from __future__ import annotations

import pytest

from wikiweave.loader import MappingLoader
from wikiweave.models import TransformOptions
from wikiweave.pipeline import transform, transform_markdown
from wikiweave.render import render_html
from wikiweave.rewriter import image_markup
from wikiweave.tree import Node


def _render(source: str, **options) -> str:
    return render_html(transform_markdown(source, TransformOptions(**options)))


# ─────────────────────────────────────────────────────────────────────────────
# Links
# ─────────────────────────────────────────────────────────────────────────────


class TestLinks:
    """Wiki links become anchors."""

    def test_simple_link(self):
        html = _render("See [[Page Title]] here.")

        assert html == '<p>See <a href="/page-title" title="Page Title">Page Title</a> here.</p>\n'

    def test_heading_and_alias(self):
        html = _render("[[Page#Heading|Alias]]")

        assert '<a href="/page#heading" title="Alias">Alias</a>' in html

    def test_keep_brackets(self):
        html = _render("[[Page]]", strip_brackets=False)

        assert '<a href="/page" title="Page">[[Page]]</a>' in html

    def test_embed_without_document_root_is_a_link(self):
        """Without a document root embeds are never inlined."""
        html = _render("![[Other]]")

        assert '<a href="/other" title="Other">Other</a>' in html

    def test_custom_title_to_url(self):
        html = _render("[[My Page]]", title_to_url=lambda title: f"/wiki/{title.replace(' ', '_')}")

        assert 'href="/wiki/My_Page"' in html

    def test_markup_is_escaped(self):
        html = _render('[[Tom & "Jerry"]]')

        assert 'title="Tom &amp; &quot;Jerry&quot;"' in html
        assert ">Tom &amp; \"Jerry\"</a>" in html


# ─────────────────────────────────────────────────────────────────────────────
# Foreign parser output
# ─────────────────────────────────────────────────────────────────────────────


class TestForeignTrees:
    """Trees from parsers without wiki link support are normalized first."""

    def test_link_reference_between_brackets(self):
        tree = Node.from_dict(
            {
                "type": "root",
                "children": [
                    {
                        "type": "paragraph",
                        "children": [
                            {"type": "text", "value": "See ["},
                            {
                                "type": "linkReference",
                                "label": "Page#Heading|Alias",
                                "identifier": "page#heading|alias",
                                "referenceType": "shortcut",
                                "children": [{"type": "text", "value": "Page#Heading|Alias"}],
                            },
                            {"type": "text", "value": "] now"},
                        ],
                    }
                ],
            }
        )

        transform(tree)
        children = tree.children[0].children

        assert [child.type for child in children] == ["text", "html", "text"]
        assert children[0].value == "See "
        assert children[1].value == '<a href="/page#heading" title="Alias">Alias</a>'
        assert children[2].value == " now"

    def test_unbracketed_link_reference_untouched(self):
        reference = Node("linkReference", children=[Node.text("foo")], attrs={"label": "foo"})
        tree = Node("root", children=[Node("paragraph", children=[Node.text("See "), reference])])

        transform(tree)

        assert tree.children[0].children[1] is reference
        assert reference.type == "linkReference"

    def test_references_in_plain_text(self):
        tree = Node("root", children=[Node("paragraph", children=[Node.text("a [[B]] c ![[D]]")])])

        transform(tree)
        children = tree.children[0].children

        assert [child.type for child in children] == ["text", "html", "text", "html"]
        assert children[1].value == '<a href="/b" title="B">B</a>'
        assert children[3].value == '<a href="/d" title="D">D</a>'

    def test_link_reference_embed_is_expanded(self):
        """A bracketed linkReference with a leading '!' is transcluded."""
        tree = Node(
            "root",
            children=[
                Node(
                    "paragraph",
                    children=[
                        Node.text("!["),
                        Node("linkReference", children=[Node.text("Snippet")], attrs={"label": "Snippet"}),
                        Node.text("]"),
                    ],
                )
            ],
        )
        loader = MappingLoader({"Snippet": "# Title\n\nBody with [[Link]]"})

        transform(tree, loader=loader)

        assert [child.type for child in tree.children] == ["heading", "paragraph"]
        assert render_html(tree) == (
            '<h1>Title</h1>\n<p>Body with <a href="/link" title="Link">Link</a></p>\n'
        )

    def test_escaped_brackets_stay_literal(self):
        assert _render(r"\[\[Page\]\]") == "<p>[[Page]]</p>\n"

    def test_brackets_inside_code_are_literal(self):
        code = Node("inlineCode", value="[[Page]]")
        tree = Node("root", children=[Node("paragraph", children=[code])])

        transform(tree)

        assert tree.children[0].children == [code]
        assert code.value == "[[Page]]"


# ─────────────────────────────────────────────────────────────────────────────
# Images
# ─────────────────────────────────────────────────────────────────────────────


class TestImages:
    """Images become captioned figures."""

    def test_size_hint(self):
        html = _render('![Caption|100x200](pic.png "title")', figure_class_name="fig")

        assert (
            '<figure className="fig"><img src="pic.png" alt="Caption" title="title"'
            ' width="100px" height="200px"/><figcaption>title</figcaption></figure>'
        ) in html

    def test_width_only(self):
        html = _render("![Caption|300](pic.png)")

        assert 'width="300px"' in html
        assert "height=" not in html

    def test_no_size_hint(self):
        html = _render('![A cat](cat.png "Cat")')

        assert 'alt="A cat" title="Cat"/>' in html
        assert "width=" not in html

    def test_alt_falls_back_to_title(self):
        node = Node("image", attrs={"url": "x.png", "alt": "", "title": "Only title"})

        assert 'alt="Only title"' in image_markup(node, TransformOptions())

    def test_missing_alt_and_title(self):
        """Neither alt nor title: empty alt, no size, empty caption."""
        node = Node("image", attrs={"url": "x.png"})

        assert image_markup(node, TransformOptions()) == (
            '<figure className=""><img src="x.png" alt="" title=""/>'
            "<figcaption></figcaption></figure>"
        )


# ─────────────────────────────────────────────────────────────────────────────
# PDF embeds and highlights
# ─────────────────────────────────────────────────────────────────────────────


class TestPdfEmbeds:
    """PDF embeds become inline frames."""

    def test_pdf_embed(self):
        html = _render("![[papers/Report.pdf]]")

        assert '<iframe src="/papers/Report.pdf" width="100%" height="500px"></iframe>' in html

    def test_pdf_embed_not_loaded_as_document(self, docs_root):
        """PDF embeds are not treated as Markdown transclusions."""
        html = _render("![[Report.pdf]]", document_root=docs_root)

        assert '<iframe src="/Report.pdf"' in html

    def test_pdf_link_is_a_plain_link(self):
        html = _render("[[Report.pdf]]")

        assert "<iframe" not in html
        assert 'href="/reportpdf"' in html

    def test_pdf_embed_inside_text(self):
        html = _render("See ![[a.pdf]] here")

        assert html == '<p>See <iframe src="/a.pdf" width="100%" height="500px"></iframe> here</p>\n'

    def test_pdf_embed_with_alias_uses_title(self):
        assert '<iframe src="/a.pdf"' in _render("![[a.pdf|The paper]]")

    def test_pdf_syntax_in_code_is_literal(self):
        assert _render("`![[a.pdf]]`") == "<p><code>![[a.pdf]]</code></p>\n"


class TestHighlights:
    """==text== becomes a mark element."""

    def test_highlight(self):
        html = _render("==hi==", highlight_class_name="hl")

        assert html == '<p><mark className="hl">hi</mark></p>\n'

    def test_multiple_highlights_in_one_paragraph(self):
        html = _render("a ==b== c ==d== e")

        assert html == '<p>a <mark className="">b</mark> c <mark className="">d</mark> e</p>\n'

    def test_highlight_keeps_inline_markup(self):
        html = _render("==**bold**== and [[Page]]", highlight_class_name="hl")

        assert '<mark className="hl"><strong>bold</strong></mark>' in html
        assert '<a href="/page" title="Page">Page</a>' in html

    @pytest.mark.parametrize("source", ["a = b", "x == y", "==="])
    def test_no_highlight(self, source):
        assert "<mark" not in _render(source)

    def test_markers_inside_link_text_untouched(self):
        assert _render("x [[a==b]] y") == '<p>x <a href="/ab" title="a==b">a==b</a> y</p>\n'

    def test_highlight_around_link_keeps_link_intact(self):
        html = _render("==see [[Page|x==y]]==")

        assert html == '<p><mark className="">see <a href="/page" title="x==y">x==y</a></mark></p>\n'

    def test_markers_inside_code_untouched(self):
        assert _render("`==x==` text") == "<p><code>==x==</code> text</p>\n"

    def test_highlight_inside_emphasis(self):
        assert _render("*==x==*") == '<p><em><mark className="">x</mark></em></p>\n'

    def test_highlight_never_straddles_emphasis(self):
        """A mark opened outside emphasis cannot close inside it."""
        assert _render("==a *b== c*") == "<p>==a <em>b== c</em></p>\n"

    def test_escaped_markers_are_literal(self):
        assert "<mark" not in _render(r"\=\=hi==")
