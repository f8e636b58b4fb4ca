"""End-to-end tests for the transform pipeline."""

from __future__ import annotations

import pytest

from wikiweave import TransformOptions, render_html, transform, transform_markdown
from wikiweave.loader import MappingLoader
from wikiweave.pipeline import PASSES, build_context

DOCUMENT = """---
title: Home
---

# Home

Start with [[Getting Started#Install|the installer]] and ==read carefully==.

![Diagram|640x480](diagram.png "Architecture")

![[Shared Snippet]]

![[Manual.pdf]]

- [[One]]
- [[Two]]
"""


@pytest.fixture
def loader() -> MappingLoader:
    return MappingLoader({"Shared Snippet": "Shared text with [[Three]]"})


class TestPipeline:
    """Full document runs."""

    def test_renders_every_feature(self, loader):
        options = TransformOptions(highlight_class_name="hl", figure_class_name="fig")

        html = render_html(transform_markdown(DOCUMENT, options, loader=loader, source_title="Home"))

        assert "<h1>Home</h1>" in html
        assert '<a href="/getting-started#install" title="the installer">the installer</a>' in html
        assert '<mark className="hl">read carefully</mark>' in html
        assert 'width="640px" height="480px"' in html
        assert "<figcaption>Architecture</figcaption>" in html
        assert '<p>Shared text with <a href="/three" title="Three">Three</a></p>' in html
        assert '<iframe src="/Manual.pdf" width="100%" height="500px"></iframe>' in html
        assert '<li><a href="/one" title="One">One</a></li>' in html
        assert "title: Home" not in html

    def test_second_run_is_a_no_op(self, loader):
        """Running again over a fully rewritten tree changes nothing."""
        options = TransformOptions(highlight_class_name="hl")
        tree = transform_markdown(DOCUMENT, options, loader=loader)
        before = tree.to_dict()

        transform(tree, options, loader=loader)

        assert tree.to_dict() == before

    def test_returns_same_tree(self):
        tree = transform_markdown("plain")

        assert transform(tree) is tree

    def test_pass_order(self):
        assert [name for name, _ in PASSES] == ["references", "resolve", "pdf", "images", "highlights"]


class TestBuildContext:
    """Tests for build_context function."""

    def test_no_root_no_engine(self):
        assert build_context().engine is None

    def test_document_root_creates_engine(self, docs_root):
        context = build_context(TransformOptions(document_root=docs_root))

        assert context.engine is not None

    def test_explicit_loader_wins(self, docs_root, loader):
        context = build_context(TransformOptions(document_root=docs_root), loader=loader)

        assert context.engine.loader is loader

    def test_source_title_seeds_chain(self):
        assert build_context(source_title="My Page").chain == ("my page",)

    def test_empty_document_root_disables_embeds(self):
        assert TransformOptions(document_root="").document_root is None
