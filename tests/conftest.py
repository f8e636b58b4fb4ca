"""Shared test fixtures for the wikiweave test suite.

Design:
- docs_root: temp directory of Markdown documents for filesystem embeds
- write_doc: helper fixture that writes <root>/<title>.md
- runner: CliRunner for CLI tests
- Environment variables that affect configuration are cleared for every test
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from wikiweave.config import CONFIG_ENV, DOCUMENT_ROOT_ENV, LOG_LEVEL_ENV


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host configuration out of the tests."""
    for name in (CONFIG_ENV, DOCUMENT_ROOT_ENV, LOG_LEVEL_ENV):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """Empty document directory."""
    root = tmp_path / "notes"
    root.mkdir()
    return root


@pytest.fixture
def write_doc(docs_root: Path) -> Callable[[str, str], Path]:
    """Write a document named by title into docs_root.

    Usage:
        def test_embed(write_doc):
            write_doc("Page", "# Page\\n\\nBody")
    """

    def _write(title: str, content: str) -> Path:
        path = docs_root / f"{title}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
