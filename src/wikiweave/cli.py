#!/usr/bin/env python3
"""
wikiweave: render Markdown with wiki links and embeds

Usage:
    wikiweave render notes/Page.md             # HTML to stdout
    wikiweave render Page.md --root notes/     # Load embeds from notes/
    wikiweave render Page.md --json            # Transformed tree as JSON
    wikiweave refs Page.md                     # List the references in a document
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from . import __version__ as WIKIWEAVE_VERSION
from .config import ConfigurationError, load_options
from .models import TransformOptions
from .parser.markdown import parse_document
from .parser.references import parse_reference
from .pipeline import transform
from .render import render_html
from .resolver import resolve
from .templates import render_page
from .transclusion import TransclusionError
from .tree import walk


def output(data: Any, as_json: bool = False) -> None:
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def _load_options(ctx: click.Context, document: Path, **overrides: Any) -> TransformOptions:
    """Options from config discovery plus CLI overrides.

    Embeds load from the document's own directory unless a root is configured.
    """
    try:
        options = load_options(ctx.obj.get("config_path"), start=document.parent, **overrides)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    if options.document_root is None:
        options = options.model_copy(update={"document_root": document.parent})
    return options


@click.group()
@click.version_option(version=WIKIWEAVE_VERSION, prog_name="wikiweave")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file (default: nearest .wikiweave.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool):
    """wikiweave: wiki links, embeds and highlights for Markdown.

    \b
    Examples:
      wikiweave render Page.md --root notes/ --standalone > page.html
      wikiweave refs Page.md --json
    """
    if verbose:
        from ._logging import configure_logging

        configure_logging("INFO")

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--root",
    "document_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory embedded documents are loaded from",
)
@click.option("--keep-brackets", is_flag=True, help="Show link text as [[Title]]")
@click.option("--highlight-class", help="Class name for <mark> elements")
@click.option("--figure-class", help="Class name for <figure> elements")
@click.option("--breaks", is_flag=True, help="Treat soft line breaks as hard breaks")
@click.option("--json", "as_json", is_flag=True, help="Output the transformed tree as JSON")
@click.option("--standalone", is_flag=True, help="Wrap the HTML in a complete page")
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of stdout",
)
@click.pass_context
def render(
    ctx: click.Context,
    path: Path,
    document_root: Path | None,
    keep_brackets: bool,
    highlight_class: str | None,
    figure_class: str | None,
    breaks: bool,
    as_json: bool,
    standalone: bool,
    output_path: Path | None,
):
    """Render a Markdown document to HTML.

    \b
    Examples:
      wikiweave render Page.md
      wikiweave render Page.md --keep-brackets --highlight-class=hl
    """
    options = _load_options(
        ctx,
        path,
        document_root=document_root,
        strip_brackets=False if keep_brackets else None,
        highlight_class_name=highlight_class,
        figure_class_name=figure_class,
        breaks=True if breaks else None,
    )

    tree = parse_document(path.read_text(encoding="utf-8"), breaks=options.breaks)
    try:
        transform(tree, options, source_title=path.stem)
    except TransclusionError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        result = json.dumps(tree.to_dict(), indent=2)
    else:
        result = render_html(tree)
        if standalone:
            result = render_page(path.stem, result)

    if output_path:
        output_path.write_text(result, encoding="utf-8")
        click.echo(f"Wrote {output_path}", err=True)
    else:
        click.echo(result, nl=not result.endswith("\n"))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def refs(ctx: click.Context, path: Path, as_json: bool):
    """List the wiki references in a document with their resolved URLs.

    \b
    Examples:
      wikiweave refs Page.md
      wikiweave refs Page.md --json
    """
    options = _load_options(ctx, path)
    tree = parse_document(path.read_text(encoding="utf-8"))

    rows: list[dict[str, Any]] = []
    for visit in walk(tree):
        if visit.node.type != "wikiReference":
            continue
        reference = parse_reference(visit.node.attrs["label"], embed=visit.node.attrs["embed"])
        if reference is None:
            continue
        link = resolve(reference, options)
        rows.append(
            {
                "title": reference.title,
                "heading": reference.heading,
                "alias": reference.alias,
                "embed": reference.is_embed,
                "url": link.url,
            }
        )

    if as_json:
        output(rows, as_json=True)
        return

    if not rows:
        click.echo("No references found.")
        return

    for row in rows:
        kind = "embed" if row["embed"] else "link"
        target = row["title"] + (f"#{row['heading']}" if row["heading"] else "")
        click.echo(f"{kind:<6} {target} -> {row['url']}")


def main():
    """Entry point for wikiweave CLI."""
    from ._logging import configure_logging

    configure_logging()
    cli()


if __name__ == "__main__":
    main()
