"""Standalone HTML page for rendered documents.

Uses Jinja2 with an inline template; the document body is already HTML
and is passed through unescaped.
"""

from __future__ import annotations

from jinja2 import BaseLoader, Environment, select_autoescape
from markupsafe import Markup

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }}</title>
</head>
<body>
    <article class="document">
        <h1>{{ title }}</h1>
{{ body }}
    </article>
</body>
</html>
"""


def _get_env() -> Environment:
    """Create Jinja2 environment with autoescape enabled."""
    return Environment(
        loader=BaseLoader(),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )


def render_page(title: str, body_html: str) -> str:
    """Wrap rendered document HTML in a complete page.

    Args:
        title: Page title (escaped).
        body_html: Rendered document body (inserted as is).

    Returns:
        Complete HTML page string.
    """
    template = _get_env().from_string(PAGE_TEMPLATE)
    return template.render(title=title, body=Markup(body_html))
