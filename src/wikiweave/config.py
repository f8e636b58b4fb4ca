"""Configuration management for wikiweave.

This module contains the configurable constants of the transformer and the
loader for `.wikiweave.yaml` project files. Magic numbers are documented
here rather than scattered throughout the codebase.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from .models import TransformOptions


class ConfigurationError(Exception):
    """Raised when a configuration file or override is invalid."""

    pass


# =============================================================================
# Transclusion
# =============================================================================

# Maximum nesting of ![[embeds]] inside embedded documents. Chains longer than
# this are reported as TransclusionDepthError even without a cycle.
DEFAULT_MAX_EMBED_DEPTH = 16

# Extension appended to a reference title to find its document on disk
DOCUMENT_SUFFIX = ".md"

# Embeds whose title ends with this are rendered as inline frames, not inlined
PDF_SUFFIX = ".pdf"

# Height of the inline frame produced for PDF embeds
PDF_FRAME_HEIGHT = "500px"


# =============================================================================
# Environment and files
# =============================================================================

CONFIG_FILENAME = ".wikiweave.yaml"

# Explicit path to a config file (skips discovery)
CONFIG_ENV = "WIKIWEAVE_CONFIG"

# Overrides document_root from any config file
DOCUMENT_ROOT_ENV = "WIKIWEAVE_DOCUMENT_ROOT"

LOG_LEVEL_ENV = "WIKIWEAVE_LOG_LEVEL"

# Keys accepted in .wikiweave.yaml, mapped to TransformOptions fields
_FILE_KEYS = {
    "document_root": "document_root",
    "strip_brackets": "strip_brackets",
    "highlight_class": "highlight_class_name",
    "highlight_class_name": "highlight_class_name",
    "figure_class": "figure_class_name",
    "figure_class_name": "figure_class_name",
    "max_embed_depth": "max_embed_depth",
    "on_embed_error": "on_embed_error",
    "breaks": "breaks",
}


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate the config file to use.

    Discovery order:
    1. WIKIWEAVE_CONFIG environment variable
    2. Walk up from ``start`` (default: cwd) looking for .wikiweave.yaml

    Args:
        start: Directory to start the upward search from.

    Returns:
        Path to the config file, or None if there is none.

    Raises:
        ConfigurationError: If WIKIWEAVE_CONFIG points at a missing file.
    """
    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"{CONFIG_ENV} points to a missing file: {path}")
        return path

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a .wikiweave.yaml file into TransformOptions keyword arguments.

    Relative ``document_root`` values are resolved against the directory
    containing the config file.

    Args:
        path: Config file to read.

    Returns:
        Dict of TransformOptions field names to values.

    Raises:
        ConfigurationError: If the file is not valid YAML, not a mapping,
            or contains unknown keys.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at top level")

    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        raise ConfigurationError(f"{path}: unknown keys: {', '.join(unknown)}")

    values = {_FILE_KEYS[key]: value for key, value in data.items()}

    root = values.get("document_root")
    if root:
        root_path = Path(str(root)).expanduser()
        if not root_path.is_absolute():
            root_path = path.parent / root_path
        values["document_root"] = root_path

    return values


def load_options(
    config_path: Path | None = None,
    *,
    start: Path | None = None,
    **overrides: Any,
) -> TransformOptions:
    """Build TransformOptions from config file, environment and overrides.

    Precedence (lowest to highest): config file, WIKIWEAVE_DOCUMENT_ROOT,
    keyword overrides. Overrides whose value is None are ignored so CLI
    options that were not given do not mask file values.

    Args:
        config_path: Explicit config file. Discovered when omitted.
        start: Directory for config discovery.
        **overrides: TransformOptions fields to force.

    Returns:
        Validated TransformOptions.

    Raises:
        ConfigurationError: If the combined values fail validation.
    """
    from pydantic import ValidationError

    from .models import TransformOptions

    path = config_path or find_config_file(start)
    values: dict[str, Any] = read_config_file(path) if path else {}

    env_root = os.environ.get(DOCUMENT_ROOT_ENV)
    if env_root:
        values["document_root"] = Path(env_root).expanduser()

    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return TransformOptions(**values)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError("Invalid options:\n" + "\n".join(errors)) from e
