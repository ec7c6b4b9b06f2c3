"""Configuration sources.

Loads the logging section from YAML or JSON files and from the
environment. The section may sit at the top of the document or under
``debug.logging``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .config import DEFAULT_TREE, apply_env_overrides
from .errors import ConfigIssue, InvalidConfig

SECTION_KEYS = ("defaults", "transports", "modules")


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a configuration document and return its logging section.

    Args:
        path: YAML (.yaml/.yml) or JSON file

    Returns:
        The logging section as a plain dict

    Raises:
        InvalidConfig: if the file cannot be read or parsed
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfig(
            [ConfigIssue("unreadable-file", f"Cannot read {file_path}: {e}", str(file_path))]
        ) from e

    try:
        if file_path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidConfig(
            [ConfigIssue("unparsable-file", f"Cannot parse {file_path}: {e}", str(file_path))]
        ) from e

    return extract_logging_section(document)


def extract_logging_section(document: Any) -> dict[str, Any]:
    """Find the logging section in a parsed document.

    Accepts the section itself, or a document nesting it under
    ``debug.logging``.

    Raises:
        InvalidConfig: if neither shape is present
    """
    if isinstance(document, Mapping):
        nested = document.get("debug")
        if isinstance(nested, Mapping) and isinstance(nested.get("logging"), Mapping):
            return dict(nested["logging"])
        if any(key in document for key in SECTION_KEYS):
            return dict(document)
    raise InvalidConfig(
        [
            ConfigIssue(
                "missing-logging-section",
                "Configuration must contain a logging section, either at the top "
                "level or under debug.logging",
            )
        ]
    )


def config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build a logging section from the environment.

    Environment variables:
        REDACTLOG_CONFIG: path of a YAML/JSON configuration file
        REDACTLOG_LEVEL: overrides defaults.level
        REDACTLOG_TRANSPORT: overrides defaults.transport

    Returns:
        The logging section, falling back to the built-in defaults
    """
    env = os.environ if environ is None else environ

    if config_path := env.get("REDACTLOG_CONFIG"):
        tree = load_config_file(config_path)
    else:
        tree = dict(DEFAULT_TREE)

    return apply_env_overrides(tree, env)
