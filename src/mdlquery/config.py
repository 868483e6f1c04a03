"""Configuration for mdlquery.

Settings come from the ``[global]`` table of ``config/config.toml`` beside this
module and are published as module attributes. An environment variable named
``MDLQUERY_<KEY>`` overrides the file. Its text is read as a TOML value, so
``MDLQUERY_WARN_ON_BINDING_COLLISION=false`` gives a boolean, and anything that
is not valid TOML is kept as a plain string.
"""

import os
from pathlib import Path
from typing import Any, Dict

import toml

CONFIG_FILE: Path = Path(__file__).parent / "config" / "config.toml"
ENVIRONMENT_PREFIX = "MDLQUERY_"


def _override(key: str, default: Any) -> Any:
    raw = os.environ.get(f"{ENVIRONMENT_PREFIX}{key}")
    if raw is None:
        return default
    try:
        return toml.loads(f"value = {raw}")["value"]
    except toml.TomlDecodeError:
        return raw


def load_config(config_file: Path = CONFIG_FILE) -> Dict[str, Any]:
    """Settings from ``config_file`` with environment overrides applied."""
    with open(config_file, "r", encoding="utf8") as f:
        settings = toml.load(f)["global"]
    return {key: _override(key, value) for key, value in settings.items()}


globals().update(load_config())
