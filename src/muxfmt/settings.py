"""Settings file I/O for muxfmt.

Manages a JSON settings file at XDG_CONFIG_HOME/muxfmt/settings.json.
Keys:
    color          "auto" | "always" | "never"   (default "auto")
    unknown_color  "ignore" | "error"            (default "ignore")
    templates      {"list-sessions": "...", "list-tabs": "..."} default overrides

Import as: import muxfmt.settings
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

COLOR_AUTO = "auto"
COLOR_ALWAYS = "always"
COLOR_NEVER = "never"
COLOR_CHOICES = (COLOR_AUTO, COLOR_ALWAYS, COLOR_NEVER)

UNKNOWN_COLOR_IGNORE = "ignore"
UNKNOWN_COLOR_ERROR = "error"
UNKNOWN_COLOR_CHOICES = (UNKNOWN_COLOR_IGNORE, UNKNOWN_COLOR_ERROR)


@dataclass(frozen=True)
class RenderOptions:
    """Resolved rendering configuration, passed explicitly to engine and reporter."""

    color_enabled: bool = True
    unknown_color: str = UNKNOWN_COLOR_IGNORE
    templates: dict[str, str] = field(default_factory=dict)


DEFAULT_OPTIONS = RenderOptions()


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / muxfmt / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "muxfmt" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


def _choice(data: dict, key: str, choices: tuple[str, ...], default: str) -> str:
    value = data.get(key, default)
    if value not in choices:
        logger.warning("invalid %s setting %r, using %r", key, value, default)
        return default
    return value


def _color_enabled(mode: str) -> bool:
    # NO_COLOR (https://no-color.org) beats everything except an explicit "always"
    if mode == COLOR_ALWAYS:
        return True
    if mode == COLOR_NEVER:
        return False
    if os.environ.get("NO_COLOR"):
        return False
    return True


def load_render_options(color: str | None = None) -> RenderOptions:
    """Resolve RenderOptions from settings, environment and an optional CLI override."""
    data = load_settings()
    mode = color if color is not None else _choice(data, "color", COLOR_CHOICES, COLOR_AUTO)
    templates = data.get("templates", {})
    if not isinstance(templates, dict):
        logger.warning("invalid templates setting, ignoring")
        templates = {}
    return RenderOptions(
        color_enabled=_color_enabled(mode),
        unknown_color=_choice(data, "unknown_color", UNKNOWN_COLOR_CHOICES, UNKNOWN_COLOR_IGNORE),
        templates={str(k): str(v) for k, v in templates.items()},
    )
