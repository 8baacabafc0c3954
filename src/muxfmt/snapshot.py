"""Upstream multiplexer topology: sessions, tabs and the per-tab pane index.

The host delivers the full topology on every change. ``SnapshotStore`` keeps
the most recent delivery; render requests only ever read it.

// [LAW:single-enforcer] snapshot_from_json / from_dict are the sole decoding boundary.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from muxfmt.errors import SnapshotFormatError

logger = logging.getLogger(__name__)


# ─── Field coercion ───────────────────────────────────────────────────────────


def _count(raw: Mapping, key: str) -> int:
    value = raw.get(key, 0)
    # bool is an int subclass; a flag where a count belongs is malformed
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SnapshotFormatError(f"{key!r} must be a non-negative integer, got {value!r}")
    return value


def _flag(raw: Mapping, key: str) -> bool:
    value = raw.get(key, False)
    if not isinstance(value, bool):
        raise SnapshotFormatError(f"{key!r} must be a boolean, got {value!r}")
    return value


def _text(raw: Mapping, key: str) -> str:
    value = raw.get(key, "")
    if not isinstance(value, str):
        raise SnapshotFormatError(f"{key!r} must be a string, got {value!r}")
    return value


def _object(raw: object, what: str) -> Mapping:
    if not isinstance(raw, Mapping):
        raise SnapshotFormatError(f"{what} must be an object, got {type(raw).__name__}")
    return raw


def _array(raw: object, what: str) -> list:
    if not isinstance(raw, list):
        raise SnapshotFormatError(f"{what} must be an array, got {type(raw).__name__}")
    return raw


# ─── Topology types ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PaneInfo:
    """One pane as reported by the host."""

    id: int = 0
    title: str = ""
    is_plugin: bool = False
    is_focused: bool = False
    is_floating: bool = False
    is_selectable: bool = True
    exited: bool = False

    @classmethod
    def from_dict(cls, raw: object) -> PaneInfo:
        raw = _object(raw, "pane")
        return cls(
            id=_count(raw, "id"),
            title=_text(raw, "title"),
            is_plugin=_flag(raw, "is_plugin"),
            is_focused=_flag(raw, "is_focused"),
            is_floating=_flag(raw, "is_floating"),
            is_selectable=bool(raw.get("is_selectable", True)),
            exited=_flag(raw, "exited"),
        )


@dataclass(frozen=True)
class PaneManifest:
    """Panes grouped by the position of the tab that owns them."""

    panes: dict[int, list[PaneInfo]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: object) -> PaneManifest:
        raw = _object(raw, "pane manifest")
        panes: dict[int, list[PaneInfo]] = {}
        for key, entries in raw.items():
            # JSON object keys are strings; tab positions are ints
            try:
                position = int(key)
            except (TypeError, ValueError):
                raise SnapshotFormatError(f"pane index key {key!r} is not a tab position") from None
            panes[position] = [PaneInfo.from_dict(p) for p in _array(entries, "pane list")]
        return cls(panes=panes)


@dataclass(frozen=True)
class TabInfo:
    """One tab as reported by the host."""

    position: int
    name: str = ""
    active: bool = False
    is_fullscreen_active: bool = False
    is_sync_panes_active: bool = False
    are_floating_panes_visible: bool = False
    is_swap_layout_dirty: bool = False
    viewport_rows: int = 0
    viewport_columns: int = 0
    display_area_rows: int = 0
    display_area_columns: int = 0
    selectable_tiled_panes_count: int = 0
    selectable_floating_panes_count: int = 0

    @classmethod
    def from_dict(cls, raw: object) -> TabInfo:
        raw = _object(raw, "tab")
        if "position" not in raw:
            raise SnapshotFormatError("tab is missing 'position'")
        return cls(
            position=_count(raw, "position"),
            name=_text(raw, "name"),
            active=_flag(raw, "active"),
            is_fullscreen_active=_flag(raw, "is_fullscreen_active"),
            is_sync_panes_active=_flag(raw, "is_sync_panes_active"),
            are_floating_panes_visible=_flag(raw, "are_floating_panes_visible"),
            is_swap_layout_dirty=_flag(raw, "is_swap_layout_dirty"),
            viewport_rows=_count(raw, "viewport_rows"),
            viewport_columns=_count(raw, "viewport_columns"),
            display_area_rows=_count(raw, "display_area_rows"),
            display_area_columns=_count(raw, "display_area_columns"),
            selectable_tiled_panes_count=_count(raw, "selectable_tiled_panes_count"),
            selectable_floating_panes_count=_count(raw, "selectable_floating_panes_count"),
        )


@dataclass(frozen=True)
class SessionInfo:
    """One session as reported by the host."""

    name: str
    tabs: list[TabInfo] = field(default_factory=list)
    panes: PaneManifest = field(default_factory=PaneManifest)
    connected_clients: int = 0
    is_current_session: bool = False
    web_clients_allowed: bool = False
    web_client_count: int = 0
    available_layouts: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: object) -> SessionInfo:
        raw = _object(raw, "session")
        if "name" not in raw:
            raise SnapshotFormatError("session is missing 'name'")
        layouts = _array(raw.get("available_layouts", []), "available_layouts")
        return cls(
            name=_text(raw, "name"),
            tabs=[TabInfo.from_dict(t) for t in _array(raw.get("tabs", []), "tabs")],
            panes=PaneManifest.from_dict(raw.get("panes", {})),
            connected_clients=_count(raw, "connected_clients"),
            is_current_session=_flag(raw, "is_current_session"),
            web_clients_allowed=_flag(raw, "web_clients_allowed"),
            web_client_count=_count(raw, "web_client_count"),
            available_layouts=[str(layout) for layout in layouts],
        )


def sessions_from_data(raw: object) -> list[SessionInfo]:
    """Decode a parsed snapshot: either a list of sessions or ``{"sessions": [...]}``."""
    if isinstance(raw, Mapping):
        raw = raw.get("sessions", [])
    return [SessionInfo.from_dict(s) for s in _array(raw, "sessions")]


def snapshot_from_json(text: str) -> list[SessionInfo]:
    """Decode a JSON snapshot document."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"snapshot is not valid JSON: {e}") from e
    return sessions_from_data(raw)


# ─── Store ────────────────────────────────────────────────────────────────────


class SnapshotStore:
    """Holds the latest session snapshot. Starts empty; replaced wholesale on update."""

    def __init__(self, sessions: list[SessionInfo] | None = None):
        self._sessions: tuple[SessionInfo, ...] = tuple(sessions or ())

    @property
    def sessions(self) -> tuple[SessionInfo, ...]:
        return self._sessions

    def is_empty(self) -> bool:
        return not self._sessions

    def replace(self, sessions: list[SessionInfo]) -> None:
        self._sessions = tuple(sessions)
        logger.debug("snapshot replaced: %d session(s)", len(self._sessions))
