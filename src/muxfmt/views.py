"""Render-ready projections of snapshot data.

Views carry derived fields (tab_count, pane_count) and are rebuilt for every
render; nothing here is cached or shared between records.
"""

from __future__ import annotations

from dataclasses import dataclass

from muxfmt.errors import DataPreconditionError
from muxfmt.snapshot import PaneManifest, SessionInfo, TabInfo
from muxfmt.values import Value


@dataclass(frozen=True)
class SessionView:
    name: str
    connected_clients: int
    is_current_session: bool
    web_clients_allowed: bool
    web_client_count: int
    tab_count: int

    @classmethod
    def from_session(cls, session: SessionInfo) -> SessionView:
        return cls(
            name=session.name,
            connected_clients=session.connected_clients,
            is_current_session=session.is_current_session,
            web_clients_allowed=session.web_clients_allowed,
            web_client_count=session.web_client_count,
            tab_count=len(session.tabs),
        )


@dataclass(frozen=True)
class TabView:
    position: int
    name: str
    active: bool
    is_fullscreen_active: bool
    is_sync_panes_active: bool
    are_floating_panes_visible: bool
    is_swap_layout_dirty: bool
    viewport_rows: int
    viewport_columns: int
    display_area_rows: int
    display_area_columns: int
    selectable_tiled_panes_count: int
    selectable_floating_panes_count: int
    pane_count: int

    @classmethod
    def from_tab(cls, tab: TabInfo, manifest: PaneManifest) -> TabView:
        """Project a tab, counting its panes through the position-keyed pane index.

        Raises DataPreconditionError when the index has no entry for the tab.
        """
        panes = manifest.panes.get(tab.position)
        if panes is None:
            raise DataPreconditionError(
                f"no pane index entry for tab {tab.name!r} at position {tab.position}"
            )
        return cls(
            position=tab.position,
            name=tab.name,
            active=tab.active,
            is_fullscreen_active=tab.is_fullscreen_active,
            is_sync_panes_active=tab.is_sync_panes_active,
            are_floating_panes_visible=tab.are_floating_panes_visible,
            is_swap_layout_dirty=tab.is_swap_layout_dirty,
            viewport_rows=tab.viewport_rows,
            viewport_columns=tab.viewport_columns,
            display_area_rows=tab.display_area_rows,
            display_area_columns=tab.display_area_columns,
            selectable_tiled_panes_count=tab.selectable_tiled_panes_count,
            selectable_floating_panes_count=tab.selectable_floating_panes_count,
            pane_count=len(panes),
        )


def session_context(session: SessionInfo) -> Value:
    """Context for one session record: ``{session}``."""
    return Value.from_python({"session": SessionView.from_session(session)})


def tab_context(session: SessionInfo, tab: TabInfo) -> Value:
    """Context for one tab record: ``{session, tab}``."""
    return Value.from_python({
        "session": SessionView.from_session(session),
        "tab": TabView.from_tab(tab, session.panes),
    })
