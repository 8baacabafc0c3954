"""Request dispatch: pick a mode, fan the template out over records, reply.

The dispatcher owns the session snapshot. Update events replace it; render
requests only read it. A batch is fail-fast: the first record that fails to
render aborts the whole batch and the reply is that record's diagnostic.

// [LAW:dataflow-not-control-flow] Mode defaults and record sources are table lookups.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from muxfmt.engine import TemplateEngine
from muxfmt.errors import DataPreconditionError, RenderError
from muxfmt.io.perf_logging import monitor_slow_path
from muxfmt.reporter import format_diagnostic
from muxfmt.settings import DEFAULT_OPTIONS, RenderOptions
from muxfmt.snapshot import SessionInfo, SnapshotStore
from muxfmt.values import Value
from muxfmt.views import session_context, tab_context

logger = logging.getLogger(__name__)

CURRENT_SESSION_ARG = "current-session"


class Mode(Enum):
    """Selectable listings, valued by their pipe name."""

    LIST_SESSIONS = "list-sessions"
    LIST_TABS = "list-tabs"

    @classmethod
    def from_pipe_name(cls, name: str) -> Mode | None:
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def default_template(self) -> str:
        return _DEFAULT_TEMPLATES[self]


_DEFAULT_TEMPLATES: dict[Mode, str] = {
    Mode.LIST_SESSIONS: "{{session.name}}",
    Mode.LIST_TABS: "{{session.name}} - {{tab.name}}",
}


class PipeSource(Enum):
    """Where a request came from. Only CLI pipes carry a reply address."""

    CLI = "cli"
    PLUGIN = "plugin"
    KEYBIND = "keybind"


@dataclass(frozen=True)
class Request:
    name: str
    payload: str | None = None
    args: Mapping[str, str] = field(default_factory=dict)
    reply_to: str = ""
    source: PipeSource = PipeSource.CLI

    @property
    def current_session_only(self) -> bool:
        # presence-only flag
        return CURRENT_SESSION_ARG in self.args


@dataclass(frozen=True)
class Reply:
    """Text for the reply address. ``error`` is set when the text is a diagnostic."""

    text: str
    error: RenderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OutputSink(Protocol):
    def write(self, reply_to: str, text: str) -> None: ...


class Dispatcher:
    """Owns the snapshot store and answers render requests against it."""

    def __init__(
        self,
        engine: TemplateEngine | None = None,
        options: RenderOptions = DEFAULT_OPTIONS,
        store: SnapshotStore | None = None,
    ):
        self.options = options
        self.engine = engine if engine is not None else TemplateEngine(options)
        self.store = store if store is not None else SnapshotStore()

    # ─── Events ───────────────────────────────────────────────────────────────

    def handle_session_update(self, sessions: list[SessionInfo]) -> None:
        self.store.replace(sessions)

    def handle_request(self, request: Request, sink: OutputSink) -> bool:
        """Dispatch and write the reply to ``sink``. Returns whether anything was written."""
        reply = self.dispatch(request)
        if reply is None:
            return False
        sink.write(request.reply_to, reply.text)
        return True

    # ─── Dispatch ─────────────────────────────────────────────────────────────

    def template_for(self, mode: Mode, request: Request) -> str:
        if request.payload is not None:
            return request.payload
        return self.options.templates.get(mode.value, mode.default_template)

    def dispatch(self, request: Request) -> Reply | None:
        """Compute the reply, or None when the request is ignored."""
        if request.source is not PipeSource.CLI:
            logger.debug("ignoring %s pipe %r", request.source.value, request.name)
            return None
        if self.store.is_empty():
            logger.debug("no sessions yet; ignoring %r", request.name)
            return None
        mode = Mode.from_pipe_name(request.name)
        if mode is None:
            logger.debug("ignoring unknown pipe %r", request.name)
            return None

        template = self.template_for(mode, request)
        with monitor_slow_path(
            "dispatch.render_batch",
            logger=logger,
            context=lambda: {"mode": mode.value, "sessions": len(self.store.sessions)},
        ):
            try:
                lines = self.render_batch(mode, template, request.current_session_only)
            except RenderError as e:
                if isinstance(e, DataPreconditionError):
                    logger.warning("snapshot precondition failed: %s", e.message)
                else:
                    logger.debug("render failed: %r", e)
                return Reply(format_diagnostic(template, e, self.options), error=e)
        return Reply("\n".join(lines) + "\n")

    def render_batch(self, mode: Mode, template: str, current_session_only: bool = False) -> list[str]:
        """Render every record in order. The first RenderError propagates."""
        return [self.engine.render(template, context) for context in self.contexts(mode, current_session_only)]

    def contexts(self, mode: Mode, current_session_only: bool = False) -> Iterator[Value]:
        """Render contexts in snapshot order, built lazily so a failure stops iteration."""
        sessions = self.store.sessions
        if mode is Mode.LIST_SESSIONS:
            for session in sessions:
                yield session_context(session)
            return
        for session in sessions:
            if current_session_only and not session.is_current_session:
                continue
            for tab in session.tabs:
                yield tab_context(session, tab)
