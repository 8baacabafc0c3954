"""Host event loop: the stand-in for the multiplexer runtime.

Events arrive as JSON lines and are handled one at a time, to completion:

    {"event": "session_update", "sessions": [...]}
    {"event": "pipe", "name": "list-tabs", "payload": "...", "args": {...},
     "pipe_id": "...", "source": "cli"}

Replies are written through an OutputSink. A bad event is logged and
skipped; nothing a single event contains can stop the loop.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TextIO

from muxfmt.dispatcher import Dispatcher, PipeSource, Request
from muxfmt.errors import MuxfmtError
from muxfmt.io.perf_logging import monitor_slow_path
from muxfmt.snapshot import SessionInfo, sessions_from_data

logger = logging.getLogger(__name__)


class EventFormatError(MuxfmtError, ValueError):
    """A host event line could not be decoded."""


@dataclass(frozen=True)
class SessionUpdate:
    sessions: list[SessionInfo]


# ─── Sinks ────────────────────────────────────────────────────────────────────


class TextSink:
    """Writes reply text verbatim. Used by the one-shot CLI."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def write(self, reply_to: str, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()


class JsonLinesSink:
    """Writes one ``{"pipe_id": ..., "output": ...}`` line per reply."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def write(self, reply_to: str, text: str) -> None:
        self._stream.write(json.dumps({"pipe_id": reply_to, "output": text}) + "\n")
        self._stream.flush()


# ─── Decoding ─────────────────────────────────────────────────────────────────


def _request_from(raw: Mapping) -> Request:
    name = raw.get("name")
    if not isinstance(name, str):
        raise EventFormatError("pipe event needs a string 'name'")
    payload = raw.get("payload")
    if payload is not None and not isinstance(payload, str):
        raise EventFormatError("pipe 'payload' must be a string")
    args = raw.get("args") or {}
    if not isinstance(args, Mapping):
        raise EventFormatError("pipe 'args' must be an object")
    try:
        source = PipeSource(raw.get("source", PipeSource.CLI.value))
    except ValueError:
        raise EventFormatError(f"unknown pipe source {raw.get('source')!r}") from None
    return Request(
        name=name,
        payload=payload,
        args={str(k): "" if v is None else str(v) for k, v in args.items()},
        reply_to=str(raw.get("pipe_id", "")),
        source=source,
    )


def parse_event(line: str) -> SessionUpdate | Request:
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as e:
        raise EventFormatError(f"event is not valid JSON: {e}") from e
    if not isinstance(raw, Mapping):
        raise EventFormatError("event must be a JSON object")
    kind = raw.get("event")
    if kind == "session_update":
        return SessionUpdate(sessions_from_data(raw.get("sessions", [])))
    if kind == "pipe":
        return _request_from(raw)
    raise EventFormatError(f"unknown event type {kind!r}")


# ─── Loop ─────────────────────────────────────────────────────────────────────


def handle_event(event: SessionUpdate | Request, dispatcher: Dispatcher, sink) -> bool:
    """Apply one decoded event. Returns whether a reply was written."""
    if isinstance(event, SessionUpdate):
        dispatcher.handle_session_update(event.sessions)
        return False
    return dispatcher.handle_request(event, sink)


def run(lines: Iterable[str], dispatcher: Dispatcher, sink) -> int:
    """Process event lines until exhausted. Returns the number of replies written."""
    replies = 0
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = parse_event(line)
        except MuxfmtError as e:
            logger.warning("skipping event on line %d: %s", number, e)
            continue
        try:
            with monitor_slow_path("host.handle_event", logger=logger, context={"line": number}):
                replies += handle_event(event, dispatcher, sink)
        except Exception:
            logger.exception("event on line %d failed", number)
    return replies
