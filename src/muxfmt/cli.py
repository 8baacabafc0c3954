"""CLI entry point for muxfmt.

    muxfmt render list-tabs --snapshot state.json --template '{{tab.name}}'
    muxfmt serve < events.jsonl
"""

from __future__ import annotations

import argparse
import logging
import sys

import muxfmt.io.logging_setup
import muxfmt.settings
from muxfmt import __version__
from muxfmt.dispatcher import CURRENT_SESSION_ARG, Dispatcher, Mode, Request
from muxfmt.engine import TemplateEngine
from muxfmt.errors import SnapshotFormatError
from muxfmt.host import JsonLinesSink, TextSink, run
from muxfmt.snapshot import snapshot_from_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIAGNOSTIC = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="muxfmt",
        description="Render templates against terminal multiplexer session state",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument(
        "--color",
        choices=muxfmt.settings.COLOR_CHOICES,
        default=None,
        help="Styled output: auto (honours NO_COLOR), always or never (default: from settings)",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        default=False,
        help="Log to stderr only",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render one request against a snapshot file")
    render.add_argument(
        "mode",
        help=f"Request name: {', '.join(m.value for m in Mode)} (anything else is ignored)",
    )
    render.add_argument(
        "--snapshot",
        required=True,
        help="Snapshot JSON file, or - for stdin",
    )
    render.add_argument("--template", default=None, help="Template text (default: the mode's default)")
    render.add_argument(
        "--current-session",
        action="store_true",
        default=False,
        help="list-tabs: only tabs of the current session",
    )

    sub.add_parser("serve", help="Process JSON-lines host events from stdin")
    return parser


def _read_snapshot(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _render(args, dispatcher: Dispatcher) -> int:
    try:
        sessions = snapshot_from_json(_read_snapshot(args.snapshot))
    except (OSError, SnapshotFormatError) as e:
        logger.error("cannot load snapshot %s: %s", args.snapshot, e)
        return EXIT_BAD_INPUT
    dispatcher.handle_session_update(sessions)

    request = Request(
        name=args.mode,
        payload=args.template,
        args={CURRENT_SESSION_ARG: ""} if args.current_session else {},
        reply_to="stdout",
    )
    reply = dispatcher.dispatch(request)
    if reply is None:
        return EXIT_OK
    TextSink(sys.stdout).write(request.reply_to, reply.text)
    return EXIT_OK if reply.ok else EXIT_DIAGNOSTIC


def _serve(dispatcher: Dispatcher) -> int:
    replies = run(sys.stdin, dispatcher, JsonLinesSink(sys.stdout))
    logger.info("event stream closed after %d repl%s", replies, "y" if replies == 1 else "ies")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    muxfmt.io.logging_setup.configure(log_file=not args.no_log_file)

    options = muxfmt.settings.load_render_options(color=args.color)
    dispatcher = Dispatcher(TemplateEngine(options), options)

    if args.command == "render":
        return _render(args, dispatcher)
    return _serve(dispatcher)


if __name__ == "__main__":
    sys.exit(main())
