"""Test harness for muxfmt.

Re-exports the snapshot builders:
    from tests.harness import make_session, make_tab, make_session_dict
"""

from tests.harness.builders import make_session, make_session_dict, make_tab

__all__ = [
    "make_session",
    "make_session_dict",
    "make_tab",
]
