"""Tmux target strings for realized sessions, windows and panes.

Targets are built from tmux's own identifiers (``$N``, ``@N``, ``%N``)
rather than names or indexes, so renumbering or renaming doesn't break
them.  Nothing here is cached: a target is assembled from the current
identifiers every time it's asked for, and an object removed behind our
back only shows up as a tmux error when the target is used.
"""

from celeris_core.errors import NotRealized


def session_target(session_id: str | None) -> str:
    """Return ``"$1:"`` for session id ``$1``."""
    if not session_id:
        raise NotRealized("session has not been created in tmux yet")
    return f"{session_id}:"


def window_target(session_id: str | None, window_id: str | None) -> str:
    """Return ``"$1:@2"``."""
    if not window_id:
        raise NotRealized("window has not been created in tmux yet")
    return f"{session_target(session_id)}{window_id}"


def pane_target(session_id: str | None, window_id: str | None, pane_id: str | None) -> str:
    """Return ``"$1:@2.%3"``."""
    if not pane_id:
        raise NotRealized("pane has not been created in tmux yet")
    return f"{window_target(session_id, window_id)}.{pane_id}"
