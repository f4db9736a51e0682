"""Layout script host.

Layout scripts are Python.  They run in a fresh namespace holding the
script API: ``Session`` and ``Window`` take an options mapping (or
keyword arguments), panes come from ``window.default_pane()`` and
``pane.split()``, and ``tmux(*args)`` reaches tmux directly for anything
the API doesn't cover, using the strings ``target()`` returns.

The handles are a thin layer over ``celeris_core.model``: they check
option keys and forward each call, so the model stays usable without a
script.
"""

import os
import traceback
import types
from pathlib import Path
from typing import Mapping

from celeris_core import model
from celeris_core import tmux as tmux_mod
from celeris_core.errors import LayoutScriptError, ValidationError
from celeris_core.paths import configure_logger

_log = configure_logger("celeris.script")

SESSION_OPTIONS = frozenset({"root", "name"})
WINDOW_OPTIONS = frozenset({"root", "name", "raw_command"})
SPLIT_OPTIONS = frozenset({"size", "root"})


def _options(what: str, options, kwargs: dict, allowed: frozenset) -> dict:
    """Merge an options mapping with keyword arguments and check the keys."""
    if options is None:
        merged = {}
    elif isinstance(options, Mapping):
        merged = dict(options)
    else:
        raise ValidationError(f"{what} options must be a mapping, got {type(options).__name__}")
    merged.update(kwargs)
    unknown = set(merged) - allowed
    if unknown:
        raise ValidationError(
            f"unknown {what} option(s): {', '.join(sorted(map(str, unknown)))} "
            f"(expected: {', '.join(sorted(allowed))})"
        )
    # None means "not given", same as leaving the key out
    return {k: v for k, v in merged.items() if v is not None}


class SessionHandle:
    """Script-side view of a model.Session."""

    __slots__ = ("_session",)

    def __init__(self, session: model.Session):
        self._session = session

    @property
    def name(self) -> str:
        return self._session.name

    def attach(self) -> None:
        self._session.attach()

    def target(self) -> str:
        return self._session.target()

    def __repr__(self) -> str:
        return f"<Session {self._session.name} {self._session.id}>"


class WindowHandle:
    """Script-side view of a model.Window."""

    __slots__ = ("_window",)

    def __init__(self, window: model.Window):
        self._window = window

    @property
    def name(self) -> str | None:
        return self._window.name

    def default_pane(self) -> "Pane":
        return Pane(self._window.default_pane())

    def select(self) -> None:
        self._window.select()

    def even_out(self, direction) -> None:
        self._window.even_out(direction)

    def target(self) -> str:
        return self._window.target()

    def __repr__(self) -> str:
        return f"<Window {self._window.name!r} {self._window.id}>"


class Pane:
    """Script-side view of a model.Pane.

    Scripts never construct panes; they get them from
    ``Window.default_pane()`` and ``Pane.split()``.
    """

    __slots__ = ("_pane",)

    def __init__(self, pane: model.Pane):
        if not isinstance(pane, model.Pane):
            raise ValidationError(
                "panes can't be created directly; use window.default_pane() or pane.split()"
            )
        self._pane = pane

    def split(self, direction, options=None, /, **kwargs) -> "Pane":
        opts = _options("split", options, kwargs, SPLIT_OPTIONS)
        return Pane(self._pane.split(direction, size=opts.get("size"), root=opts.get("root")))

    def select(self) -> None:
        self._pane.select()

    def run_command(self, command: str) -> None:
        self._pane.run_command(command)

    def target(self) -> str:
        return self._pane.target()

    def __repr__(self) -> str:
        return f"<Pane {self._pane.id}>"


def raw_tmux(*args) -> str:
    """Run tmux with exactly *args* and return its output."""
    for arg in args:
        if not isinstance(arg, (str, os.PathLike)):
            raise ValidationError(f"tmux arguments must be strings, got {arg!r}")
    return tmux_mod.run(*(os.fspath(a) for a in args))


class ScriptHost:
    """Runs one layout script and remembers the sessions it created.

    *session_name* is the name ``Session()`` uses when the script doesn't
    give one (the layout name); without it the name comes from the
    session root's last path component.
    """

    def __init__(self, session_name: str | None = None, session_root: Path | None = None):
        self.session_name = session_name
        self.session_root = session_root or Path.cwd()
        self.sessions: list[model.Session] = []

    def _session(self, options=None, /, **kwargs) -> SessionHandle:
        opts = _options("session", options, kwargs, SESSION_OPTIONS)
        name = opts.get("name", self.session_name)
        session = model.Session(name=name, root=opts.get("root", self.session_root))
        self.sessions.append(session)
        return SessionHandle(session)

    def _window(self, session, options=None, /, **kwargs) -> WindowHandle:
        if not isinstance(session, SessionHandle):
            raise ValidationError(
                f"Window() needs a Session as its first argument, got {type(session).__name__}"
            )
        opts = _options("window", options, kwargs, WINDOW_OPTIONS)
        return WindowHandle(model.Window(session._session, **opts))

    def namespace(self) -> dict:
        """Build the globals a layout script runs with."""
        api = {
            "Session": self._session,
            "Window": self._window,
            "Pane": Pane,
            "Direction": model.Direction,
            "Percentage": model.Percentage,
            "Absolute": model.Absolute,
            "tmux": raw_tmux,
            "SESSION_NAME": self.session_name,
            "SESSION_ROOT": str(self.session_root),
        }
        return {
            "__name__": "__celeris_layout__",
            "celeris": types.SimpleNamespace(**api),
            **api,
        }

    def run(self, source: str, filename: str = "<layout>", layout: str | None = None) -> None:
        """Execute *source*.

        Any exception escaping the script is re-raised as
        LayoutScriptError naming the layout and the script line that was
        running.  Whatever the script created in tmux before failing is
        left in place.
        """
        label = layout or self.session_name or filename
        try:
            code = compile(source, filename, "exec")
        except SyntaxError as e:
            raise LayoutScriptError(label, e.lineno, e) from e

        _log.info("running layout %s (%s)", label, filename)
        try:
            exec(code, self.namespace())
        except Exception as e:
            lineno = _script_lineno(e, filename)
            _log.warning("layout %s failed at line %s: %s", label, lineno, e)
            raise LayoutScriptError(label, lineno, e) from e

    def attach_if_needed(self) -> bool:
        """Attach to the last created session unless the script attached.

        Returns True if an attach was issued.
        """
        if not self.sessions or any(s.attached for s in self.sessions):
            return False
        self.sessions[-1].attach()
        return True


def _script_lineno(exc: BaseException, filename: str) -> int | None:
    """Return the innermost line of *filename* in the exception's traceback."""
    lineno = None
    for frame in traceback.extract_tb(exc.__traceback__):
        if frame.filename == filename:
            lineno = frame.lineno
    return lineno


def run_layout(source: str, *, name: str | None = None, root: Path | None = None,
               filename: str = "<layout>", attach: bool = True) -> list[model.Session]:
    """Run a layout script, then attach unless it already did.

    Returns the sessions the script created.
    """
    host = ScriptHost(session_name=name, session_root=root)
    host.run(source, filename=filename, layout=name)
    if attach:
        host.attach_if_needed()
    return host.sessions
