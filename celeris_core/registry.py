"""Session registry: running tmux sessions merged with persisted layouts.

A name can be running, persisted, or both.  Switching prefers a running
session and only runs the layout script when nothing by that name is
live.  The last switched-to or created name is kept in a small YAML
record under the cache dir so ``switch --last`` can return to it.
"""

import enum
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from celeris_core import tmux as tmux_mod
from celeris_core.config import Config
from celeris_core.editor import open_in_editor
from celeris_core.errors import (
    NameCollision,
    NotFound,
    StaleLastUsedPointer,
    ValidationError,
)
from celeris_core.layouts import LayoutStore, validate_layout_name
from celeris_core.paths import configure_logger, expand_path, last_session_file, layouts_dir
from celeris_core.script import run_layout
from celeris_core.templates import default_layout

_log = configure_logger("celeris.registry")

HISTORY_LIMIT = 10


# ---------------------------------------------------------------------------
# Last-used record
# ---------------------------------------------------------------------------

def load_last_used(path: Path | None = None) -> dict:
    """Read the last-used record.

    Returns ``{"last": name or None, "history": [names, most recent first]}``.
    A missing or unreadable record reads as empty.
    """
    path = path or last_session_file()
    empty = {"last": None, "history": []}
    if not path.exists():
        return empty
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        _log.warning("ignoring unreadable last-used record %s: %s", path, e)
        return empty
    if not isinstance(data, dict):
        return empty
    last = data.get("last")
    history = data.get("history")
    if not isinstance(history, list):
        history = []
    history = [h for h in history if isinstance(h, str)]
    return {"last": last if isinstance(last, str) else None, "history": history}


def save_last_used(name: str, path: Path | None = None) -> None:
    """Make *name* the last-used session, replacing the record whole."""
    path = path or last_session_file()
    record = load_last_used(path)
    history = [name] + [h for h in record["history"] if h != name]
    data = {"last": name, "history": history[:HISTORY_LIMIT]}
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    os.replace(tmp, path)
    _log.debug("last-used session is now %s", name)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class RegistryEntry:
    name: str
    running: bool
    persisted: bool
    active: bool = False
    last_used: int | None = None


class SwitchResult(enum.Enum):
    ALREADY_ACTIVE = "already-active"
    ATTACHED = "attached"
    LOADED = "loaded"


class Registry:
    """Lists, switches to, and manages sessions and their layouts."""

    def __init__(self, store: LayoutStore | None = None, config: Config | None = None,
                 last_used_file: Path | None = None):
        self.store = store if store is not None else LayoutStore(layouts_dir())
        self.config = config or Config()
        self.last_used_file = last_used_file

    # -- listing -----------------------------------------------------------

    def entries(self, running_only: bool = False, exclude_running: bool = False,
                include_active: bool = False, recent: bool = False) -> list[RegistryEntry]:
        """Return running and persisted names merged, sorted, each once.

        The session this process runs in is left out unless
        *include_active* is set.  With *recent*, names in the last-used
        history come first, most recent first, then the rest by name.
        """
        running = set(tmux_mod.list_sessions())
        history = self.history()
        layouts = {d.name: d for d in self.store.descriptors(history)}
        rank = {name: i for i, name in enumerate(history)}
        active = tmux_mod.active_session_name()

        result = []
        for name in sorted(running | set(layouts)):
            if name in layouts:
                last_used = layouts[name].last_used
            else:
                last_used = rank.get(name)
            entry = RegistryEntry(name, name in running, name in layouts, name == active,
                                  last_used)
            if entry.active and not include_active:
                continue
            if running_only and not entry.running:
                continue
            if exclude_running and entry.running:
                continue
            result.append(entry)
        if recent:
            result.sort(key=lambda e: (e.last_used is None, e.last_used or 0, e.name))
        return result

    # -- switching ---------------------------------------------------------

    def switch(self, name: str) -> SwitchResult:
        """Attach to *name*, loading its layout first if it isn't running.

        Blocks while attached.  Raises NotFound when *name* is neither
        running nor persisted.
        """
        if name == tmux_mod.active_session_name():
            _log.info("switch: %s is already the active session", name)
            return SwitchResult.ALREADY_ACTIVE

        if name in tmux_mod.list_sessions():
            save_last_used(name, self.last_used_file)
            # "=" makes tmux match the name exactly instead of as a prefix
            tmux_mod.attach(f"={name}:")
            return SwitchResult.ATTACHED

        if self.store.contains(name):
            descriptor = self.store.get(name)
            source = self.store.read(name)
            save_last_used(name, self.last_used_file)
            run_layout(source, name=name, filename=str(descriptor.path))
            return SwitchResult.LOADED

        raise NotFound(f"no running session or layout named {name}")

    def last_used(self) -> str:
        """Return the last-used name, checking it still refers to something."""
        last = load_last_used(self.last_used_file)["last"]
        if last is None:
            raise NotFound("no session has been used yet")
        if not self.store.contains(last) and last not in tmux_mod.list_sessions():
            raise StaleLastUsedPointer(
                f"last used session {last} is neither running nor has a layout"
            )
        return last

    def switch_last(self) -> SwitchResult:
        return self.switch(self.last_used())

    def history(self) -> list[str]:
        return load_last_used(self.last_used_file)["history"]

    # -- layout management -------------------------------------------------

    def create(self, path: str | os.PathLike, name: str | None = None,
               edit: bool = True) -> str:
        """Create a layout for the directory *path* from the default template.

        Without *name* one is deduced from the path.  Returns the layout name.
        """
        root = expand_path(path)
        if not root.is_dir():
            raise ValidationError(f"not a directory: {root}")
        if name is None:
            name = self.store.deduce_name(root)
        else:
            validate_layout_name(name)
        descriptor = self.store.create(name, default_layout(name, str(root)))
        save_last_used(name, self.last_used_file)
        if edit:
            open_in_editor(descriptor.path, self.config.editor)
        return name

    def create_all(self, paths) -> tuple[list[str], list[tuple[str, str]]]:
        """Create layouts for many directories without opening the editor.

        Paths whose name collides or can't be used as a session name are
        skipped.  Returns ``(created names, [(skipped path, reason)])``.
        """
        created, skipped = [], []
        for path in paths:
            try:
                created.append(self.create(path, edit=False))
            except (NameCollision, ValidationError) as e:
                _log.info("create-all: skipping %s: %s", path, e)
                skipped.append((str(path), str(e)))
        return created, skipped

    def edit(self, name: str) -> Path:
        descriptor = self.store.get(name)
        open_in_editor(descriptor.path, self.config.editor)
        return descriptor.path

    def remove(self, names: list[str]) -> None:
        """Delete the layouts for *names*.

        Every name is checked first, so an unknown one deletes nothing.
        """
        names = list(dict.fromkeys(names))
        for name in names:
            self.store.get(name)
        for name in names:
            self.store.remove(name)


def format_entries(entries: list[RegistryEntry], tmux_format: bool = False) -> str:
    """Render entries one per line, or on one line for a tmux status bar.

    The single-line form marks the active session with ``*``.
    """
    if tmux_format:
        return " ".join(f"{e.name}*" if e.active else e.name for e in entries)
    return "\n".join(e.name for e in entries)
