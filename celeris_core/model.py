"""Session / Window / Pane object model.

Each object is created in tmux as soon as it is constructed, and every
mutating method issues exactly one tmux command before returning, in the
order the caller makes them.  Later calls need the identifiers earlier
ones returned, so nothing is batched or deferred.

Arguments are validated before the command is built: a bad direction,
size or root raises ValidationError without touching tmux, while
everything done by earlier calls stays in place.

There is no notion of a "current" window or pane here.  Every operation
runs against the object it is called on.
"""

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from celeris_core import targets
from celeris_core import tmux as tmux_mod
from celeris_core.errors import ValidationError
from celeris_core.paths import configure_logger, expand_path

_log = configure_logger("celeris.model")

# Characters tmux gives a meaning inside target strings
TMUX_SPECIAL_CHARS = frozenset("@$%:.")


def validate_session_name(name: str) -> str:
    """Return *name* if tmux can use it as a session name unambiguously."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("session name must be a non-empty string")
    bad = sorted(set(name) & TMUX_SPECIAL_CHARS)
    if bad:
        raise ValidationError(
            f"invalid session name {name!r}: contains characters tmux treats "
            f"specially ({' '.join(bad)})"
        )
    return name


def resolve_root(root: str | os.PathLike | None, default: Path) -> Path:
    """Return the working directory for a new object.

    ``None`` inherits *default*; anything else must be an existing
    directory.
    """
    if root is None:
        return default
    if not isinstance(root, (str, os.PathLike)):
        raise ValidationError(f"root must be a path, got {type(root).__name__}")
    path = expand_path(root)
    if not path.is_dir():
        raise ValidationError(f"root doesn't exist or is not a directory: {path}")
    return path


class Direction(enum.Enum):
    """Split / even-out orientation.

    HORIZONTAL places panes side by side, VERTICAL stacks them.
    """

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValidationError(
            f"invalid direction {value!r}: expected 'horizontal' or 'vertical'"
        )

    @property
    def split_flag(self) -> str:
        return "-h" if self is Direction.HORIZONTAL else "-v"

    @property
    def even_layout(self) -> str:
        return "even-horizontal" if self is Direction.HORIZONTAL else "even-vertical"


def _require_int(value, what: str) -> int:
    # bool is an int subclass; True is not a size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{what} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Percentage:
    """Size as a share of the pane being split, resolved by tmux at split time."""

    value: int

    def __post_init__(self):
        _require_int(self.value, "percentage size")
        if not 0 < self.value < 100:
            raise ValidationError(
                f"percentage size must be between 0 and 100 (exclusive), got {self.value}"
            )

    def to_arg(self) -> str:
        return f"{self.value}%"


@dataclass(frozen=True)
class Absolute:
    """Size in cells (columns or lines, depending on the split direction)."""

    value: int

    def __post_init__(self):
        _require_int(self.value, "absolute size")
        if self.value <= 0:
            raise ValidationError(f"absolute size must be positive, got {self.value}")

    def to_arg(self) -> str:
        return str(self.value)


SplitSize = Percentage | Absolute


def parse_size(value) -> SplitSize:
    """Build a SplitSize from the forms layout scripts use.

    Accepts a SplitSize, ``{"type": "percentage"|"absolute", "value": n}``,
    ``"20%"``, ``"30"`` or a plain int (absolute).
    """
    if isinstance(value, (Percentage, Absolute)):
        return value
    if isinstance(value, Mapping):
        unknown = set(value) - {"type", "value"}
        if unknown:
            raise ValidationError(f"unknown size keys: {', '.join(sorted(unknown))}")
        kind = value.get("type")
        if kind == "percentage":
            return Percentage(value.get("value"))
        if kind == "absolute":
            return Absolute(value.get("value"))
        raise ValidationError(
            f"invalid size type {kind!r}: expected 'percentage' or 'absolute'"
        )
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.endswith("%"):
                return Percentage(int(text[:-1]))
            return Absolute(int(text))
        except ValueError:
            raise ValidationError(f"invalid size {value!r}") from None
    if isinstance(value, int) and not isinstance(value, bool):
        return Absolute(value)
    raise ValidationError(f"invalid size {value!r}")


class Session:
    """A tmux session, created detached when constructed.

    tmux always gives a new session one window.  That window is kept as a
    placeholder and replaced by the first Window created in the session,
    so the session ends up with exactly the windows that were declared.
    """

    def __init__(self, name: str | None = None, root: str | os.PathLike | None = None):
        self.root = resolve_root(root, Path.cwd())
        self.name = validate_session_name(name if name is not None else self.root.name)
        self.id: str | None = None
        self.placeholder_window_id: str | None = None
        self.windows: list[Window] = []
        self.attached = False
        self._create()

    def _create(self) -> None:
        args = ("new-session", "-d", "-s", self.name,
                "-P", "-F", "#{window_id}|#{session_id}",
                "-c", str(self.root))
        output = tmux_mod.execute(*args)
        self.placeholder_window_id, self.id = tmux_mod.split_fields(output, 2, args)
        _log.info("session %s created as %s (root=%s)", self.name, self.id, self.root)

    def target(self) -> str:
        return targets.session_target(self.id)

    def attach(self) -> None:
        """Attach to (or switch the current client to) this session."""
        tmux_mod.attach(self.target())
        self.attached = True

    def __repr__(self) -> str:
        return f"Session(name={self.name!r}, id={self.id!r})"


class Window:
    """A window in a Session, created in tmux when constructed."""

    def __init__(self, session: Session, name: str | None = None,
                 root: str | os.PathLike | None = None, raw_command: str | None = None):
        if not isinstance(session, Session):
            raise ValidationError(f"expected a Session, got {type(session).__name__}")
        if name is not None and not isinstance(name, str):
            raise ValidationError(f"window name must be a string, got {name!r}")
        if raw_command is not None and not isinstance(raw_command, str):
            raise ValidationError(f"raw_command must be a string, got {raw_command!r}")
        self.session = session
        self.name = name
        self.root = resolve_root(root, session.root)
        self.raw_command = raw_command
        self.id: str | None = None
        self.panes: list[Pane] = []
        self._default_pane: Pane | None = None
        self._create()

    def _create(self) -> None:
        args = ["new-window", "-P", "-F", "#{pane_id}|#{window_id}"]
        placeholder = self.session.placeholder_window_id
        if placeholder:
            args += ["-k", "-t", targets.window_target(self.session.id, placeholder)]
        else:
            args += ["-t", self.session.target()]
        if self.name is not None:
            args += ["-n", self.name]
        args += ["-c", str(self.root)]
        if self.raw_command is not None:
            args.append(self.raw_command)

        output = tmux_mod.execute(*args)
        pane_id, self.id = tmux_mod.split_fields(output, 2, args)
        self.session.placeholder_window_id = None
        self.session.windows.append(self)
        self._default_pane = Pane(self, pane_id, self.root)
        _log.info("window %s created in %s (name=%s)", self.id, self.session.id, self.name)

    def target(self) -> str:
        return targets.window_target(self.session.id, self.id)

    def default_pane(self) -> "Pane":
        """Return the pane the window was created with."""
        return self._default_pane

    def select(self) -> None:
        tmux_mod.execute("select-window", "-t", self.target())

    def even_out(self, direction) -> None:
        """Spread all panes evenly along *direction*."""
        direction = Direction.parse(direction)
        tmux_mod.execute("select-layout", "-t", self.target(), direction.even_layout)

    def __repr__(self) -> str:
        return f"Window(name={self.name!r}, id={self.id!r})"


class Pane:
    """A pane in a Window.

    Only Window creates the default pane and only ``split`` creates the
    others; ``direction`` and ``size`` are set for split panes only.
    """

    def __init__(self, window: Window, pane_id: str, root: Path,
                 direction: Direction | None = None, size: SplitSize | None = None):
        self.window = window
        self.id = pane_id
        self.root = root
        self.direction = direction
        self.size = size
        self.command: str | None = None
        window.panes.append(self)

    def target(self) -> str:
        return targets.pane_target(self.window.session.id, self.window.id, self.id)

    def split(self, direction, size=None, root: str | os.PathLike | None = None) -> "Pane":
        """Split this pane and return the new one.

        *size* is the new pane's size; see ``parse_size`` for the accepted
        forms.  The new pane starts in *root*, or in the window's root.
        """
        direction = Direction.parse(direction)
        split_size = parse_size(size) if size is not None else None
        pane_root = resolve_root(root, self.window.root)

        args = ["split-window", "-t", self.target(), "-P", "-F", "#{pane_id}",
                direction.split_flag]
        if split_size is not None:
            args += ["-l", split_size.to_arg()]
        args += ["-c", str(pane_root)]

        output = tmux_mod.execute(*args)
        (pane_id,) = tmux_mod.split_fields(output, 1, args)
        pane = Pane(self.window, pane_id, pane_root, direction, split_size)
        _log.info("pane %s split from %s (%s, size=%s)", pane_id, self.id,
                  direction.value, split_size.to_arg() if split_size else "default")
        return pane

    def select(self) -> None:
        tmux_mod.execute("select-pane", "-t", self.target())

    def run_command(self, command: str) -> None:
        """Type *command* into the pane and press Enter."""
        if not isinstance(command, str):
            raise ValidationError(f"command must be a string, got {command!r}")
        tmux_mod.execute("send-keys", "-t", self.target(), command, "Enter")
        self.command = command

    def __repr__(self) -> str:
        return f"Pane(id={self.id!r})"
