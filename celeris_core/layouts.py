"""Layout store: one script file per layout.

A layout's name is the tmux session name it creates.  Names may contain
``/`` (used to tell apart repos with the same directory name), which is
stored as ``%`` in the file name, so ``work/api`` lives in
``<layouts dir>/work%api.py``.  ``%`` can't appear in a session name, so
the mapping is reversible.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from celeris_core.errors import NameCollision, NotFound, ValidationError
from celeris_core.model import validate_session_name
from celeris_core.paths import configure_logger, expand_path

_log = configure_logger("celeris.layouts")

EXTENSION = ".py"
NAME_DELIMITER = "/"
STORAGE_DELIMITER = "%"

_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f<>"\\|?*]')


def validate_layout_name(name: str) -> str:
    """Return *name* if it works both as a session name and a file name."""
    validate_session_name(name)
    if _UNSAFE_FILENAME_CHARS.search(name):
        raise ValidationError(
            f"invalid layout name {name!r}: contains characters not allowed in file names"
        )
    if any(part in ("", "..") for part in name.split(NAME_DELIMITER)):
        raise ValidationError(f"invalid layout name {name!r}: empty or '..' path component")
    return name


def storage_name(name: str) -> str:
    """Return the file stem a layout name is stored under."""
    return name.replace(NAME_DELIMITER, STORAGE_DELIMITER)


def name_from_storage(stem: str) -> str:
    return stem.replace(STORAGE_DELIMITER, NAME_DELIMITER)


@dataclass
class LayoutDescriptor:
    """A persisted layout.

    ``last_used`` is the layout's position in the last-used history
    (0 = most recent), or None if it isn't in the history.
    """

    name: str
    path: Path
    last_used: int | None = None


class LayoutStore:
    """Layouts found in a layouts directory.

    The directory is listed once at construction; ``create`` and
    ``remove`` keep the in-memory index and the files in step.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._layouts: dict[str, LayoutDescriptor] = {}
        for descriptor in self._enumerate():
            self._layouts[descriptor.name] = descriptor

    def _enumerate(self):
        if not self.directory.is_dir():
            return
        for path in sorted(self.directory.iterdir()):
            if path.suffix != EXTENSION or not path.is_file():
                continue
            name = name_from_storage(path.stem)
            try:
                validate_layout_name(name)
            except ValidationError:
                _log.warning("skipping layout file with unusable name: %s", path)
                continue
            yield LayoutDescriptor(name, path)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{storage_name(name)}{EXTENSION}"

    def names(self) -> list[str]:
        return sorted(self._layouts)

    def contains(self, name: str) -> bool:
        return name in self._layouts

    def get(self, name: str) -> LayoutDescriptor:
        try:
            return self._layouts[name]
        except KeyError:
            raise NotFound(f"layout not found: {name}") from None

    def descriptors(self, history: list[str] | None = None) -> list[LayoutDescriptor]:
        """Return all layouts sorted by name, with ``last_used`` filled in."""
        rank = {name: i for i, name in enumerate(history or [])}
        result = []
        for name in self.names():
            d = self._layouts[name]
            d.last_used = rank.get(name)
            result.append(d)
        return result

    def read(self, name: str) -> str:
        return self.get(name).path.read_text()

    def deduce_name(self, path: str | os.PathLike) -> str:
        """Derive a layout name for a session rooted at *path*.

        Starts with the last path component and prefixes parent
        components while the name is taken: ``api`` → ``work/api`` →
        ``home/work/api``.  Raises NameCollision once the path runs out.
        """
        parts = [p for p in expand_path(path).parts if p != os.sep]
        if not parts:
            raise ValidationError(f"can't deduce a session name from {path}")
        name = parts[-1]
        remaining = parts[:-1]
        while self.contains(name):
            if not remaining:
                raise NameCollision(f"layout already exists: {name} (pass an explicit name)")
            name = f"{remaining.pop()}{NAME_DELIMITER}{name}"
        return validate_layout_name(name)

    def create(self, name: str, content: str) -> LayoutDescriptor:
        """Write a new layout file.  Raises NameCollision if it exists."""
        validate_layout_name(name)
        if self.contains(name):
            raise NameCollision(f"layout already exists: {name}")
        path = self.path_for(name)
        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "x") as f:
                f.write(content)
        except FileExistsError:
            raise NameCollision(f"layout file already exists: {path}") from None
        descriptor = LayoutDescriptor(name, path)
        self._layouts[name] = descriptor
        _log.info("created layout %s at %s", name, path)
        return descriptor

    def remove(self, name: str) -> None:
        descriptor = self.get(name)
        descriptor.path.unlink(missing_ok=True)
        del self._layouts[name]
        _log.info("removed layout %s", name)
