"""Repository scanner: find git work trees under the configured search roots.

The walk is depth-first in sorted order, so an unchanged tree always
yields the same sequence.  Each root is depth 0.  Excluded directories
are pruned with everything under them; an exclude is either a bare name,
compared to the directory's name, or an absolute path, compared to the
directory's full path.  Symlinked directories are never entered.
"""

import os
from pathlib import Path
from typing import Iterable, Iterator

from celeris_core.config import DEFAULT_DEPTH, Config, SearchRoot
from celeris_core.paths import configure_logger, expand_path

_log = configure_logger("celeris.scanner")


def is_repo(path: Path) -> bool:
    """A directory is a work-tree root if it has a ``.git`` entry (dir or file)."""
    return (path / ".git").exists()


def is_excluded(path: Path, excludes: Iterable[str]) -> bool:
    for exclude in excludes:
        if os.path.isabs(exclude):
            if expand_path(exclude) == path:
                return True
        elif exclude == path.name:
            return True
    return False


class RepoScan:
    """Lazy, restartable iterable of repository roots.

    Every ``iter()`` walks the file system again.
    """

    def __init__(self, roots: list[SearchRoot], excludes: list[str] | None = None,
                 depth: int = DEFAULT_DEPTH, search_subdirs: bool = False):
        self.roots = list(roots)
        self.excludes = list(excludes or [])
        self.depth = depth
        self.search_subdirs = search_subdirs

    @classmethod
    def from_config(cls, config: Config) -> "RepoScan":
        return cls(config.search_roots, config.excludes, config.depth, config.search_subdirs)

    def __iter__(self) -> Iterator[Path]:
        for root in self.roots:
            max_depth = self.depth if root.depth is None else root.depth
            excludes = self.excludes + root.excludes
            yield from self._walk(expand_path(root.path), 0, max_depth, excludes)

    def _walk(self, path: Path, depth: int, max_depth: int,
              excludes: list[str]) -> Iterator[Path]:
        if is_excluded(path, excludes):
            return
        try:
            repo = is_repo(path)
        except PermissionError as e:
            # Listable but not searchable (mode r--)
            _log.warning("skipping unreadable directory %s: %s", path, e)
            return
        if repo:
            yield path
            if not self.search_subdirs:
                return
        if depth >= max_depth:
            return
        try:
            with os.scandir(path) as it:
                children = sorted(
                    (entry for entry in it if entry.is_dir(follow_symlinks=False)),
                    key=lambda entry: entry.name,
                )
        except PermissionError as e:
            _log.warning("skipping unreadable directory %s: %s", path, e)
            return
        except (FileNotFoundError, NotADirectoryError):
            # Removed while walking
            return
        for child in children:
            yield from self._walk(Path(child.path), depth + 1, max_depth, excludes)


def scan(config: Config) -> RepoScan:
    return RepoScan.from_config(config)
