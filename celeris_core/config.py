"""config.yaml loading.

Example::

    search_roots:
      - path: ~/code
        depth: 3
        excludes: [node_modules, target]
      - ~/work
    excludes: [.cache]
    depth: 10
    search_subdirs: false
    editor: nvim
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from celeris_core.errors import ConfigError
from celeris_core.paths import config_file, configure_logger, expand_path

_log = configure_logger("celeris.config")

DEFAULT_DEPTH = 10


@dataclass
class SearchRoot:
    path: Path
    depth: int | None = None
    excludes: list[str] = field(default_factory=list)


@dataclass
class Config:
    search_roots: list[SearchRoot] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    depth: int = DEFAULT_DEPTH
    search_subdirs: bool = False
    editor: str | None = None


def _str_list(value, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return value


def _depth(value, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer")
    return value


def _search_root(raw, index: int) -> SearchRoot:
    if isinstance(raw, str):
        raw = {"path": raw}
    if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
        raise ConfigError(f"search_roots[{index}] needs a 'path'")
    unknown = set(raw) - {"path", "depth", "excludes"}
    if unknown:
        raise ConfigError(f"search_roots[{index}]: unknown keys {', '.join(sorted(unknown))}")
    path = expand_path(raw["path"])
    if not path.exists():
        raise ConfigError(f"search root not found: {raw['path']}")
    if not path.is_dir():
        raise ConfigError(f"search root is not a directory: {raw['path']}")
    return SearchRoot(
        path=path,
        depth=_depth(raw.get("depth"), f"search_roots[{index}].depth"),
        excludes=_str_list(raw.get("excludes"), f"search_roots[{index}].excludes"),
    )


def parse(data: dict | None) -> Config:
    """Build a Config from the parsed YAML document."""
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping")
    roots = data.get("search_roots") or []
    if not isinstance(roots, list):
        raise ConfigError("'search_roots' must be a list")
    depth = _depth(data.get("depth"), "depth")
    editor = data.get("editor")
    if editor is not None and not isinstance(editor, str):
        raise ConfigError("'editor' must be a string")
    return Config(
        search_roots=[_search_root(r, i) for i, r in enumerate(roots)],
        excludes=_str_list(data.get("excludes"), "excludes"),
        depth=DEFAULT_DEPTH if depth is None else depth,
        search_subdirs=bool(data.get("search_subdirs", False)),
        editor=editor,
    )


def load(path: Path | None = None) -> Config:
    """Load config.yaml; a missing file gives the defaults."""
    path = path or config_file()
    if not path.exists():
        _log.debug("no config at %s, using defaults", path)
        return Config()
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}") from e
    return parse(data)
