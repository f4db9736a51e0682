"""Centralized path management for celeris.

Configuration and layouts live under the config dir, state that can be
thrown away lives under the cache dir:

- <config>/config.yaml         - search roots, excludes, editor
- <config>/layouts/<name>.py   - one layout script per session
- <cache>/last_session.yaml    - last-used pointer
- <cache>/debug/celeris.log    - command log

The config dir is $CELERIS_CONFIG_DIR, $XDG_CONFIG_HOME/celeris or
~/.config/celeris; the cache dir follows the same pattern with
$CELERIS_CACHE_DIR and $XDG_CACHE_HOME.  The CLI can override both.
"""

import logging
import os
import shlex
from logging.handlers import RotatingFileHandler
from pathlib import Path

PROJECT_DIR_NAME = "celeris"

# Set by the cli() group callback via set_dir_overrides()
_config_override: Path | None = None
_cache_override: Path | None = None


def set_dir_overrides(config: Path | None = None, cache: Path | None = None) -> None:
    """Point celeris at custom config/cache directories."""
    global _config_override, _cache_override
    _config_override = config
    _cache_override = cache
    for handler in _log_handlers:
        handler.retarget(log_file())


def _base_dir(override: Path | None, env_var: str, xdg_var: str, fallback: str) -> Path:
    if override is not None:
        return override
    explicit = os.environ.get(env_var)
    if explicit:
        return Path(explicit)
    xdg = os.environ.get(xdg_var)
    base = Path(xdg) if xdg else Path.home() / fallback
    return base / PROJECT_DIR_NAME


def config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    d = _base_dir(_config_override, "CELERIS_CONFIG_DIR", "XDG_CONFIG_HOME", ".config")
    d.mkdir(parents=True, exist_ok=True)
    return d


def cache_dir() -> Path:
    """Return the cache directory, creating it if needed."""
    d = _base_dir(_cache_override, "CELERIS_CACHE_DIR", "XDG_CACHE_HOME", ".cache")
    d.mkdir(parents=True, exist_ok=True)
    return d


def layouts_dir() -> Path:
    """Return the layouts directory (<config>/layouts/)."""
    d = config_dir() / "layouts"
    d.mkdir(parents=True, exist_ok=True)
    return d


def config_file() -> Path:
    return config_dir() / "config.yaml"


def last_session_file() -> Path:
    return cache_dir() / "last_session.yaml"


def debug_enabled() -> bool:
    """Debug logging is on when CELERIS_DEBUG is set to anything but 0/empty."""
    return os.environ.get("CELERIS_DEBUG", "") not in ("", "0")


def expand_path(path: str | Path) -> Path:
    """Expand ``~`` and make *path* absolute without resolving symlinks."""
    return Path(os.path.abspath(os.path.expanduser(str(path))))


def shorten_path(path: str | Path) -> str:
    """Replace the home directory prefix with ``~`` for display."""
    p = str(path)
    home = str(Path.home())
    if p == home:
        return "~"
    if p.startswith(home + os.sep):
        return "~" + p[len(home):]
    return p


class _DebugLogHandler(RotatingFileHandler):
    """Rotating log handler that creates the debug dir on first write.

    ``retarget`` moves it to a new file, so a --cache-dir given after
    the modules were imported still takes effect.
    """

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()

    def retarget(self, path: Path) -> None:
        self.acquire()
        try:
            if self.stream is not None:
                self.stream.close()
                self.stream = None
            self.baseFilename = os.path.abspath(path)
        finally:
            self.release()


_log_handlers: list[_DebugLogHandler] = []


def log_file() -> Path:
    """Return the debug log path without creating anything."""
    base = _base_dir(_cache_override, "CELERIS_CACHE_DIR", "XDG_CACHE_HOME", ".cache")
    return base / "debug" / "celeris.log"


def configure_logger(name: str, max_bytes: int = 5_000_000) -> logging.Logger:
    """Configure a logger that writes to the celeris log file with rotation.

    Args:
        name: Logger name (e.g., "celeris.tmux")
        max_bytes: Maximum log file size before rotation

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    handler = _DebugLogHandler(
        log_file(),
        maxBytes=max_bytes,
        backupCount=1,
        delay=True,
    )
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%H:%M:%S"
    ))
    _log_handlers.append(handler)
    logger.addHandler(handler)
    logger.propagate = False

    if debug_enabled():
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    return logger


def log_shell_command(logger: logging.Logger, cmd: list[str], prefix: str = "shell",
                      returncode: int | None = None) -> None:
    """Log an external command before it runs, or its failure after.

    Args:
        logger: Logger to write to
        cmd: Command argv
        prefix: Prefix for the log entry (e.g., "tmux")
        returncode: If provided, logs as completion with return code
    """
    cmd_str = shlex.join(cmd)
    if returncode is None:
        logger.info("%s: %s", prefix, cmd_str)
    elif returncode == 0:
        logger.debug("%s done: %s", prefix, cmd_str)
    else:
        logger.warning("%s failed (rc=%d): %s", prefix, returncode, cmd_str)
