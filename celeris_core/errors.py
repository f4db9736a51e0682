"""Exception types raised by celeris.

Everything derives from ``CelerisError`` so the CLI can report any
expected failure as a one-line message and a non-zero exit.
"""

import shlex


class CelerisError(Exception):
    """Base class for expected celeris failures."""


class ValidationError(CelerisError):
    """Raised for malformed input before any tmux command is issued."""


class NotRealized(CelerisError):
    """Raised when a target is requested from a node tmux doesn't know yet."""


class ExternalCommandFailed(CelerisError):
    """Raised when tmux exits non-zero or returns output we can't parse.

    ``stderr`` is tmux's error text, kept verbatim.
    """

    def __init__(self, argv: list[str], returncode: int, stderr: str,
                 detail: str | None = None):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        self.detail = detail
        message = detail or stderr.strip() or f"exited with status {returncode}"
        super().__init__(f"{shlex.join(self.argv)}: {message}")


class NotFound(CelerisError):
    """Raised when a session or layout name is unknown."""


class NameCollision(CelerisError):
    """Raised when a new layout name is already taken."""


class StaleLastUsedPointer(CelerisError):
    """Raised when the last-used record names a layout that no longer exists."""


class ConfigError(CelerisError):
    """Raised for an unreadable or invalid config.yaml."""


class LayoutScriptError(CelerisError):
    """Raised when a layout script fails.

    Carries the layout name and the line of the script statement that was
    executing, so the user can finish the setup by hand or fix the script
    and re-run it.
    """

    def __init__(self, layout: str, lineno: int | None, cause: BaseException):
        self.layout = layout
        self.lineno = lineno
        self.cause = cause
        where = f"{layout}, line {lineno}" if lineno else layout
        super().__init__(f"layout {where}: {cause}")
