"""Open layout files in the user's editor."""

import os
import shlex
import shutil
import subprocess
from pathlib import Path

from celeris_core.errors import ExternalCommandFailed
from celeris_core.paths import configure_logger, log_shell_command

_log = configure_logger("celeris.editor")


def find_editor(configured: str | None = None) -> str:
    """Return the editor command: config, then $EDITOR, then vim/vi/nano."""
    if configured:
        return configured
    editor = os.environ.get("EDITOR")
    if editor:
        return editor
    for candidate in ("vim", "vi", "nano"):
        if shutil.which(candidate):
            return candidate
    return "vi"


def open_in_editor(path: Path, editor: str | None = None) -> None:
    """Open *path* in the editor and wait for it to exit.

    The editor command may carry arguments (``EDITOR="code -w"``).
    """
    cmd = shlex.split(find_editor(editor)) + [str(path)]
    log_shell_command(_log, cmd, "editor")
    try:
        returncode = subprocess.call(cmd)
    except OSError as e:
        raise ExternalCommandFailed(cmd, -1, "", detail=f"failed to start editor: {e}") from e
    if returncode != 0:
        log_shell_command(_log, cmd, "editor", returncode)
        raise ExternalCommandFailed(cmd, returncode, "")
