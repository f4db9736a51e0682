"""Tmux process invocation for celeris.

Every tmux call goes through ``execute`` (or ``attach`` for the one call
that hands the terminal over), so each invocation is logged, blocks
until tmux returns, and turns a non-zero exit into
``ExternalCommandFailed`` carrying tmux's stderr verbatim.
"""

import os
import subprocess

from celeris_core.errors import ExternalCommandFailed
from celeris_core.paths import configure_logger, log_shell_command

_log = configure_logger("celeris.tmux")


def _tmux_cmd(*args: str, socket_path: str | None = None) -> list[str]:
    """Build a tmux command with optional custom socket.

    If socket_path is given, uses it.  Otherwise checks the
    CELERIS_TMUX_SOCKET env var, which lets tests and multi-server setups
    route every call to the same tmux server.
    """
    cmd = ["tmux"]
    sp = socket_path or os.environ.get("CELERIS_TMUX_SOCKET")
    if sp:
        cmd.extend(["-S", sp])
    cmd.extend(args)
    return cmd


def in_tmux() -> bool:
    """Check if we're currently inside a tmux session."""
    return bool(os.environ.get("TMUX"))


def execute(*args: str) -> str:
    """Run tmux with *args* and return its stdout.

    Raises ExternalCommandFailed on a non-zero exit or when tmux can't be
    started at all.
    """
    cmd = _tmux_cmd(*args)
    log_shell_command(_log, cmd, "tmux")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True,
                                stdin=subprocess.DEVNULL)
    except OSError as e:
        raise ExternalCommandFailed(cmd, -1, "", detail=f"failed to execute tmux: {e}") from e
    if result.returncode != 0:
        log_shell_command(_log, cmd, "tmux", result.returncode)
        raise ExternalCommandFailed(cmd, result.returncode, result.stderr or "")
    return result.stdout or ""


def run(*args: str) -> str:
    """Run an arbitrary tmux command and return its raw output.

    No target is injected; only the single trailing newline tmux prints
    after the last record is removed.
    """
    output = execute(*args)
    if output.endswith("\n"):
        output = output[:-1]
    return output


def split_fields(output: str, count: int, args: tuple[str, ...] | list[str],
                 delim: str = "|") -> list[str]:
    """Split a ``-P -F`` formatted reply into exactly *count* fields.

    Raises ExternalCommandFailed when tmux printed something else, since
    the identifiers in it are what every later command targets.
    """
    fields = output.strip().split(delim)
    if len(fields) != count or not all(fields):
        raise ExternalCommandFailed(
            _tmux_cmd(*args), 0, "",
            detail=f"couldn't parse tmux output: {output.strip()!r}",
        )
    return fields


def server_running() -> bool:
    """Check if a tmux server is reachable."""
    result = subprocess.run(
        _tmux_cmd("display-message", "-p", "#{socket_path}"),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    return result.returncode == 0


def list_sessions() -> list[str]:
    """Return the names of running sessions, or [] when no server runs."""
    if not server_running():
        return []
    output = execute("list-sessions", "-F", "#{session_name}")
    return [line for line in output.strip().splitlines() if line]


def active_session_name() -> str | None:
    """Return the name of the session this process runs in, if any."""
    if not in_tmux() or not server_running():
        return None
    pane = os.environ.get("TMUX_PANE")
    if pane:
        # Target our own pane; without -t tmux answers for the "current client"
        output = execute("display-message", "-p", "-t", pane, "#{session_name}")
    else:
        output = execute("display-message", "-p", "#{session_name}")
    return output.strip() or None


def attach(target: str) -> None:
    """Attach the terminal to *target*, blocking until detach or exit.

    Inside tmux the current client is switched instead, since nesting
    sessions is refused by tmux.  stdout and stdin stay connected to the
    terminal; only stderr is captured for the error report.
    """
    command = "switch-client" if in_tmux() else "attach-session"
    cmd = _tmux_cmd(command, "-t", target)
    log_shell_command(_log, cmd, "tmux")
    try:
        result = subprocess.run(cmd, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        raise ExternalCommandFailed(cmd, -1, "", detail=f"failed to execute tmux: {e}") from e
    if result.returncode != 0:
        log_shell_command(_log, cmd, "tmux", result.returncode)
        raise ExternalCommandFailed(cmd, result.returncode, result.stderr or "")
