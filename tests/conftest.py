"""Shared test helpers for celeris_core tests."""

import os
import tempfile
from unittest.mock import MagicMock, patch

import pytest

# Loggers resolve their file under the cache dir when created; keep that
# out of the real home directory.
os.environ.setdefault("CELERIS_CACHE_DIR", tempfile.mkdtemp(prefix="celeris-test-cache-"))
os.environ.setdefault("CELERIS_CONFIG_DIR", tempfile.mkdtemp(prefix="celeris-test-config-"))

from celeris_core import paths  # noqa: E402


class FakeTmux:
    """Stands in for the tmux binary behind subprocess.run.

    Records every argv (without the leading ``tmux``) and answers the
    ``-P -F`` queries with fresh ``$N``/``@N``/``%N`` ids.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.sessions: list[str] = []
        self.server = True
        self.failures: dict[str, str] = {}
        self._next = {"$": 0, "@": 0, "%": 0}

    def _id(self, sigil: str) -> str:
        self._next[sigil] += 1
        return f"{sigil}{self._next[sigil]}"

    def fail(self, subcommand: str, stderr: str) -> None:
        self.failures[subcommand] = stderr

    def commands(self) -> list[list[str]]:
        """Calls that change tmux state (read-only queries filtered out)."""
        queries = {"display-message", "list-sessions", "has-session"}
        return [c for c in self.calls if c[0] not in queries]

    def __call__(self, cmd, *args, **kwargs):
        assert cmd[0] == "tmux"
        argv = list(cmd[1:])
        if argv[:1] == ["-S"]:
            argv = argv[2:]
        self.calls.append(argv)
        sub = argv[0]
        if sub in self.failures:
            return MagicMock(returncode=1, stdout="", stderr=self.failures[sub])
        if not self.server and sub in ("display-message", "list-sessions", "has-session"):
            return MagicMock(returncode=1, stdout="", stderr="no server running\n")

        stdout = ""
        if sub == "new-session":
            name = argv[argv.index("-s") + 1]
            self.sessions.append(name)
            stdout = f"{self._id('@')}|{self._id('$')}\n"
        elif sub == "new-window":
            stdout = f"{self._id('%')}|{self._id('@')}\n"
        elif sub == "split-window":
            stdout = f"{self._id('%')}\n"
        elif sub == "list-sessions":
            stdout = "".join(f"{s}\n" for s in self.sessions)
        return MagicMock(returncode=0, stdout=stdout, stderr="")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Fresh config/cache dirs per test, and never inside tmux."""
    monkeypatch.setenv("CELERIS_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("CELERIS_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("CELERIS_TMUX_SOCKET", raising=False)
    monkeypatch.delenv("TMUX", raising=False)
    monkeypatch.delenv("TMUX_PANE", raising=False)
    paths.set_dir_overrides(None, None)
    yield
    paths.set_dir_overrides(None, None)


@pytest.fixture
def fake_tmux():
    fake = FakeTmux()
    with patch("celeris_core.tmux.subprocess.run", side_effect=fake):
        yield fake
