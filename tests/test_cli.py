"""Tests for the celeris CLI."""

from unittest.mock import patch

from click.testing import CliRunner

from celeris_core.cli import cli
from celeris_core.layouts import LayoutStore
from celeris_core.paths import layouts_dir, shorten_path
from celeris_core.registry import load_last_used, save_last_used


def _layout(name, body="Window(Session())\n"):
    LayoutStore(layouts_dir()).create(name, body)


def _invoke(*args, **kwargs):
    return CliRunner().invoke(cli, list(args), **kwargs)


class TestHelp:
    def test_help_alias(self):
        result = _invoke("help")
        assert result.exit_code == 0
        assert "switch" in result.output

    def test_short_help(self):
        result = _invoke("list", "-h")
        assert result.exit_code == 0
        assert "--tmux-format" in result.output

    def test_help_after_command(self):
        result = _invoke("list", "help")
        assert result.exit_code == 0
        assert "--running-only" in result.output


class TestList:
    def test_lists_running_and_layouts(self, fake_tmux):
        fake_tmux.sessions = ["beta"]
        _layout("alpha")
        result = _invoke("list")
        assert result.exit_code == 0
        assert result.output == "alpha\nbeta\n"

    def test_tmux_format(self, fake_tmux):
        fake_tmux.sessions = ["beta"]
        _layout("alpha")
        result = _invoke("list", "--tmux-format")
        assert result.output == "alpha beta\n"

    def test_exclude_running(self, fake_tmux):
        fake_tmux.sessions = ["beta"]
        _layout("alpha")
        assert _invoke("list", "--exclude-running").output == "alpha\n"

    def test_conflicting_filters(self, fake_tmux):
        result = _invoke("list", "--exclude-running", "--running-only")
        assert result.exit_code == 2

    def test_recent_first(self, fake_tmux):
        fake_tmux.sessions = ["beta"]
        for name in ("alpha", "delta", "gamma"):
            _layout(name)
        save_last_used("gamma")
        save_last_used("beta")
        result = _invoke("list", "--recent")
        assert result.exit_code == 0, result.output
        assert result.output == "beta\ngamma\nalpha\ndelta\n"

    def test_nothing_to_list(self, fake_tmux):
        fake_tmux.server = False
        result = _invoke("list")
        assert result.exit_code == 0
        assert result.output == ""


class TestCreate:
    def test_create_no_edit(self, tmp_path):
        root = tmp_path / "proj"
        root.mkdir()
        result = _invoke("create", str(root), "--no-edit")
        assert result.exit_code == 0, result.output
        assert "Created layout proj" in result.output
        assert LayoutStore(layouts_dir()).contains("proj")
        assert load_last_used()["last"] == "proj"

    def test_create_opens_editor(self, tmp_path):
        with patch("celeris_core.registry.open_in_editor") as mock_edit:
            result = _invoke("create", str(tmp_path), "-n", "custom")
        assert result.exit_code == 0
        mock_edit.assert_called_once()

    def test_create_collision(self, tmp_path):
        _layout("custom")
        result = _invoke("create", str(tmp_path), "-n", "custom", "--no-edit")
        assert result.exit_code == 1
        assert "error: layout already exists: custom" in result.output

    def test_create_all_from_stdin(self, tmp_path):
        for d in ("one", "two"):
            (tmp_path / d).mkdir()
        stdin = f"{tmp_path / 'one'}\n\n{tmp_path / 'two'}\n"
        result = _invoke("create-all", input=stdin)
        assert result.exit_code == 0, result.output
        assert LayoutStore(layouts_dir()).names() == ["one", "two"]

    def test_create_all_reports_skipped(self, tmp_path):
        for d in ("one", "example.com"):
            (tmp_path / d).mkdir()
        stdin = f"{tmp_path / 'example.com'}\n{tmp_path / 'one'}\n"
        result = _invoke("create-all", input=stdin)
        assert result.exit_code == 0, result.output
        assert f"Skipped {shorten_path(tmp_path / 'example.com')}:" in result.output
        assert "Created layout one" in result.output
        assert LayoutStore(layouts_dir()).names() == ["one"]


class TestSwitch:
    def test_switch_running(self, fake_tmux):
        fake_tmux.sessions = ["alpha"]
        result = _invoke("switch", "alpha")
        assert result.exit_code == 0, result.output
        assert fake_tmux.commands() == [["attach-session", "-t", "=alpha:"]]

    def test_switch_loads_layout(self, fake_tmux):
        _layout("alpha")
        result = _invoke("switch", "alpha")
        assert result.exit_code == 0, result.output
        assert fake_tmux.commands()[0][:4] == ["new-session", "-d", "-s", "alpha"]

    def test_switch_to_session_named_help(self, fake_tmux):
        fake_tmux.sessions = ["help"]
        result = _invoke("switch", "help")
        assert result.exit_code == 0, result.output
        assert fake_tmux.commands() == [["attach-session", "-t", "=help:"]]

    def test_switch_unknown(self, fake_tmux):
        result = _invoke("switch", "ghost")
        assert result.exit_code == 1
        assert "error: no running session or layout named ghost" in result.output

    def test_switch_last(self, fake_tmux):
        fake_tmux.sessions = ["alpha", "beta"]
        save_last_used("beta")
        result = _invoke("switch", "--last-session")
        assert result.exit_code == 0, result.output
        assert fake_tmux.commands() == [["attach-session", "-t", "=beta:"]]

    def test_switch_last_stale(self, fake_tmux):
        save_last_used("gone")
        result = _invoke("switch", "-l")
        assert result.exit_code == 1
        assert "error:" in result.output

    def test_switch_needs_exactly_one_target(self, fake_tmux):
        assert _invoke("switch").exit_code == 2
        assert _invoke("switch", "alpha", "-l").exit_code == 2

    def test_layout_error_reported(self, fake_tmux):
        _layout("alpha", "Session()\nWindow(None)\n")
        result = _invoke("switch", "alpha")
        assert result.exit_code == 1
        assert "error: layout alpha, line 2" in result.output


class TestEditRemove:
    def test_edit(self):
        _layout("alpha")
        with patch("celeris_core.registry.open_in_editor") as mock_edit:
            result = _invoke("edit", "alpha")
        assert result.exit_code == 0
        mock_edit.assert_called_once()

    def test_edit_unknown(self):
        result = _invoke("edit", "ghost")
        assert result.exit_code == 1
        assert "error: layout not found: ghost" in result.output

    def test_remove(self):
        _layout("alpha")
        _layout("beta")
        result = _invoke("remove", "alpha", "beta")
        assert result.exit_code == 0
        assert LayoutStore(layouts_dir()).names() == []


class TestSearch:
    def test_search_prints_repos(self, tmp_path):
        code = tmp_path / "code"
        (code / "proj" / ".git").mkdir(parents=True)
        (tmp_path / "config").mkdir(exist_ok=True)
        (tmp_path / "config" / "config.yaml").write_text(f"search_roots:\n  - {code}\n")
        result = _invoke("search")
        assert result.exit_code == 0, result.output
        assert result.output == f"{code / 'proj'}\n"

    def test_bad_config(self, tmp_path):
        (tmp_path / "config").mkdir(exist_ok=True)
        (tmp_path / "config" / "config.yaml").write_text("search_roots: [/no/such/dir]\n")
        result = _invoke("search")
        assert result.exit_code == 1
        assert "error: search root not found" in result.output


class TestDirOptions:
    def test_config_dir_option(self, tmp_path, fake_tmux):
        other = tmp_path / "other"
        (other / "layouts").mkdir(parents=True)
        (other / "layouts" / "elsewhere.py").write_text("")
        fake_tmux.server = False
        result = _invoke("--config-dir", str(other), "list")
        assert result.output == "elsewhere\n"

    def test_cache_dir_option_moves_log(self, tmp_path, fake_tmux):
        other = tmp_path / "other-cache"
        fake_tmux.sessions = ["alpha"]
        result = _invoke("--cache-dir", str(other), "switch", "alpha")
        assert result.exit_code == 0, result.output
        assert load_last_used(other / "last_session.yaml")["last"] == "alpha"
        assert "attach-session" in (other / "debug" / "celeris.log").read_text()
