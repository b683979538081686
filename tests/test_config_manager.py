"""
Unit tests for config_manager.py: settings persistence, default path resolution
and the recent-projects history.
"""

import json

import constants
from config_manager import ConfigManager, get_app_config_dir


def _manager(fake_app, tmp_path):
    return ConfigManager(fake_app, config_dir=tmp_path / "cfg")


class TestConfigDir:
    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_app_config_dir() == tmp_path / constants.APP_NAME_FOR_CONFIG


class TestSettings:
    def test_missing_file_gives_defaults(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        data = manager.load_config()
        assert "lastProjectPath" not in data

    def test_corrupt_file_logged_and_ignored(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.config_dir.mkdir(parents=True)
        manager.config_file_path.write_text("{oops", encoding="utf-8")

        assert "lastProjectPath" not in manager.load_config()
        assert any(error for _, error, _ in fake_app.logs)

    def test_save_last_path_round_trip(self, fake_app, tmp_path):
        project = tmp_path / "proj"
        project.mkdir()
        manager = _manager(fake_app, tmp_path)
        manager.load_config()
        manager.save_last_path(str(project))

        saved = json.loads(manager.config_file_path.read_text(encoding="utf-8"))
        assert saved["lastProjectPath"] == str(project)

        reloaded = _manager(fake_app, tmp_path)
        reloaded.load_config()
        assert reloaded.get_default_path() == str(project)

    def test_default_path_falls_back_to_home(self, fake_app, tmp_path, monkeypatch):
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
        manager = _manager(fake_app, tmp_path)
        manager.load_config()
        manager.data["lastProjectPath"] = str(tmp_path / "deleted")
        assert manager.get_default_path() == str(tmp_path / "home")

    def test_default_path_uses_in_memory_path(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.load_config()
        manager.last_project_path = str(tmp_path)
        assert manager.get_default_path() == str(tmp_path)


class TestHistory:
    def test_add_moves_to_front_and_persists(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.load_history()
        manager.add_to_history("a", "/p/a")
        manager.add_to_history("b", "/p/b")
        manager.add_to_history("a", "/p/a")

        assert [e["path"] for e in manager.history] == ["/p/a", "/p/b"]
        stored = json.loads(manager.history_file_path.read_text(encoding="utf-8"))
        assert stored == manager.history

    def test_history_capped(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        for i in range(constants.MAX_HISTORY + 3):
            manager.add_to_history(f"p{i}", f"/p/{i}")
        assert len(manager.history) == constants.MAX_HISTORY
        assert manager.history[0]["path"] == f"/p/{constants.MAX_HISTORY + 2}"

    def test_mark_closed_then_reopen(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.add_to_history("a", "/p/a")
        manager.mark_closed("/p/a")
        assert "closedAt" in manager.history[0]

        manager.add_to_history("a", "/p/a")
        assert "closedAt" not in manager.history[0]

    def test_mark_closed_unknown_path_is_noop(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.add_to_history("a", "/p/a")
        manager.mark_closed("/p/other")
        manager.mark_closed(None)
        assert manager.history == [{"name": "a", "path": "/p/a"}]

    def test_load_history_ignores_bad_content(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.config_dir.mkdir(parents=True)
        manager.history_file_path.write_text(json.dumps({"not": "a list"}), encoding="utf-8")
        assert manager.load_history() == []

    def test_load_history_drops_malformed_entries(self, fake_app, tmp_path):
        manager = _manager(fake_app, tmp_path)
        manager.config_dir.mkdir(parents=True)
        manager.history_file_path.write_text(
            json.dumps([{"name": "ok", "path": "/p/ok"}, "junk", {"name": "nopath"}]), encoding="utf-8")
        assert manager.load_history() == [{"name": "ok", "path": "/p/ok"}]
