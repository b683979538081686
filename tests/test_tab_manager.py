"""
Unit tests for tab_manager.TabManager: tab lifecycle, running-script bookkeeping
and per-tab server URL tracking.
"""

from tab_manager import TabManager

PROJECT = {"name": "demo", "projectPath": "/p/demo"}


class TestTabLifecycle:
    def test_ids_are_sequential_and_new_tab_is_active(self):
        tabs = TabManager()
        first = tabs.create_tab()
        second = tabs.create_tab()
        assert (first["id"], second["id"]) == ("tab-1", "tab-2")
        assert tabs.active_tab_id == "tab-2"

    def test_closing_last_tab_creates_fresh_one(self):
        tabs = TabManager()
        tabs.create_tab()
        new_active = tabs.close_tab("tab-1")
        assert new_active == "tab-2"
        assert list(tabs.tabs) == ["tab-2"]

    def test_closing_active_tab_activates_last_remaining(self):
        tabs = TabManager()
        for _ in range(3):
            tabs.create_tab()
        tabs.switch_tab("tab-2")
        assert tabs.close_tab("tab-2") == "tab-3"

    def test_closing_inactive_tab_keeps_active(self):
        tabs = TabManager()
        tabs.create_tab()
        tabs.create_tab()
        assert tabs.close_tab("tab-1") == "tab-2"

    def test_ids_not_reused(self):
        tabs = TabManager()
        tabs.create_tab()
        tabs.close_tab("tab-1")
        assert tabs.create_tab()["id"] == "tab-3"

    def test_switch_to_unknown_tab(self):
        tabs = TabManager()
        tabs.create_tab()
        assert tabs.switch_tab("tab-99") is None
        assert tabs.active_tab_id == "tab-1"


class TestScriptsAndUrls:
    def _tab_with_project(self):
        tabs = TabManager()
        tab = tabs.create_tab()
        tabs.set_project(tab["id"], PROJECT)
        return tabs, tab

    def test_first_url_only(self):
        tabs, tab = self._tab_with_project()
        assert tabs.record_output(tab["id"], "http://localhost:3000") == "http://localhost:3000"
        assert tabs.record_output(tab["id"], "http://localhost:4000") is None
        assert tab["detected_url"] == "http://localhost:3000"

    def test_url_cleared_when_no_server_script_left(self):
        tabs, tab = self._tab_with_project()
        tabs.mark_script_started(tab["id"], "dev")
        tabs.mark_script_started(tab["id"], "lint")
        tabs.record_output(tab["id"], "http://localhost:5173")

        assert tabs.mark_script_exited(tab["id"], "lint") is False
        assert tab["detected_url"] == "http://localhost:5173"
        assert tabs.mark_script_exited(tab["id"], "dev") is True
        assert tab["detected_url"] is None
        assert tab["running_scripts"] == set()

    def test_url_kept_while_preview_runs(self):
        tabs, tab = self._tab_with_project()
        tabs.mark_script_started(tab["id"], "dev")
        tabs.mark_script_started(tab["id"], "preview")
        tabs.record_output(tab["id"], "http://localhost:4173")
        tabs.mark_script_exited(tab["id"], "dev")
        assert tab["detected_url"] == "http://localhost:4173"

    def test_exit_for_unknown_tab_ignored(self):
        tabs, _ = self._tab_with_project()
        assert tabs.mark_script_exited("tab-42", "dev") is False
        assert tabs.record_output("tab-42", "http://localhost:1") is None

    def test_clear_project_drops_url(self):
        tabs, tab = self._tab_with_project()
        tabs.record_output(tab["id"], "http://localhost:3000")
        tabs.clear_project(tab["id"])
        assert tab["project"] is None
        assert tab["detected_url"] is None

    def test_new_url_detected_after_console_clear(self):
        tabs, tab = self._tab_with_project()
        tabs.record_output(tab["id"], "http://localhost:3000")
        tabs.clear_console_state(tab["id"])
        assert tabs.record_output(tab["id"], "http://localhost:3001") == "http://localhost:3001"
