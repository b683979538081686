# tab_manager.py
import constants
import console_output


class TabManager:
    """Bookkeeping for project tabs, kept apart from the widgets that show them.

    A tab is a plain dict: id, project (the loaded project info or None),
    detected_url and running_scripts (set of script names).
    """

    def __init__(self):
        self.tabs = {} # Insertion ordered: last entry is the most recently opened tab
        self.active_tab_id = None
        self._next_tab_number = 1

    def create_tab(self):
        tab_id = f"tab-{self._next_tab_number}"
        self._next_tab_number += 1
        self.tabs[tab_id] = {
            "id": tab_id,
            "project": None,
            "detected_url": None,
            "running_scripts": set(),
        }
        self.active_tab_id = tab_id
        return self.tabs[tab_id]

    def get_tab(self, tab_id=None):
        return self.tabs.get(tab_id or self.active_tab_id)

    def switch_tab(self, tab_id):
        if tab_id not in self.tabs:
            return None
        self.active_tab_id = tab_id
        return self.tabs[tab_id]

    def close_tab(self, tab_id):
        """Removes a tab. Returns the id of the tab that is active afterwards."""
        if tab_id not in self.tabs:
            return self.active_tab_id
        del self.tabs[tab_id]

        if not self.tabs:
            self.active_tab_id = None
            return self.create_tab()["id"] # Always keep at least one tab
        if self.active_tab_id == tab_id:
            self.active_tab_id = list(self.tabs.keys())[-1]
        return self.active_tab_id

    # --- Project ---
    def set_project(self, tab_id, project):
        tab = self.tabs.get(tab_id)
        if tab is not None:
            tab["project"] = project
            tab["detected_url"] = None

    def clear_project(self, tab_id):
        tab = self.tabs.get(tab_id)
        if tab is not None:
            tab["project"] = None
            tab["detected_url"] = None

    def clear_console_state(self, tab_id):
        tab = self.tabs.get(tab_id)
        if tab is not None:
            tab["detected_url"] = None

    # --- Scripts ---
    def is_running(self, tab_id, script_name):
        tab = self.tabs.get(tab_id)
        return tab is not None and script_name in tab["running_scripts"]

    def mark_script_started(self, tab_id, script_name):
        tab = self.tabs.get(tab_id)
        if tab is not None:
            tab["running_scripts"].add(script_name)

    def mark_script_exited(self, tab_id, script_name):
        """Returns True when the tab's detected URL was dropped as a result."""
        tab = self.tabs.get(tab_id)
        if tab is None:
            return False
        tab["running_scripts"].discard(script_name)

        if tab["detected_url"] and not (tab["running_scripts"] & constants.URL_SCRIPTS):
            tab["detected_url"] = None
            return True
        return False

    def record_output(self, tab_id, text):
        """Returns the server URL if this output revealed the tab's first one."""
        tab = self.tabs.get(tab_id)
        if tab is None or tab["detected_url"]:
            return None
        url = console_output.detect_server_url(text)
        if url:
            tab["detected_url"] = url
        return url
