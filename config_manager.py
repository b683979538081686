# config_manager.py
import json
from datetime import datetime
from pathlib import Path
import sys
import os
import constants

def get_app_config_dir():
    """Gets the OS-dependent application configuration directory."""
    app_name = constants.APP_NAME_FOR_CONFIG
    if sys.platform == "win32":
        # %APPDATA%\AppName
        return Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming")) / app_name
    elif sys.platform == "darwin":
        # ~/Library/Application Support/AppName
        return Path.home() / "Library" / "Application Support" / app_name
    else: # Linux and other XDG-based systems
        # ~/.config/AppName
        return Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / app_name


def _read_json_file(app, file_path, default, description):
    if not file_path.exists():
        app._log(f"{description} not found at {file_path}. Using defaults.")
        return default
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        app._log(f"{description} loaded from: {file_path}")
        return data
    except json.JSONDecodeError:
        app._log(f"Error decoding {description.lower()}: {file_path}. Using defaults.", error=True)
    except OSError as e:
        app._log(f"Error loading {description.lower()} {file_path}: {e}. Using defaults.", error=True)
    return default


class ConfigManager:
    """Settings (last project, theme) and the recent-projects history.

    Both live as JSON files in the application config directory. Load errors
    never propagate: they are logged and the defaults are used instead.
    """

    def __init__(self, app_instance, config_dir=None):
        self.app = app_instance
        self.config_dir = Path(config_dir) if config_dir else get_app_config_dir()
        self.config_file_path = self.config_dir / constants.SETTINGS_FILE_NAME
        self.history_file_path = self.config_dir / constants.HISTORY_FILE_NAME
        self.data = {}
        self.history = []
        self.last_project_path = None # In-memory copy, survives a failed save

    # --- Settings ---
    def load_config(self):
        data = _read_json_file(self.app, self.config_file_path, {}, "Config file")
        self.data = data if isinstance(data, dict) else {}

        if "theme" not in self.data and constants.TTKTHEMES_AVAILABLE:
            self.data["theme"] = constants.DEFAULT_THEME

        return self.data

    def save_config(self):
        if constants.TTKTHEMES_AVAILABLE and hasattr(self.app, 'get_theme'):
            try:
                current_theme = self.app.get_theme()
                if current_theme:
                    self.data["theme"] = current_theme
            except Exception as e:
                self.app._log(f"Could not get current theme to save: {e}", warning=True)

        self._write_json(self.config_file_path, self.data, "config file")

    def save_last_path(self, project_path):
        self.last_project_path = str(project_path)
        self.data["lastProjectPath"] = self.last_project_path
        self.save_config()

    def get_default_path(self):
        saved = self.data.get("lastProjectPath")
        if isinstance(saved, str) and saved and Path(saved).exists():
            return saved
        if self.last_project_path and Path(self.last_project_path).exists():
            return self.last_project_path
        return str(Path.home())

    # --- Recent Projects ---
    def load_history(self):
        history = _read_json_file(self.app, self.history_file_path, [], "History file")
        if not isinstance(history, list):
            self.app._log("History file does not contain a list. Starting with empty history.", warning=True)
            history = []
        self.history = [entry for entry in history if isinstance(entry, dict) and entry.get("path")]
        return self.history

    def add_to_history(self, name, project_path):
        if not project_path:
            return
        project_path = str(project_path)
        self.history = [entry for entry in self.history if entry.get("path") != project_path]
        self.history.insert(0, {"name": name, "path": project_path})
        del self.history[constants.MAX_HISTORY:]
        self._save_history()

    def mark_closed(self, project_path):
        if not project_path:
            return
        for entry in self.history:
            if entry.get("path") == str(project_path):
                entry["closedAt"] = datetime.now().isoformat(timespec="seconds")
                self._save_history()
                return

    def _save_history(self):
        self._write_json(self.history_file_path, self.history, "history file")

    def _write_json(self, file_path, payload, description):
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True) # Ensure directory exists
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2)
            self.app._log(f"Saved {description}: {file_path}")
        except (OSError, TypeError) as e:
            self.app._log(f"Error saving {description} {file_path}: {e}", error=True)
