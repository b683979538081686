"""
Unit tests for project_loader against temporary project folders.
"""

import json

import pytest

import project_loader
from errors import ProjectLoadError


def _write_package(folder, payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    (folder / "package.json").write_text(text, encoding="utf-8")


class TestLoadProject:
    def test_full_manifest(self, tmp_path):
        _write_package(tmp_path, {
            "name": "web-app",
            "version": "1.4.2",
            "scripts": {"dev": "vite", "build": "vite build"},
            "dependencies": {"react": "^18.2.0"},
            "devDependencies": {"vite": "^5.0.0"},
        })

        project = project_loader.load_project(str(tmp_path))

        assert project["name"] == "web-app"
        assert project["version"] == "1.4.2"
        assert list(project["scripts"]) == ["dev", "build"]
        assert project["dependencies"] == {"react": "^18.2.0"}
        assert project["devDependencies"] == {"vite": "^5.0.0"}
        assert project["nodeModulesInstalled"] is False
        assert project["projectPath"] == str(tmp_path)

    def test_node_modules_detected(self, tmp_path):
        _write_package(tmp_path, {"name": "x"})
        (tmp_path / "node_modules").mkdir()
        assert project_loader.load_project(str(tmp_path))["nodeModulesInstalled"] is True

    def test_defaults_for_missing_fields(self, tmp_path):
        _write_package(tmp_path, {})
        project = project_loader.load_project(str(tmp_path))
        assert project["name"] == "Unknown Project"
        assert project["version"] == "0.0.0"
        assert project["scripts"] == {}
        assert project["dependencies"] == {}
        assert project["devDependencies"] == {}

    def test_non_string_values_dropped(self, tmp_path):
        _write_package(tmp_path, {
            "name": 42,
            "scripts": {"dev": "next dev", "broken": {"cmd": "x"}, "n": 1},
            "dependencies": ["not", "an", "object"],
        })
        project = project_loader.load_project(str(tmp_path))
        assert project["name"] == "Unknown Project"
        assert project["scripts"] == {"dev": "next dev"}
        assert project["dependencies"] == {}

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ProjectLoadError, match="No package.json found in this folder"):
            project_loader.load_project(str(tmp_path))

    def test_invalid_json(self, tmp_path):
        _write_package(tmp_path, "{ not json")
        with pytest.raises(ProjectLoadError, match="^Invalid JSON in package.json: "):
            project_loader.load_project(str(tmp_path))

    def test_top_level_array_rejected(self, tmp_path):
        _write_package(tmp_path, "[1, 2]")
        with pytest.raises(ProjectLoadError, match="^Invalid JSON in package.json"):
            project_loader.load_project(str(tmp_path))

    def test_unreadable_manifest(self, tmp_path):
        (tmp_path / "package.json").mkdir() # A directory cannot be opened as a file
        with pytest.raises(ProjectLoadError, match="^Failed to read package.json: "):
            project_loader.load_project(str(tmp_path))


class TestProjectFolderFromDrop:
    def test_dropped_folder(self, tmp_path):
        assert project_loader.project_folder_from_drop([str(tmp_path)]) == str(tmp_path)

    def test_dropped_package_json_opens_its_folder(self, tmp_path):
        _write_package(tmp_path, {"name": "web-app"})
        dropped = [str(tmp_path / "package.json")]
        assert project_loader.project_folder_from_drop(dropped) == str(tmp_path)

    def test_only_first_path_counts(self, tmp_path):
        first = tmp_path / "first app"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        assert project_loader.project_folder_from_drop([str(first), str(second)]) == str(first)

    def test_nothing_dropped(self):
        assert project_loader.project_folder_from_drop(()) is None
