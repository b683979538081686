# project_loader.py
import json
from pathlib import Path

from errors import ProjectLoadError

def _string_map(value):
    """Keeps only the string-valued entries of a package.json object field."""
    if not isinstance(value, dict):
        return {}
    return {key: val for key, val in value.items() if isinstance(val, str)}

def load_project(path):
    project_path = Path(path)
    package_json_path = project_path / "package.json"

    if not package_json_path.exists():
        raise ProjectLoadError("No package.json found in this folder")

    try:
        with open(package_json_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ProjectLoadError(f"Failed to read package.json: {e}") from e

    try:
        package_data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ProjectLoadError(f"Invalid JSON in package.json: {e}") from e
    if not isinstance(package_data, dict):
        raise ProjectLoadError("Invalid JSON in package.json: top-level value is not an object")

    name = package_data.get("name")
    version = package_data.get("version")

    return {
        "name": name if isinstance(name, str) else "Unknown Project",
        "version": version if isinstance(version, str) else "0.0.0",
        "scripts": _string_map(package_data.get("scripts")),
        "dependencies": _string_map(package_data.get("dependencies")),
        "devDependencies": _string_map(package_data.get("devDependencies")),
        "nodeModulesInstalled": (project_path / "node_modules").exists(),
        "projectPath": str(path),
    }

def project_folder_from_drop(paths):
    """Picks the folder to open from a list of dropped paths.

    Only the first path counts. A dropped file (usually package.json itself)
    opens the folder that contains it.
    """
    if not paths:
        return None
    dropped = Path(paths[0])
    if dropped.is_file():
        return str(dropped.parent)
    return str(dropped)
