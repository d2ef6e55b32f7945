import ast
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


def _top_level_imports(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    names = set()
    for node in tree.body:
        if isinstance(node, ast.Import):
            names.update(alias.name.split(".")[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module.split(".")[0])
    return names


def test_console_script_dependencies_are_declared_in_glib_extra():
    tomllib = pytest.importorskip("tomllib")
    project = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))["project"]
    assert project["scripts"]["masearch"] == "main:main"
    assert "gi" in _top_level_imports(ROOT / "main.py")
    glib_extra = project["optional-dependencies"]["glib"]
    assert any(dep.startswith("PyGObject") for dep in glib_extra)
    assert not any(dep.startswith("PyGObject") for dep in project["dependencies"])


def test_actions_import_without_gi():
    for path in (ROOT / "actions").glob("*.py"):
        assert "gi" not in _top_level_imports(path), path.name
