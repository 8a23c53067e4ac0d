import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_pytest_is_declared_once():
    project = tomllib.loads(PYPROJECT.read_text())

    assert "dependency-groups" not in project
    assert any(dep.startswith("pytest") for dep in project["project"]["optional-dependencies"]["test"])
