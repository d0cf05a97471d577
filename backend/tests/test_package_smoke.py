from __future__ import annotations

import ast
import importlib
from pathlib import Path

import pytest

PACKAGE_DIR = Path(__file__).resolve().parents[1] / "campus_router"

EXPECTED_PACKAGE_FILES = {
    "__init__.py",
    "access_rules.py",
    "astar.py",
    "campus_graph.py",
    "data_errors.py",
    "destinations.py",
    "formatting.py",
    "geo.py",
    "hybrid_planner.py",
    "logging_utils.py",
    "main.py",
    "models.py",
    "modes.py",
    "network_loader.py",
    "routing_policy.py",
    "settings.py",
}


def _all_module_paths() -> list[Path]:
    return sorted(path for path in PACKAGE_DIR.glob("*.py") if path.is_file())


def test_package_inventory_is_complete() -> None:
    discovered = {path.name for path in _all_module_paths()}
    assert discovered == EXPECTED_PACKAGE_FILES
    assert (PACKAGE_DIR / "assets" / "destinations.json").is_file()


@pytest.mark.parametrize("module_path", _all_module_paths(), ids=lambda p: p.name)
def test_package_module_parses_and_imports(module_path: Path) -> None:
    source = module_path.read_text(encoding="utf-8")
    ast.parse(source, filename=str(module_path))
    if module_path.stem != "__init__":
        importlib.import_module(f"campus_router.{module_path.stem}")
