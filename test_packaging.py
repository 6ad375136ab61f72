"""Packaging regression tests."""

import re
from pathlib import Path
from typing import Set


def _read_setuptools_py_modules() -> Set[str]:
    pyproject = Path(__file__).with_name("pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r"py-modules\s*=\s*\[(.*?)\]", pyproject, flags=re.DOTALL)
    assert match is not None, "py-modules is missing from pyproject.toml"
    return set(re.findall(r'"([^"]+)"', match.group(1)))


def test_runtime_top_level_modules_are_packaged():
    modules = _read_setuptools_py_modules()
    required = {
        "selection_list",
        "journal_model",
        "journal_crypto",
        "journal_store",
        "journal_manager",
        "devjournal",
    }
    missing = required - modules
    assert not missing, f"Missing py-modules in pyproject.toml: {sorted(missing)}"


def test_console_script_points_at_cli_main():
    pyproject = Path(__file__).with_name("pyproject.toml").read_text(encoding="utf-8")
    assert re.search(r'^devjournal\s*=\s*"devjournal:main"', pyproject, flags=re.MULTILINE)
