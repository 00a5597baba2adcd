"""
Tests that enforce coding standards.

Import conventions:
- no 'from X import Y' outside __init__.py (re-exports live there)
- external modules are aliased with a leading underscore: import json as _json
- internal modules keep a plain alias: import layerstack.errors as errors
"""

import ast as _ast
import pathlib as _pathlib

import pytest as _pytest

PACKAGE_NAME = "layerstack"
SRC_DIR = _pathlib.Path(__file__).parent.parent / "src" / PACKAGE_NAME
TESTS_DIR = _pathlib.Path(__file__).parent.parent / "tests"


def _get_python_files(directory: _pathlib.Path) -> list[_pathlib.Path]:
    """Get all Python files in a directory, recursively."""
    return sorted(directory.rglob("*.py"))


def _is_type_checking_block(node: _ast.AST) -> bool:
    if not isinstance(node, _ast.If):
        return False
    test = node.test
    if isinstance(test, _ast.Name):
        return test.id == "TYPE_CHECKING"
    return isinstance(test, _ast.Attribute) and test.attr == "TYPE_CHECKING"


def _iter_imports(tree: _ast.Module) -> list[_ast.Import | _ast.ImportFrom]:
    """Import statements of a module, skipping TYPE_CHECKING blocks."""
    found: list[_ast.Import | _ast.ImportFrom] = []
    pending: list[_ast.AST] = [tree]
    while pending:
        node = pending.pop()
        if _is_type_checking_block(node):
            continue
        if isinstance(node, (_ast.Import, _ast.ImportFrom)):
            found.append(node)
        pending.extend(_ast.iter_child_nodes(node))
    return sorted(found, key=lambda node: node.lineno)


def check_source(content: str, *, is_init: bool = False) -> list[str]:
    """
    Check module source for import violations.

    Returns:
        One message per violation, prefixed with the line number.
    """
    violations: list[str] = []

    for node in _iter_imports(_ast.parse(content)):
        if isinstance(node, _ast.ImportFrom):
            if node.module == "__future__" or is_init:
                continue
            violations.append(f"{node.lineno}: from {node.module} import ...")
            continue

        for alias in node.names:
            internal = alias.name.split(".")[0] == PACKAGE_NAME
            if alias.asname is None:
                # Plain 'import layerstack' is used for the version
                if alias.name != PACKAGE_NAME:
                    violations.append(f"{node.lineno}: import {alias.name} without alias")
            elif internal and alias.asname.startswith("_"):
                violations.append(f"{node.lineno}: internal {alias.name} as {alias.asname}")
            elif not internal and not alias.asname.startswith("_"):
                violations.append(f"{node.lineno}: external {alias.name} as {alias.asname}")

    return violations


def _check_tree(directory: _pathlib.Path) -> list[str]:
    violations: list[str] = []
    for path in _get_python_files(directory):
        is_init = path.name == "__init__.py"
        for violation in check_source(path.read_text(), is_init=is_init):
            violations.append(f"{path}:{violation}")
    return violations


class TestImportStyle:
    """Tests for import style compliance."""

    @_pytest.mark.parametrize("directory", [SRC_DIR, TESTS_DIR], ids=["src", "tests"])
    def test_import_conventions(self, directory: _pathlib.Path) -> None:
        """Source and test files follow the import conventions."""
        violations = _check_tree(directory)
        if violations:
            msg = "Found import convention violations:\n"
            msg += "\n".join(f"  {v}" for v in violations)
            msg += "\n\nUse 'import X as _x' (external) or 'import X as x' (internal) instead."
            _pytest.fail(msg)


class TestCheckSource:
    """Tests for the checker itself."""

    def test_detects_from_import(self) -> None:
        """Should detect basic from imports."""
        assert check_source("from pathlib import Path") == ["1: from pathlib import ..."]

    def test_allows_from_imports_in_init(self) -> None:
        """Re-exports are allowed in __init__.py."""
        assert check_source("from layerstack.errors import LayerStackError", is_init=True) == []

    def test_allows_future_imports(self) -> None:
        """Should allow __future__ imports."""
        assert check_source("from __future__ import annotations") == []

    def test_ignores_type_checking_block(self) -> None:
        """Should ignore imports inside TYPE_CHECKING blocks."""
        content = """
import typing as _typing

if _typing.TYPE_CHECKING:
    from some_module import SomeType

from forbidden import Other
"""
        assert check_source(content) == ["7: from forbidden import ..."]

    def test_alias_conventions(self) -> None:
        """External aliases need the underscore, internal ones must not have it."""
        content = """
import json
import json as json_module
import layerstack.errors as _errors
import json as _json
import layerstack.errors as errors
import layerstack
"""
        assert check_source(content) == [
            "2: import json without alias",
            "3: external json as json_module",
            "4: internal layerstack.errors as _errors",
        ]
