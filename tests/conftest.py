"""
Shared pytest fixtures for layerstack tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import copy as _copy
import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import layerstack.config as config
import layerstack.layers.factory as factory
import layerstack.layers.group as layer_group

# =============================================================================
# Raw snapshots
# =============================================================================

# Root holding A and a group G that holds B:
#   slot   0   1        2   3
#   layer  A   G-open   B   G
SIMPLE_SNAPSHOT: dict[str, _typing.Any] = {
    "id": "root",
    "layers": [
        {"id": "A", "index": 0, "type": "layer", "name": "A"},
        {
            "id": "G",
            "index": 1,
            "type": "layerSection",
            "name": "G",
            "layers": [{"id": "B", "index": 0, "type": "layer", "name": "B"}],
        },
    ],
}

# A document the way the host numbers it (indices are the real flat slots):
#   slot   0    1         2    3         4    5    6    7
#   layer  bg   G1-open   t1   G2-open   s1   G2   G1   so
NESTED_SNAPSHOT: dict[str, _typing.Any] = {
    "id": 1,
    "layers": [
        {"id": 10, "index": 0, "type": "backgroundLayer", "name": "Background"},
        {
            "id": 20,
            "index": 6,
            "type": "layerSection",
            "name": "Outer",
            "layers": [
                {"id": 21, "index": 2, "type": "textLayer", "name": "Title", "text": {}},
                {
                    "id": 30,
                    "index": 5,
                    "type": "layerSection",
                    "name": "Inner",
                    "layers": [
                        {"id": 31, "index": 4, "type": "shapeLayer", "name": "Box"},
                    ],
                },
            ],
        },
        {"id": 40, "index": 7, "type": "smartObjectLayer", "name": "Logo"},
    ],
}

NESTED_FLAT_INDEX = {10: 0, 21: 2, 31: 4, 30: 5, 20: 6, 40: 7}
"""Host flat index of every layer in NESTED_SNAPSHOT."""


def flatten(group: layer_group.LayerGroup) -> list[str]:
    """Flat slots of a group's children, bottom first, with group markers.

    A group contributes "<id>/open", its children, then its own id.
    """
    slots: list[str] = []
    for child in group.layers:
        if isinstance(child, layer_group.LayerGroup):
            slots.append(f"{child.id}/open")
            slots.extend(flatten(child))
        slots.append(str(child.id))
    return slots


@_pytest.fixture
def flat_slots() -> _typing.Callable[[layer_group.LayerGroup], list[str]]:
    """The flatten helper, for tests that check positions slot by slot."""
    return flatten


@_pytest.fixture
def nested_flat_index() -> dict[int, int]:
    """Fresh copy of NESTED_FLAT_INDEX."""
    return dict(NESTED_FLAT_INDEX)


@_pytest.fixture
def simple_raw() -> dict[str, _typing.Any]:
    """Fresh copy of SIMPLE_SNAPSHOT."""
    return _copy.deepcopy(SIMPLE_SNAPSHOT)


@_pytest.fixture
def nested_raw() -> dict[str, _typing.Any]:
    """Fresh copy of NESTED_SNAPSHOT."""
    return _copy.deepcopy(NESTED_SNAPSHOT)


@_pytest.fixture
def simple_root(simple_raw: dict[str, _typing.Any]) -> layer_group.LayerGroup:
    """Root group built from SIMPLE_SNAPSHOT."""
    root = factory.create_layer(None, simple_raw)
    assert isinstance(root, layer_group.LayerGroup)
    return root


@_pytest.fixture
def nested_root(nested_raw: dict[str, _typing.Any]) -> layer_group.LayerGroup:
    """Root group built from NESTED_SNAPSHOT."""
    root = factory.create_layer(None, nested_raw)
    assert isinstance(root, layer_group.LayerGroup)
    return root


# =============================================================================
# Settings isolation
# =============================================================================


@_pytest.fixture
def clean_env() -> dict[str, str]:
    """
    Return environment dict without any LAYERSTACK_ keys.

    Use with mock.patch.dict to isolate tests from the actual environment.
    """
    return {k: v for k, v in _os.environ.items() if not k.startswith("LAYERSTACK_")}


@_pytest.fixture
def isolated_workspace(
    tmp_path: _pathlib.Path,
    clean_env: dict[str, str],
    monkeypatch: _pytest.MonkeyPatch,
) -> _typing.Iterator[_pathlib.Path]:
    """
    Working directory and user config directory isolated in tmp_path.

    Yields the workspace directory (the current directory during the test).
    User config is read from ``tmp_path / "user-config"``.
    """
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    user_dir = tmp_path / "user-config"
    user_dir.mkdir()

    env = dict(clean_env)
    env["LAYERSTACK_CONFIG_DIR"] = str(user_dir)
    monkeypatch.chdir(workspace)
    with _mock.patch.dict(_os.environ, env, clear=True):
        yield workspace


@_pytest.fixture
def clean_settings(isolated_workspace: _pathlib.Path) -> config.Settings:
    """Settings with defaults only: no env vars, .env or config files."""
    return config.Settings.construct_without_dotenv()
