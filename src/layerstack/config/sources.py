"""Custom pydantic-settings sources for layerstack configuration.

This module provides:

- YamlLayersSettingsSource: A pydantic-settings source that loads
  configuration from layered YAML files and merges them.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. Project config: .layerstack/config.yaml in the working directory
3. User config: ~/.config/layerstack/config.yaml (or LAYERSTACK_CONFIG_DIR)

Nested mappings merge key by key; any other value from a higher layer
replaces the lower one.

Environment variables:
- LAYERSTACK_CONFIG_DIR: Override user config directory (default: ~/.config/layerstack)
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "LAYERSTACK_CONFIG_DIR"

CONFIG_FILE_NAME = "config.yaml"
PROJECT_CONFIG_DIR = ".layerstack"


class ConfigFileError(Exception):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


def deep_merge(
    base: dict[str, _typing.Any],
    override: _typing.Mapping[str, _typing.Any],
) -> dict[str, _typing.Any]:
    """
    Merge two config dicts, recursing into nested mappings.

    Args:
        base: Lower precedence values.
        override: Higher precedence values.

    Returns:
        A new dict; neither argument is modified.
    """
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, _typing.Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


class YamlLayersSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads from layered YAML config files.

    Layers (lowest to highest precedence):
    1. User config (~/.config/layerstack/config.yaml)
    2. Project config (.layerstack/config.yaml)
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the settings source.

        Args:
            settings_cls: The Settings class being populated.
            project_root: Directory holding .layerstack/config.yaml.
            user_config_path: Override path for user config file (for testing).
                If not provided, uses LAYERSTACK_CONFIG_DIR env var or default XDG path.
        """
        super().__init__(settings_cls)
        self._project_root = project_root
        self._user_config_path = user_config_path
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._data = self._load_config_layers()

    def _load_config_layers(self) -> dict[str, _typing.Any]:
        """Load and merge the config files that exist."""
        merged: dict[str, _typing.Any] = {}

        # Missing files are normal: no user or project config yet
        user_path = self._user_config_path or get_user_config_path()
        if user_path.exists():
            content = _load_yaml_file(user_path)
            if content:
                merged = deep_merge(merged, content)
                self._loaded_layers.append(("user", user_path))

        if self._project_root is not None:
            project_path = get_project_config_path(self._project_root)
            if project_path.exists():
                content = _load_yaml_file(project_path)
                if content:
                    merged = deep_merge(merged, content)
                    self._loaded_layers.append(("project", project_path))

        return merged

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Get info about layers that were actually loaded.

        Returns:
            List of (layer_name, path) tuples, lowest precedence first.
        """
        return list(self._loaded_layers)

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a field from the merged config.

        Returns:
            Tuple of (value, field_name, is_complex).
            is_complex is True if the value is a dict or list.
        """
        value = self._data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, _typing.Any]:
        """Return merged config as a plain dict for Pydantic validation."""
        return dict(self._data)


def _load_yaml_file(path: _pathlib.Path) -> dict[str, _typing.Any] | None:
    """
    Load a YAML file and return its contents as a dict.

    Returns:
        Parsed YAML contents, or None if the file is empty.

    Raises:
        ConfigFileError: If the file cannot be read, is malformed YAML,
            or contains non-dict content at the top level.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(path, f"cannot read file: {e}") from e

    try:
        parsed = _yaml.safe_load(content)
    except _yaml.YAMLError as e:
        raise ConfigFileError(path, f"invalid YAML: {e}") from e

    if parsed is None:
        return None

    if not isinstance(parsed, dict):
        type_name = type(parsed).__name__
        raise ConfigFileError(
            path,
            f"config must be a YAML mapping (dict), got {type_name}",
        )

    return parsed


def get_user_config_dir() -> _pathlib.Path:
    """
    Get the user config directory.

    Respects LAYERSTACK_CONFIG_DIR environment variable if set,
    otherwise uses XDG standard path.
    """
    config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
    if config_dir_env:
        return _pathlib.Path(config_dir_env)
    return _pathlib.Path.home() / ".config" / "layerstack"


def get_user_config_path() -> _pathlib.Path:
    """Get the path to the user config file."""
    return get_user_config_dir() / CONFIG_FILE_NAME


def get_project_config_path(project_root: _pathlib.Path) -> _pathlib.Path:
    """Get the path to the project config file under ``project_root``."""
    return project_root / PROJECT_CONFIG_DIR / CONFIG_FILE_NAME
