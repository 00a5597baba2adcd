"""Tests for custom pydantic-settings sources.

Tests for YamlLayersSettingsSource:
- Loading from user and project files
- Merge order between layers
- Handling missing and empty files
- Handling malformed YAML and non-mapping content
"""

import pathlib as _pathlib

import pydantic_settings as _pydantic_settings
import pytest as _pytest

import layerstack.config as config
import layerstack.config.sources as sources


class TestHelperFunctions:
    """Tests for path helper functions."""

    def test_get_user_config_dir_default(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Without env var, should return XDG-compliant directory."""
        monkeypatch.delenv("LAYERSTACK_CONFIG_DIR", raising=False)
        assert sources.get_user_config_dir() == _pathlib.Path.home() / ".config" / "layerstack"

    def test_get_user_config_path_with_env_var(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """With env var set, should use that directory."""
        monkeypatch.setenv("LAYERSTACK_CONFIG_DIR", "/custom/config/dir")
        path = sources.get_user_config_path()
        assert path == _pathlib.Path("/custom/config/dir/config.yaml")

    def test_get_project_config_path(self) -> None:
        """Should return project-relative config path."""
        path = sources.get_project_config_path(_pathlib.Path("/some/project"))
        assert path == _pathlib.Path("/some/project/.layerstack/config.yaml")


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_mappings_merge(self) -> None:
        """Keys of nested mappings are merged one by one."""
        base = {"output": {"format": "json", "show_index": False}, "logging": {"level": "info"}}
        override = {"output": {"format": "text"}}
        assert sources.deep_merge(base, override) == {
            "output": {"format": "text", "show_index": False},
            "logging": {"level": "info"},
        }

    def test_scalars_and_lists_replace(self) -> None:
        """Non-mapping values from the override replace the base value."""
        assert sources.deep_merge({"a": [1, 2], "b": {"c": 1}}, {"a": [3], "b": 5}) == {
            "a": [3],
            "b": 5,
        }

    def test_arguments_unchanged(self) -> None:
        """Neither input is modified."""
        base = {"output": {"format": "json"}}
        override = {"output": {"format": "text"}}
        sources.deep_merge(base, override)
        assert base == {"output": {"format": "json"}}
        assert override == {"output": {"format": "text"}}


class TestYamlLayersSettingsSource:
    """Tests for YamlLayersSettingsSource."""

    def test_is_pydantic_settings_source(self) -> None:
        """YamlLayersSettingsSource should be a pydantic-settings source."""
        assert issubclass(
            sources.YamlLayersSettingsSource,
            _pydantic_settings.PydanticBaseSettingsSource,
        )

    def test_no_files(self, tmp_path: _pathlib.Path) -> None:
        """Missing files give an empty config."""
        source = sources.YamlLayersSettingsSource(
            config.Settings,
            tmp_path,
            user_config_path=tmp_path / "user.yaml",
        )
        assert source() == {}
        assert source.get_loaded_layers() == []

    def test_layers_merge_in_order(self, tmp_path: _pathlib.Path) -> None:
        """The project layer is merged over the user layer."""
        user_path = tmp_path / "user.yaml"
        user_path.write_text("output:\n  format: json\n  show_index: false\n")
        project_path = tmp_path / ".layerstack" / "config.yaml"
        project_path.parent.mkdir()
        project_path.write_text("output:\n  format: text\n")

        source = sources.YamlLayersSettingsSource(
            config.Settings,
            tmp_path,
            user_config_path=user_path,
        )

        assert source() == {"output": {"format": "text", "show_index": False}}
        assert source.get_loaded_layers() == [("user", user_path), ("project", project_path)]

    def test_get_field_value(self, tmp_path: _pathlib.Path) -> None:
        """Field values report whether they are complex."""
        user_path = tmp_path / "user.yaml"
        user_path.write_text("logging:\n  level: debug\n")
        source = sources.YamlLayersSettingsSource(config.Settings, None, user_config_path=user_path)

        field = config.Settings.model_fields["logging"]
        assert source.get_field_value(field, "logging") == ({"level": "debug"}, "logging", True)
        assert source.get_field_value(field, "missing") == (None, "missing", False)

    def test_empty_file_is_not_a_layer(self, tmp_path: _pathlib.Path) -> None:
        """An empty file contributes nothing."""
        user_path = tmp_path / "user.yaml"
        user_path.write_text("")
        source = sources.YamlLayersSettingsSource(config.Settings, None, user_config_path=user_path)
        assert source.get_loaded_layers() == []

    def test_malformed_yaml(self, tmp_path: _pathlib.Path) -> None:
        """Malformed YAML raises ConfigFileError with the path."""
        user_path = tmp_path / "user.yaml"
        user_path.write_text("output: {format: [\n")
        with _pytest.raises(sources.ConfigFileError) as exc_info:
            sources.YamlLayersSettingsSource(config.Settings, None, user_config_path=user_path)
        assert exc_info.value.path == user_path

    def test_non_mapping_content(self, tmp_path: _pathlib.Path) -> None:
        """A top-level list is rejected."""
        user_path = tmp_path / "user.yaml"
        user_path.write_text("- a\n- b\n")
        with _pytest.raises(sources.ConfigFileError, match="got list"):
            sources.YamlLayersSettingsSource(config.Settings, None, user_config_path=user_path)
