"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with LAYERSTACK_ prefix
3. .env file (if LAYERSTACK_ENV_FILE points to one)
4. Layered YAML config files:
   - Project config: .layerstack/config.yaml (highest)
   - User config: ~/.config/layerstack/config.yaml

Nested config uses double underscore delimiter:
  LAYERSTACK_LOGGING__LEVEL=debug
  LAYERSTACK_OUTPUT__FORMAT=json
"""

import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import layerstack.config.sources as sources
import layerstack.config.types as types

# LAYERSTACK_CONFIG_DIR and LAYERSTACK_ENV_FILE steer loading; the env
# source also hands them over as extra fields
_ENV_CONTROL_KEYS = frozenset({"config_dir", "env_file"})


def _get_env_file() -> str | None:
    """Return the .env file named by LAYERSTACK_ENV_FILE, if it exists."""
    if env_file := _os.environ.get("LAYERSTACK_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


class Settings(_pydantic_settings.BaseSettings):
    """
    layerstack configuration settings.

    All settings can be overridden via environment variables with LAYERSTACK_ prefix.
    For nested config, use double underscore: LAYERSTACK_OUTPUT__FORMAT=json

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (LAYERSTACK_*)
    3. .env file
    4. Project config (.layerstack/config.yaml)
    5. User config (~/.config/layerstack/config.yaml)
    6. Field defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="LAYERSTACK_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # LAYERSTACK_OUTPUT__FORMAT
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args) - highest
        2. env_settings (LAYERSTACK_* env vars)
        3. dotenv_settings (.env file)
        4. YAML config files
        5. (defaults via Field definitions) - lowest
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.YamlLayersSettingsSource(settings_cls, _pathlib.Path.cwd()),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables only, without loading .env file.

        Useful for test isolation and for reproducing issues without .env
        interference.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    # =========================================================================
    # Nested config sections
    # =========================================================================

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    output: types.OutputConfig = _pydantic.Field(default_factory=types.OutputConfig)
    """CLI output settings."""

    @property
    def log_level(self) -> int:
        """Numeric logging level for `logging.setLevel`."""
        return _logging.getLevelName(self.logging.level.upper())  # type: ignore[no-any-return]

    # =========================================================================
    # Config auditing
    # =========================================================================

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return top-level fields that are not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Recursively collect all extra fields from Settings and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"output.fromat": "json"}

        Use this to report typos in config files.
        """
        result: dict[str, _typing.Any] = {
            key: value
            for key, value in self.get_extra_fields().items()
            if key not in _ENV_CONTROL_KEYS
        }

        for field_name in ["logging", "output"]:
            nested = getattr(self, field_name, None)
            if isinstance(nested, types.ConfigBase):
                result.update(nested.collect_all_extra_fields(prefix=field_name))

        return result
