"""Configuration type definitions for layerstack settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:

- LoggingConfig: level
- OutputConfig: format, show_index

All types use `extra="allow"` so unknown fields are preserved rather than
silently dropped. Use `get_extra_fields()` to inspect them.
"""

import typing as _typing

import pydantic as _pydantic

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are kept in `model_extra` so typos in config files can
    be reported instead of ignored.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but are not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this config and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"output.fromat": "json"}
        """
        result: dict[str, _typing.Any] = {}

        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))

        return result


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Log level for the layerstack loggers."""


# =============================================================================
# Output Settings
# =============================================================================


class OutputConfig(ConfigBase):
    """
    CLI output settings.

    YAML section: output.*
    """

    format: _typing.Literal["text", "json", "tree"] = "tree"
    """How the CLI prints a layer tree."""

    show_index: bool = True
    """Show each layer's flat index in tree output."""
