"""Configuration models and loaders for :mod:`sfcparse`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, Mapping

import tomllib
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from sfcparse.resources import get_resource

__all__ = [
    "ConfigError",
    "DEFAULT_KNOWN_DIRECTIVES",
    "TemplateSettings",
    "ScriptSettings",
    "SfcConfig",
    "DEFAULTS_RESOURCE_NAME",
    "PYPROJECT_TABLE",
    "read_packaged_defaults_text",
    "load_packaged_defaults",
    "load_config",
]


class ConfigError(ValueError):
    """Raised when configuration cannot be read or fails validation."""


DEFAULT_KNOWN_DIRECTIVES: tuple[str, ...] = (
    "text",
    "html",
    "show",
    "if",
    "else",
    "else-if",
    "for",
    "on",
    "bind",
    "model",
    "pre",
    "cloak",
    "once",
)


class TemplateSettings(BaseModel):
    """Template syntax recognized by the transformer."""

    interpolation_open: str = Field(
        default="{{",
        min_length=1,
        description="Opening delimiter of interpolation placeholders.",
    )
    interpolation_close: str = Field(
        default="}}",
        min_length=1,
        description="Closing delimiter of interpolation placeholders.",
    )
    directive_prefix: str = Field(
        default="v-",
        min_length=1,
        description="Reserved prefix marking directive attributes.",
    )
    bind_shorthand: str = Field(
        default=":",
        min_length=1,
        description="Sigil abbreviating the attribute-binding directive.",
    )
    event_shorthand: str = Field(
        default="@",
        min_length=1,
        description="Sigil abbreviating the event-binding directive.",
    )
    known_directives: tuple[str, ...] = Field(
        default=DEFAULT_KNOWN_DIRECTIVES,
        description="Directive names (without prefix) with built-in meaning.",
    )
    container_tags: tuple[str, ...] = Field(
        default=("template",),
        description="Tags whose children live in a nested content fragment.",
    )
    languages: tuple[str, ...] = Field(
        default=("html",),
        description="Values of the template `lang` attribute that are transformed.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @model_validator(mode="after")
    def _check_shorthands(self) -> "TemplateSettings":
        """Reject configurations where the two shorthand sigils collide."""

        if self.bind_shorthand == self.event_shorthand:
            raise ValueError("bind_shorthand and event_shorthand must differ.")
        return self

    @field_validator("known_directives", "container_tags", "languages")
    @classmethod
    def _normalize_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(
            dict.fromkeys(item.strip().lower() for item in value if item.strip())
        )
        return normalized


class ScriptSettings(BaseModel):
    """Script parser selection."""

    language: str = Field(
        default="javascript",
        description="tree-sitter grammar used for script blocks and expressions.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class SfcConfig(BaseModel):
    """Root configuration for :mod:`sfcparse`."""

    log_level: str = Field(
        default="WARNING",
        description="Default logging level used by the CLI.",
    )
    component_extensions: tuple[str, ...] = Field(
        default=(".vue",),
        description="File suffixes treated as single-file components.",
    )
    template: TemplateSettings = Field(
        default_factory=TemplateSettings,
        description="Template syntax settings.",
    )
    script: ScriptSettings = Field(
        default_factory=ScriptSettings,
        description="Script parser settings.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("component_extensions")
    @classmethod
    def _normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(
            item if item.startswith(".") else f".{item}"
            for item in (raw.strip().lower() for raw in value)
            if item
        )

    def is_component(self, file_path: str | Path | None) -> bool:
        """Return ``True`` when ``file_path`` names a single-file component.

        Example:
            >>> SfcConfig().is_component("App.vue"), SfcConfig().is_component(None)
            (True, False)
        """

        if file_path is None:
            return False
        return Path(file_path).suffix.lower() in self.component_extensions


DEFAULTS_RESOURCE_NAME = "sfcparse.defaults.toml"
PYPROJECT_TABLE = ("tool", "sfcparse")


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML content.

    Example:
        >>> read_packaged_defaults_text().startswith("#")
        True
    """

    resource = get_resource(DEFAULTS_RESOURCE_NAME)
    return resource.read_text(encoding="utf-8")


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> load_packaged_defaults()["template"]["interpolation_open"]
        '{{'
    """

    return tomllib.loads(read_packaged_defaults_text())


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_user_config(path: Path) -> dict[str, Any]:
    """Return the sfcparse table stored in ``path``.

    ``pyproject.toml`` files contribute their ``[tool.sfcparse]`` table; any
    other TOML file is read as a whole.
    """

    try:
        data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if path.name != "pyproject.toml":
        return data

    table: Any = data
    for key in PYPROJECT_TABLE:
        if not isinstance(table, MappingABC):
            return {}
        table = table.get(key, {})
    if not isinstance(table, MappingABC):
        raise ConfigError(f"[{'.'.join(PYPROJECT_TABLE)}] in {path} is not a table")
    return dict(table)


def load_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> SfcConfig:
    """Build :class:`SfcConfig` from packaged defaults, a file and overrides.

    Args:
        path: Optional TOML file (or ``pyproject.toml``) to layer on top of
            the packaged defaults.
        overrides: Optional nested mapping applied last.

    Raises:
        ConfigError: If the file cannot be read or the merged data is invalid.

    Example:
        >>> config = load_config(overrides={"template": {"directive_prefix": "x-"}})
        >>> config.template.directive_prefix
        'x-'
    """

    data = load_packaged_defaults()
    if path is not None:
        data = _deep_merge(data, _read_user_config(Path(path).expanduser()))
    if overrides:
        data = _deep_merge(data, overrides)

    try:
        return SfcConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid sfcparse configuration: {exc}") from exc
