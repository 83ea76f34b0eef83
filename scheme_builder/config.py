"""Project-wide configuration read from ``<root>/config/config.{toml,json,yaml}``."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping

from loguru import logger
import yaml

from core.config_loader import find_config_file, load_config_file, normalize_string_list

CONFIG_DIRNAME = "config"
CONFIG_STEM = "config"

# Raised by FileConfigLoader for unreadable, malformed or mistyped config files.
# tomllib.TOMLDecodeError and json.JSONDecodeError are ValueError subclasses.
CONFIG_ERRORS = (OSError, TypeError, ValueError, yaml.YAMLError)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise TypeError(f"[{name}] must be a table")
    return section


@dataclass(slots=True)
class GlobalConfig:
    log_level: str = "info"
    log_file: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GlobalConfig":
        section = _section(data, "global")
        return cls(
            log_level=str(section.get("log_level", "info")),
            log_file=str(section.get("log_file")) if section.get("log_file") else None,
        )


@dataclass(slots=True)
class GenerationConfig:
    autogenerate_schemes: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GenerationConfig":
        section = _section(data, "generation")
        value = section.get("autogenerate_schemes", True)
        if not isinstance(value, bool):
            raise TypeError("generation.autogenerate_schemes must be a boolean")
        return cls(autogenerate_schemes=value)


@dataclass(slots=True)
class BuildToolConfig:
    tool: str = "xcodebuild"
    default_configuration: str | None = None
    derived_data_path: str = ".build/DerivedData"
    extra_args: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildToolConfig":
        section = _section(data, "build")
        tool = str(section.get("tool", "xcodebuild")).strip()
        if not tool:
            raise ValueError("build.tool cannot be empty")
        default_configuration = section.get("default_configuration")
        return cls(
            tool=tool,
            default_configuration=str(default_configuration) if default_configuration else None,
            derived_data_path=str(section.get("derived_data_path", ".build/DerivedData")),
            extra_args=normalize_string_list(section.get("extra_args"), field_name="build.extra_args"),
        )


@dataclass(slots=True)
class Config:
    root: Path
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    build: BuildToolConfig = field(default_factory=BuildToolConfig)

    @classmethod
    def from_mapping(cls, root: Path, data: Mapping[str, Any]) -> "Config":
        return cls(
            root=root,
            global_config=GlobalConfig.from_mapping(data),
            generation=GenerationConfig.from_mapping(data),
            build=BuildToolConfig.from_mapping(data),
        )


class ConfigLoader:
    """Abstract configuration provider."""

    def load_config(self, path: Path) -> Config:
        raise NotImplementedError


class FileConfigLoader(ConfigLoader):
    """Reads the optional config file below ``path``; defaults apply when it is absent."""

    def load_config(self, path: Path) -> Config:
        config_path = find_config_file(path / CONFIG_DIRNAME, CONFIG_STEM)
        if config_path is None:
            logger.debug(f"No configuration file under {path / CONFIG_DIRNAME}, using defaults")
            return Config(root=path)
        logger.debug(f"Loading configuration from {config_path}")
        return Config.from_mapping(path, load_config_file(config_path))


class LoadedConfigLoader(ConfigLoader):
    """Hands out a configuration that was already loaded."""

    def __init__(self, config: Config) -> None:
        self._config = config

    def load_config(self, path: Path) -> Config:
        return self._config


__all__ = [
    "BuildToolConfig",
    "CONFIG_ERRORS",
    "Config",
    "ConfigLoader",
    "FileConfigLoader",
    "GenerationConfig",
    "GlobalConfig",
    "LoadedConfigLoader",
]
