"""
Configuration loader for SlotMorph.

Handles loading configuration from YAML files and CLI arguments.
"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import (
    LanguageConfig,
    LanguageType,
    NamespaceConfig,
    QuickFixConfig,
    SlotMorphConfig,
)


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


_SOLIDITY_VERSION = re.compile(r"^0\.\d+\.\d+$")
_NAMESPACE_PREFIX = re.compile(r"^[A-Za-z0-9_$]+(\.[A-Za-z0-9_$]+)*$")


def validate_language_version(language: LanguageType, version: str) -> str:
    """Validate that the version is valid for the given language."""
    if language == LanguageType.SOLIDITY and not _SOLIDITY_VERSION.match(version):
        raise ConfigurationError(
            f"Invalid Solidity version '{version}'. Expected a version like '0.8.20'"
        )
    return version


def validate_namespace_prefix(prefix: str) -> str:
    """Validate a namespace prefix (dot-separated identifier segments)."""
    if not _NAMESPACE_PREFIX.match(prefix):
        raise ConfigurationError(
            f"Invalid namespace prefix '{prefix}'. Use dot-separated identifiers, e.g. 'myProject.storage'"
        )
    return prefix


def load_config_from_yaml(config_path: Path) -> SlotMorphConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")

    try:
        config = SlotMorphConfig(**raw_config)
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")

    validate_language_version(config.language.language, config.language.version)
    validate_namespace_prefix(config.namespace.prefix)

    return config


def create_config_from_args(
    prefix: str | None = None,
    version: str | None = None,
    indent: int | None = None,
    title: str | None = None,
    **kwargs: Any,
) -> SlotMorphConfig:
    """Create configuration from CLI arguments, falling back to defaults."""
    language_config = LanguageConfig()
    if version:
        language_config.version = validate_language_version(language_config.language, version)

    namespace_config = NamespaceConfig()
    if prefix:
        namespace_config.prefix = validate_namespace_prefix(prefix)
    if indent is not None:
        if indent < 1:
            raise ConfigurationError(f"Indent must be at least one space, got {indent}")
        namespace_config.indent = " " * indent

    quickfix_config = QuickFixConfig()
    if title:
        quickfix_config.title = title
    if "skip_initialized" in kwargs:
        quickfix_config.skip_initialized = bool(kwargs["skip_initialized"])

    return SlotMorphConfig(
        language=language_config,
        namespace=namespace_config,
        quickfix=quickfix_config,
    )


def apply_overrides(
    config: SlotMorphConfig, prefix: str | None = None, version: str | None = None
) -> SlotMorphConfig:
    """Apply CLI-level overrides on top of a loaded configuration."""
    if prefix:
        config.namespace.prefix = validate_namespace_prefix(prefix)
    if version:
        config.language.version = validate_language_version(config.language.language, version)
    return config


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    default_config = {
        "language": {
            "language": "solidity",
            "version": "0.8.20",
        },
        "namespace": {
            "prefix": "myProject",
            "indent": "    ",
        },
        "quickfix": {
            "title": "Move all variables to namespace",
            "diagnostic_source": "slotmorph",
            "skip_initialized": True,
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
