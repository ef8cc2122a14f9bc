"""
Language plugin registry.

Central registry for all language plugins. Handles plugin discovery and instantiation.
"""

from typing import Type

from slotmorph.config.models import LanguageType
from slotmorph.languages.base.plugin import LanguagePlugin
from slotmorph.languages.solidity.plugin import SolidityPlugin


class LanguagePluginRegistry:
    """Registry for language plugins."""

    _plugins: dict[LanguageType, Type[LanguagePlugin]] = {
        LanguageType.SOLIDITY: SolidityPlugin,
    }

    @classmethod
    def get_plugin(cls, language: LanguageType, version: str) -> LanguagePlugin:
        """
        Get a language plugin instance.

        Args:
            language: The language type
            version: The language version

        Returns:
            Instantiated language plugin

        Raises:
            ValueError: If language is not supported
        """
        if language not in cls._plugins:
            raise ValueError(
                f"Unsupported language: {language}. "
                f"Supported languages: {list(cls._plugins.keys())}"
            )

        plugin_class = cls._plugins[language]
        return plugin_class(version=version)

    @classmethod
    def list_supported_languages(cls) -> list[str]:
        """Get a list of supported language names."""
        return [lang.value for lang in cls._plugins.keys()]


def get_plugin(language: LanguageType = LanguageType.SOLIDITY, version: str = "0.8.20") -> LanguagePlugin:
    """Convenience function to get a language plugin."""
    return LanguagePluginRegistry.get_plugin(language, version)
