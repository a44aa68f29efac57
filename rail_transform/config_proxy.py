"""
Configuration management for rail-transform.

Settings are resolved from the Django ``RAIL_TRANSFORM`` setting first and
fall back to the library defaults.
"""

from typing import Any

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .defaults import LIBRARY_DEFAULTS

SETTINGS_NAME = "RAIL_TRANSFORM"


class SettingsProxy:
    """
    Proxy for accessing rail-transform settings with hierarchical resolution.

    Settings are resolved in the following order:
    1. Global Django settings (RAIL_TRANSFORM)
    2. Library defaults (LIBRARY_DEFAULTS)
    """

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value using dot notation, with caching.

        Args:
            key: Setting key to retrieve, e.g. "transform_settings.log_denials"
            default: Default value if setting is not found

        Returns:
            The setting value from the highest priority source
        """
        if key in self._cache:
            return self._cache[key]

        value = self._get_django_setting(key)
        if value is None:
            value = self._get_nested_value(LIBRARY_DEFAULTS, key)
        if value is None:
            value = default

        self._cache[key] = value
        return value

    def _get_django_setting(self, key: str) -> Any:
        # Library defaults apply until the project configures Django
        if not settings.configured:
            return None
        return self._get_nested_value(getattr(settings, SETTINGS_NAME, {}), key)

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        if not isinstance(data, dict):
            return None

        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def clear_cache(self) -> None:
        """Clear the settings cache."""
        self._cache.clear()


# Global settings proxy instance
settings_proxy = SettingsProxy()


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting value using the hierarchical settings system.

    Args:
        key: Setting key to retrieve
        default: Default value if setting is not found
    """
    return settings_proxy.get(key, default)


@receiver(setting_changed)
def _clear_settings_cache(sender, setting: str, **kwargs) -> None:
    if setting == SETTINGS_NAME:
        settings_proxy.clear_cache()
