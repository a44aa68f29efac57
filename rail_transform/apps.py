"""
Django app configuration for rail-transform.
"""

import logging

from django.apps import AppConfig as BaseAppConfig

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for rail-transform."""

    name = "rail_transform"
    verbose_name = "Rail Transform"
    label = "rail_transform"

    def ready(self):
        """Validate library settings once Django has loaded."""
        from django.conf import settings as django_settings

        from .config_proxy import SETTINGS_NAME, settings_proxy
        from .defaults import LIBRARY_DEFAULTS

        settings_proxy.clear_cache()
        configured = getattr(django_settings, SETTINGS_NAME, {})
        if not isinstance(configured, dict):
            logger.warning(f"{SETTINGS_NAME} must be a dict, ignoring it")
            return

        for section, values in configured.items():
            known = LIBRARY_DEFAULTS.get(section)
            if known is None:
                logger.warning("Unknown %s section '%s'", SETTINGS_NAME, section)
                continue
            for key in values if isinstance(values, dict) else ():
                if key not in known:
                    logger.warning(
                        "Unknown %s setting '%s.%s'", SETTINGS_NAME, section, key
                    )
        logger.debug("Rail Transform initialized")
