"""Environment settings."""

import os
from typing import Optional


class Settings:
    """Application settings from environment variables."""

    # Environment variable → (section, field) in ExporterConfig
    OVERRIDES = {
        "BOOKMARKS_DB": ("store", "path"),
        "EXPORTER_PORT": ("server", "port"),
        "EXPORTER_USER_AGENT": ("probe", "user_agent"),
        "LOG_LEVEL": ("logging", "level"),
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set
            required: Whether the variable is required

        Returns:
            str: Environment variable value

        Raises:
            ValueError: If required variable is not set
        """
        value = os.getenv(key, default)
        if required and not value:
            raise ValueError(f"Required environment variable not set: {key}")
        return value or ""

    @staticmethod
    def overrides() -> dict:
        """
        Collect config overrides from the environment.

        Returns:
            dict: Nested {section: {field: value}} for every variable that is set
        """
        result = {}
        for var, (section, key) in Settings.OVERRIDES.items():
            value = Settings.get(var)
            if value:
                result.setdefault(section, {})[key] = value
        return result
