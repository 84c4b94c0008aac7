"""
Settings Factory

Factory to create settings instances without using singleton pattern.
Provides methods to create individual setting objects as needed.
"""

from fosdecisions.utils.settings.core import (
    AppSettings,
    DatabaseSettings,
    OpenAISettings,
    OpenRouterSettings,
)


class SettingsFactory:
    """Factory for creating settings instances"""

    @staticmethod
    def create_openai_settings() -> OpenAISettings:
        """Create OpenAI settings instance"""
        return OpenAISettings()

    @staticmethod
    def create_openrouter_settings() -> OpenRouterSettings:
        """Create OpenRouter settings instance"""
        return OpenRouterSettings()

    @staticmethod
    def create_database_settings() -> DatabaseSettings:
        """Create database settings instance"""
        return DatabaseSettings()

    @staticmethod
    def create_app_settings() -> AppSettings:
        """Create app settings instance"""
        return AppSettings()


# Convenience factory instance for easy importing
settings_factory = SettingsFactory()
