from typing import ClassVar

from pydantic import AliasChoices, Field, field_validator, model_validator
from .base import ABCBaseSettings, blank_to_none, first_non_empty_env

OPENAI_API_KEY_ENV_NAMES = ("OPENAI_API_KEY", "OPENAI_KEY")
OPENROUTER_API_KEY_ENV_NAMES = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_KEY",
    "NEXT_PUBLIC_OPENROUTER_API_KEY",
)


class ProviderSettings(ABCBaseSettings):
    """Settings shared by OpenAI-compatible chat/embedding providers"""
    api_key_env_names: ClassVar[tuple[str, ...]] = ()

    api_key: str | None = Field(default=None, description="Provider API key")
    model: str | None = Field(default=None, description="Default chat model")
    base_url: str | None = Field(default=None, description="Custom API base URL")

    @field_validator("api_key", "model", "base_url", mode="before")
    @classmethod
    def _strip_blank(cls, value):
        return blank_to_none(value)

    @model_validator(mode="after")
    def _resolve_api_key_aliases(self):
        # AliasChoices stops at the first alias present, even when it is blank
        if not self.api_key:
            self.api_key = first_non_empty_env(self.api_key_env_names)
        return self

    @property
    def default_headers(self) -> dict[str, str]:
        """Extra headers sent with every request"""
        return {}


class OpenAISettings(ProviderSettings):
    """OpenAI API settings"""
    api_key_env_names: ClassVar[tuple[str, ...]] = OPENAI_API_KEY_ENV_NAMES

    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(*OPENAI_API_KEY_ENV_NAMES),
        description="OpenAI API key (OPENAI_API_KEY or OPENAI_KEY)",
    )

    model_config = ABCBaseSettings.model_config.copy()
    model_config["env_prefix"] = "OPENAI_"
    model_config["populate_by_name"] = True


class OpenRouterSettings(ProviderSettings):
    """OpenRouter API settings"""
    api_key_env_names: ClassVar[tuple[str, ...]] = OPENROUTER_API_KEY_ENV_NAMES

    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(*OPENROUTER_API_KEY_ENV_NAMES),
        description="OpenRouter API key",
    )
    base_url: str | None = Field(default="https://openrouter.ai/api/v1", description="OpenRouter API base URL")
    app_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("NEXT_PUBLIC_APP_URL", "OPENROUTER_APP_URL"),
        description="Application URL sent as the HTTP-Referer attribution header",
    )
    app_title: str = Field(default="FOS Decisions Pipeline", description="Application name sent as X-Title")

    model_config = ABCBaseSettings.model_config.copy()
    model_config["env_prefix"] = "OPENROUTER_"
    model_config["populate_by_name"] = True

    @property
    def default_headers(self) -> dict[str, str]:
        return {"HTTP-Referer": self.app_url, "X-Title": self.app_title}


class DatabaseSettings(ABCBaseSettings):
    """Relational database settings for the ingest stage"""
    url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL"),
        description="SQLAlchemy/libpq connection string",
    )
    sslmode: str | None = Field(default="require", description="libpq sslmode for PostgreSQL connections")
    echo: bool = Field(default=False, description="Echo SQL statements")

    model_config = ABCBaseSettings.model_config.copy()
    model_config["env_prefix"] = "DATABASE_"
    model_config["populate_by_name"] = True

    @field_validator("url", "sslmode", mode="before")
    @classmethod
    def _strip_blank(cls, value):
        return blank_to_none(value)

    @property
    def connection_string(self) -> str:
        """Get the connection string with the scheme SQLAlchemy expects"""
        if not self.url:
            raise ValueError("DATABASE_URL is required for ingestion")
        if self.url.startswith("postgres://"):
            return "postgresql://" + self.url[len("postgres://"):]
        return self.url

    @property
    def connect_args(self) -> dict[str, str]:
        """Driver arguments; sslmode only applies to PostgreSQL"""
        if self.sslmode and self.connection_string.startswith("postgresql"):
            return {"sslmode": self.sslmode}
        return {}


class AppSettings(ABCBaseSettings):
    """Application settings"""
    data_root: str = Field(default="data", description="Root directory holding dataset folders")
    dataset: str = Field(default="fos", description="Dataset folder name under data_root")
    search_url: str = Field(
        default="https://www.financial-ombudsman.org.uk/decisions-case-studies/ombudsman-decisions",
        description="Ombudsman decisions search page",
    )

    model_config = ABCBaseSettings.model_config.copy()
    model_config["env_prefix"] = "FOS_"
