import os
from pathlib import Path
from typing import Iterable, TypeVar
from pydantic_settings import BaseSettings, SettingsConfigDict
from loguru import logger

T = TypeVar('T', bound='ABCBaseSettings')


DEFAULT_ENV_PATH = Path(".envs")
DEFAULT_ENV_FILE_CANDIDATES = [
    DEFAULT_ENV_PATH.joinpath("local.env"),
    DEFAULT_ENV_PATH.joinpath("dev.env"),
]


def find_env_file_if_exists() -> Path | None:
    """First of .envs/local.env and .envs/dev.env that exists; None means process env only."""
    for env_path in DEFAULT_ENV_FILE_CANDIDATES:
        if env_path.exists():
            logger.info(f"Found env file: {env_path}")
            return env_path
    logger.debug("Loading settings from System Environment")
    return None


def first_non_empty_env(names: Iterable[str]) -> str | None:
    """Return the first environment variable in ``names`` holding a non-blank value."""
    for name in names:
        value = os.environ.get(name)
        if value and value.strip():
            return value.strip()
    return None


def blank_to_none(value):
    """Strip string values and map blank strings to None."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ABCBaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=find_env_file_if_exists(),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @classmethod
    def from_env_file(cls: type[T], env_path: str | Path) -> T:
        """
        Build the settings from an explicit env file instead of the default lookup.

        Raises:
            FileNotFoundError: If ``env_path`` does not exist
        """
        env_path = Path(env_path)
        if not env_path.exists():
            raise FileNotFoundError(f"Env file {env_path} does not exist.")

        class EnvFileSettings(cls):
            model_config = SettingsConfigDict(
                **{**cls.model_config, "env_file": env_path},
            )

        return EnvFileSettings()  # type: ignore[return-value]
