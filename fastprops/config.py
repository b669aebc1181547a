"""
Configuration management for fastprops.

This module uses Pydantic's BaseSettings to manage configuration
through environment variables. Settings are read once at startup and
treated as read-only afterwards.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INDEX_DEFINITION_RULES_PATH = "/oak:index/damAssetLucene/indexRules/dam:Asset/properties"
DEFAULT_SERVICE_NAME = "oak-index-definition-reader"


class Settings(BaseSettings):
    """
    Application settings.

    These settings are loaded from environment variables.
    """

    # Content store
    DB_URL: str = "sqlite+pysqlite:///data/fastprops.db"

    # Service identity used to read the index definitions
    SERVICE_NAME: str = DEFAULT_SERVICE_NAME

    # Index definition rules paths, inspected in order.
    # Set as JSON in the environment, e.g. '["/oak:index/a/indexRules/x/properties"]'
    INDEX_DEFINITION_PATHS: list[str] = [DEFAULT_INDEX_DEFINITION_RULES_PATH]

    # Boolean property on an index rule that marks it as fast
    FAST_FLAG: str = "ordered"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        env_prefix="FASTPROPS_",
    )


settings = Settings()
