"""Application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from history_bot.bot.state import DEFAULT_ADDRESS_ENTITIES


class BotSettings(BaseModel):
    """Turn dispatch configuration."""

    name: str = "PixelDrHistoryBot"

    # Top intent must score strictly above this to be handled locally
    intent_threshold: float = 0.75

    # Response payload format: "json" (escaped, structured) or "legacy"
    wire_format: str = "json"

    # Entity names that carry the address for AMTSRememberAddress
    address_entities: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ADDRESS_ENTITIES)
    )

    # Names used to look up collaborators in the services registry
    recognizer_name: str = "PixelDrHistoryBot_General"
    knowledge_base_name: str = "PixelDrHistoryBot"


class LuisSettings(BaseModel):
    """LUIS intent recognizer configuration."""

    app_id: str = ""
    subscription_key: str = ""
    region: str = "westus"
    # Overrides the region-derived host when set
    endpoint: str = ""
    staging: bool = False
    verbose: bool = True
    timezone_offset: float = 0.0
    timeout: float = 10.0


class QnAMakerSettings(BaseModel):
    """QnA Maker knowledge base configuration."""

    knowledge_base_id: str = ""
    endpoint_key: str = ""
    host: str = ""  # e.g. https://pixeldr-qna.azurewebsites.net/qnamaker
    top: int = 1
    score_threshold: float = 0.3
    timeout: float = 10.0


class Settings(BaseSettings):
    """Application settings.

    Loaded from:
    1. Environment variables (HISTORY_BOT_*)
    2. configs/{environment}.yaml
    3. configs/default.yaml
    """

    model_config = SettingsConfigDict(
        env_prefix="HISTORY_BOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    debug: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 3978

    # Subsystems
    bot: BotSettings = Field(default_factory=BotSettings)
    luis: LuisSettings = Field(default_factory=LuisSettings)
    qna: QnAMakerSettings = Field(default_factory=QnAMakerSettings)

    @property
    def luis_configured(self) -> bool:
        """Whether LUIS credentials are present."""
        return bool(self.luis.app_id and self.luis.subscription_key)

    @property
    def qna_configured(self) -> bool:
        """Whether QnA Maker credentials are present."""
        return bool(
            self.qna.knowledge_base_id and self.qna.endpoint_key and self.qna.host
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings object loaded from config files and environment.
    """
    import os
    from dynaconf import Dynaconf

    config_dir = Path("configs")
    env = os.getenv("HISTORY_BOT_ENV", "development")

    settings_files = []
    if (config_dir / "default.yaml").exists():
        settings_files.append(str(config_dir / "default.yaml"))
    if (config_dir / f"{env}.yaml").exists():
        settings_files.append(str(config_dir / f"{env}.yaml"))

    dynaconf = Dynaconf(
        envvar_prefix="HISTORY_BOT",
        settings_files=settings_files,
        load_dotenv=True,
    )

    config_dict: dict[str, Any] = {}
    for key in dynaconf.keys():
        if not key.startswith("_"):
            config_dict[key.lower()] = dynaconf[key]

    config_dict["environment"] = env

    return Settings(**config_dict)


def validate_production_settings(settings: Settings) -> list[str]:
    """Validate settings for production readiness.

    Args:
        settings: Application settings to validate.

    Returns:
        List of validation error messages (empty if all valid).
    """
    errors: list[str] = []

    if settings.bot.wire_format not in ("json", "legacy"):
        errors.append(
            f"HISTORY_BOT_BOT__WIRE_FORMAT must be 'json' or 'legacy', "
            f"got {settings.bot.wire_format!r}"
        )

    # Only enforce credentials in production
    if settings.environment not in ("production", "staging", "prod"):
        return errors

    if not settings.luis.app_id:
        errors.append("HISTORY_BOT_LUIS__APP_ID must be set in production")
    if not settings.luis.subscription_key:
        errors.append("HISTORY_BOT_LUIS__SUBSCRIPTION_KEY must be set in production")

    if not settings.qna.knowledge_base_id:
        errors.append("HISTORY_BOT_QNA__KNOWLEDGE_BASE_ID must be set in production")
    if not settings.qna.endpoint_key:
        errors.append("HISTORY_BOT_QNA__ENDPOINT_KEY must be set in production")
    if not settings.qna.host:
        errors.append("HISTORY_BOT_QNA__HOST must be set in production")

    return errors


def require_valid_settings() -> Settings:
    """Get settings and raise if validation fails.

    Raises:
        ValueError: If settings are invalid.

    Returns:
        Validated settings.
    """
    settings = get_settings()
    errors = validate_production_settings(settings)

    if errors:
        error_list = "\n  - ".join(errors)
        raise ValueError(
            f"Configuration errors:\n  - {error_list}"
        )

    return settings
