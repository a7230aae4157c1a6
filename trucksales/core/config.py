from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    app_name: str = "Truck Sales"
    env: str = "dev"

    # DATABASE
    database_url: str = "sqlite:///./trucksales.db"
    db_echo: bool = False

    # LOGGING
    log_level: str = "INFO"

    # DISPLAY SETTINGS
    settings_file: str = "./display_settings.json"

    # LEDGER POLICY
    block_delete_with_history: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, value: str | None) -> str:
        if value is None:
            return "INFO"
        cleaned = str(value).strip().upper()
        if cleaned not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return cleaned

    @field_validator("database_url", "settings_file", mode="before")
    @classmethod
    def strip_paths(cls, value: str) -> str:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TRUCKSALES_",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
