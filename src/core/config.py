import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Pricing. When unset the built-in table (src/modules/pricing/table.py) is used.
    pricing_table_path: str | None = None
    # Raise PriceNotDefinedError for an unknown (course, grade category) pair instead of billing 0.
    strict_pricing: bool = False

    # Payment history views
    include_materials_in_history: bool = False
    history_months: int = 12

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept any case ("debug", "Info") and reject unknown level names."""
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in logging.getLevelNamesMapping():
                raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("history_months")
    @classmethod
    def validate_history_months(cls, v: int) -> int:
        if v < 1:
            raise ValueError("history_months must be at least 1")
        return v


settings = Settings()
