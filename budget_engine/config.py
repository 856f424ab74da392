"""Engine configuration using Pydantic Settings.

Environment Variable Strategy:
- Every field has a local default so the engine runs with no environment
- Matching thresholds live in the optional YAML file (see services/matching.py)
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_comma_list(value: str | list[str] | None, default: list[str]) -> list[str]:
    """Parse comma-separated string into list."""
    if value is None:
        return default
    if isinstance(value, list):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(
        default="development", validation_alias=AliasChoices("ENVIRONMENT", "ENV")
    )
    debug: bool = False
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # YAML file with a `matching:` section; unset = built-in defaults
    matching_config_path: str | None = Field(default=None, validation_alias="MATCHING_CONFIG_PATH")

    # Statement text keywords, overridable for banks with unusual wording
    # Env format: DEBIT_KEYWORDS="debit,withdrawal,payment"
    debit_keywords_str: str | None = Field(default=None, validation_alias="DEBIT_KEYWORDS")
    credit_keywords_str: str | None = Field(default=None, validation_alias="CREDIT_KEYWORDS")

    @property
    def debit_keywords(self) -> list[str]:
        """Keywords that make an unsigned statement amount negative."""
        return parse_comma_list(self.debit_keywords_str, ["debit", "withdrawal", "payment"])

    @property
    def credit_keywords(self) -> list[str]:
        """Keywords that make an unsigned statement amount positive."""
        return parse_comma_list(self.credit_keywords_str, ["credit", "deposit", "income"])


settings = Settings()
