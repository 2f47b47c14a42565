import logging
import os

from pydantic_settings import BaseSettings

_DEFAULT_RATE_TABLES_PATH = os.path.join(
    os.path.dirname(__file__), "data", "rate_tables.json"
)


class Settings(BaseSettings):
    # Quote integrity gates (gross margin %, not fractions)
    MARGIN_BLOCK_BELOW_PCT: float = 40.0
    MARGIN_WARN_BELOW_PCT: float = 45.0

    # Auto-calc suggestions on manually priced line items
    EXPEDITED_SURCHARGE_PCT: float = 0.20   # applied to BIM modeling + add-ons, not travel
    BELOW_FLOOR_RATE_FRACTION: float = 0.50  # fraction of the architecture rate
    UPTEAM_MULTIPLIER_FALLBACK: float = 0.65  # cost/price ratio when arch cost is unknown

    # Rate table snapshot exported from the configuration store
    RATE_TABLES_PATH: str = _DEFAULT_RATE_TABLES_PATH

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()


def configure_logging(level: str = None) -> None:
    """Apply LOG_LEVEL to the package logger. Handlers stay with the caller."""
    logging.getLogger("scan2plan").setLevel((level or settings.LOG_LEVEL).upper())
