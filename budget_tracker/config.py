import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Default to local SQLite; any SQLAlchemy URL works
    database_url: str = "sqlite:///budget_tracker.db"
    default_currency: str = "CZK"
    statement_legacy_encoding: str = "cp1250"
    response_delay_seconds: float = 0.5  # artificial chat delay, 0 disables it
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        default_currency=os.getenv("DEFAULT_CURRENCY", Settings.default_currency).upper(),
        statement_legacy_encoding=os.getenv("STATEMENT_LEGACY_ENCODING", Settings.statement_legacy_encoding),
        response_delay_seconds=float(os.getenv("RESPONSE_DELAY_SECONDS", Settings.response_delay_seconds)),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
    )
