from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./shortlinks.db"

    # Domain
    BASE_URL: str = "http://localhost:8000"

    # Geolocation
    GEO_LOOKUP_URL: str = "http://api.hostip.info/get_xml.php"
    GEO_LOOKUP_TIMEOUT: float = 2.0  # seconds
    GEO_CACHE_SIZE: int = 10000
    GEO_ENRICH_IN_BACKGROUND: bool = True

    # Short codes
    PROFANITY_WORDS_FILE: Optional[str] = None  # bundled list when unset
    MAX_ALLOCATION_ATTEMPTS: int = 20

    # Statistics
    DEFAULT_STATS_DAYS: int = 15
    MAX_STATS_DAYS: int = 365
    CHART_API_URL: str = "https://chart.googleapis.com/chart"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
