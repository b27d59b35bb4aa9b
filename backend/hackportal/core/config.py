from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "TechFrontier Registration Portal"
    ENVIRONMENT: str = "development"  # development, production, testing
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the file handler

    # ==========================================
    # Storage
    # ==========================================
    STORE_BACKEND: str = "json"  # "json" (file-based) or "sql" (SQLite/PostgreSQL)
    DATA_FILE: str = "data/portal.json"
    DATABASE_URL: str = "sqlite+aiosqlite:///./portal.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 10  # seconds to wait for a pooled connection

    # Upper bound for any single store call (seconds)
    STORE_TIMEOUT_SECONDS: float = 10.0

    # ==========================================
    # Catalog seeding
    # ==========================================
    SEED_FILE: str = "data.json"
    SEED_DEFAULTS: bool = True

    # ==========================================
    # Team directory (auto-fill)
    # ==========================================
    TEAMS_CSV_PATH: str = "teams.csv"

    # ==========================================
    # Live updates
    # ==========================================
    HEARTBEAT_INTERVAL_SECONDS: float = 30.0
    OBSERVER_QUEUE_SIZE: int = 100

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "*"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Get CORS origins as a list"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate limiting
    # ==========================================
    RATE_LIMIT_ENABLED: Optional[bool] = None  # None = enabled in production only
    RATE_LIMIT: str = "1000 per 15 minutes"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def rate_limit_active(self) -> bool:
        if self.RATE_LIMIT_ENABLED is not None:
            return self.RATE_LIMIT_ENABLED
        return self.ENVIRONMENT == "production"

    @property
    def data_file_path(self) -> Path:
        return Path(self.DATA_FILE)

    @property
    def seed_file_path(self) -> Path:
        return Path(self.SEED_FILE)

    @property
    def teams_csv_path(self) -> Path:
        return Path(self.TEAMS_CSV_PATH)


# Create settings instance
settings = Settings()
