"""
Configuration management for The Blacklist backend.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings

BACKEND_DIR = Path(__file__).resolve().parent
DEFAULT_FALLBACK_DATA_PATH = BACKEND_DIR / "data" / "fallback_dataset.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Firestore (service account credentials)
    firebase_project_id: str = ""
    firebase_client_email: str = ""
    firebase_private_key: str = ""  # Escaped "\n" sequences are accepted
    collection_name: str = "blacklist"

    # Cache TTLs in seconds
    master_cache_ttl: int = 1800  # 30 minutes
    derived_cache_ttl: int = 1800  # Should not exceed master_cache_ttl
    fallback_cache_ttl: int = 60  # Views built from fallback data retry the store quickly
    admin_cache_ttl: int = 900  # 15 minutes
    cache_max_size: int = 1000
    admin_cache_max_size: int = 10000  # One entry per item plus the list and stats
    cache_cleanup_interval: int = 300

    # Narrow version1/{status} lookup
    status_lookup_limit: int = 5

    # Static fallback dataset (served on quota exhaustion)
    fallback_data_path: str = ""

    # Admin endpoints
    admin_api_token: str = ""

    # Site
    site_title: str = "The Blacklist"
    cors_origins: str = "http://localhost:3006,http://127.0.0.1:3006"

    # Server
    host: str = "0.0.0.0"
    port: int = 3006

    # Debug
    debug: bool = False
    log_level: str = "INFO"
    environment: Literal["development", "staging", "production"] = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def firestore_configured(self) -> bool:
        """True when service account credentials are present."""
        return bool(
            self.firebase_project_id
            and self.firebase_client_email
            and self.firebase_private_key
        )

    @property
    def firebase_private_key_pem(self) -> str:
        """Private key with escaped newlines restored."""
        return self.firebase_private_key.replace("\\n", "\n")

    @property
    def resolved_fallback_data_path(self) -> Path:
        """Configured fallback dataset path, or the bundled dataset."""
        if self.fallback_data_path:
            return Path(self.fallback_data_path).expanduser()
        return DEFAULT_FALLBACK_DATA_PATH

    def validate_required_settings(self) -> List[str]:
        """
        Validate required settings for production.
        Returns list of missing/invalid setting names.
        """
        missing = []

        if not self.firebase_project_id:
            missing.append("FIREBASE_PROJECT_ID")
        if not self.firebase_client_email:
            missing.append("FIREBASE_CLIENT_EMAIL")
        if not self.firebase_private_key:
            missing.append("FIREBASE_PRIVATE_KEY")

        if self.environment == "production" and not self.admin_api_token:
            missing.append("ADMIN_API_TOKEN")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
