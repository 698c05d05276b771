"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Environment
    environment: str = "dev"
    log_level: str = "INFO"
    service_name: str = "s3-gateway"
    
    # CORS (comma-separated list, "*" allows all)
    cors_origins: str = "*"
    
    # S3-compatible object storage
    s3_endpoint: Optional[str] = None  # e.g., https://object.example.com
    s3_region: str = "auto"
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_bucket: str = "s3-gateway"
    s3_presign_expiration_minutes: int = 10  # Presigned GET URL lifetime
    s3_page_size: int = 1000  # MaxKeys per list_objects_v2 page
    s3_stream_chunk_size: int = 64 * 1024  # Bytes per streamed chunk
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    @property
    def cors_origin_list(self) -> list[str]:
        """Parsed CORS origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
