from pydantic_settings import SettingsConfigDict, BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server settings
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    server_reload: bool = False

    # CORS settings
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Cache settings
    cache_maxsize: int = 10000
    cache_ttl_seconds: int = 24 * 60 * 60  # 24 hours

    # Fetching settings
    fetch_timeout: float = 15
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    fetch_accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
    fetch_accept_language: str = "en-US,en;q=0.9"
    fetch_follow_redirects: bool = True

    # Rendering settings (headless Chromium)
    render_headless: bool = True
    render_navigation_timeout_ms: int = 15000
    render_settle_delay_ms: int = 2000

    # Enrichment budgets in seconds
    enrichment_timeout: float = 10
    image_race_timeout: float = 7

    # Social post platform
    social_domains: List[str] = ["twitter.com", "x.com"]
    social_mirror_host: str = "nitter.net"

    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env file if it exists
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields in env file
    )


# Create a single instance of settings
settings = Settings()
