"""Application configuration management."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Demo users as "user:pass,user:pass". Falls back to admin:admin123 when empty.
    demo_users: str = ""
    admin_username: str = "admin"

    # Firecrawl API Configuration
    firecrawl_api_key: str = ""  # Required - set via FIRECRAWL_API_KEY env var
    firecrawl_api_url: str = "https://api.firecrawl.dev"

    # Session Configuration
    session_secret: str = ""  # Random per-process secret when unset
    session_ttl_seconds: int = 8 * 60 * 60
    session_cookie_name: str = "session_token"

    # Upstream timing
    request_timeout: float = 60.0
    agent_poll_interval: float = 2.0
    agent_timeout: float = 300.0
    job_timeout: float = 300.0  # crawl and extract job waits

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Frontend / CLI Configuration
    api_url: str = "http://localhost:8000"
    export_dir: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def client_timeout(self) -> float:
        """Read timeout for clients of this API; must outlast the agent wait."""
        return max(self.agent_timeout, self.job_timeout) + self.request_timeout


# Global settings instance
settings = Settings()
