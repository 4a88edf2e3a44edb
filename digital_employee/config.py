"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from datetime import date
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # IMAP (monitored mailbox)
    imap_host: str
    imap_port: int
    imap_user: str
    imap_password: str
    imap_tls: bool = True
    imap_folder: str = "INBOX"

    # SMTP (replies)
    smtp_host: str
    smtp_port: int
    smtp_user: str = ""  # Falls back to imap_user
    smtp_password: str = ""  # Falls back to imap_password
    smtp_secure: bool = False  # Implicit TLS (port 465); STARTTLS otherwise
    sender_name: str = "Digital Employee"

    # Request matching
    similarity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    subject_prefix: str = "DIGITAL EMPLOYEE :"

    # Only consider messages received on or after this date
    start_date: date | None = None

    # Poller timing
    reconnect_delay_seconds: float = 30.0
    idle_timeout_seconds: float = 29 * 60
    poll_interval_seconds: float = 60.0  # Used when the server has no IDLE
    flush_interval_seconds: float = 5.0  # Wait while replies are in flight
    processed_cache_size: int = 10_000

    # Gemini (statement analysis)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Reports
    currency: str = "AED"

    # HTTP (health and stats)
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True  # False for colored dev output

    @property
    def smtp_login(self) -> tuple[str, str]:
        """SMTP credentials, defaulting to the mailbox account."""
        return (self.smtp_user or self.imap_user, self.smtp_password or self.imap_password)

    @property
    def sender_address(self) -> str:
        """Address replies are sent from."""
        return self.smtp_user or self.imap_user


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
