"""
CYOA Stats — Configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """All settings read from env / .env file."""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./cyoa_stats.db",
        description="Async SQLAlchemy DB URL",
    )

    # Hashing — mandatory, the service refuses to start without it
    pepper: str = Field(default="", description="Secret pepper appended to every hashed value")

    # Ingestion
    client_ip_header: str = Field(
        default="cf-connecting-ip",
        description="Header carrying the visitor IP set by the edge proxy",
    )
    log_max_bytes: int = Field(default=200 * 1024, description="Ceiling for POST /log payloads")
    log_csp_max_bytes: int = Field(default=50 * 1024, description="Ceiling for GET /log-csp payloads")

    # Reporting
    count_cache_seconds: int = Field(default=600)
    time_on_page_cap_ms: int = Field(default=10_800_000, description="Per-row cap when summing time on page")

    # Admin listing routes (unauthenticated — keep off in production)
    admin_enabled: bool = Field(default=False)

    # Email / SMTP (Gmail)
    smtp_email: str = Field(default="", description="Gmail address for sending registration emails")
    smtp_app_password: str = Field(default="", description="Gmail App Password (16 chars, no spaces)")
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)

    # Registration email checks
    registration_check_mx: bool = Field(default=False, description="Require an MX record for the email domain")
    email_blocklist: str = Field(default="", description="Comma-separated addresses or domains to refuse")

    @property
    def blocked_emails(self) -> set[str]:
        """Normalized blocklist entries (addresses or bare domains)."""
        return {
            entry.strip().lower()
            for entry in self.email_blocklist.split(",")
            if entry.strip()
        }

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
