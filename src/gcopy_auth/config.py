"""Application settings loaded from environment variables."""

from pathlib import Path
from typing import Optional

from pydantic import ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """GCopy auth settings."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(8080, description="Bind port")

    data_dir: Path = Field(Path("data"), description="Directory for the SQLite database")
    database_url: Optional[str] = Field(
        None, description="SQLAlchemy URL, defaults to SQLite under data_dir"
    )

    # SMTP
    smtp_host: Optional[str] = Field(None, description="SMTP server hostname")
    smtp_port: int = Field(587, description="SMTP server port (587=STARTTLS, 465=SSL)")
    smtp_username: Optional[str] = Field(None, description="SMTP username")
    smtp_password: Optional[str] = Field(None, description="SMTP password")
    smtp_ssl: bool = Field(False, description="Use implicit SSL instead of STARTTLS")
    smtp_sender: Optional[str] = Field(None, description="From address, defaults to smtp_username")
    smtp_sender_name: str = Field("GCopy", description="From display name")

    # Lifetimes
    email_code_ttl_seconds: int = Field(300, description="Validity of a mailed code")
    share_code_ttl_seconds: int = Field(300, description="Window in which a share code can be joined")
    session_max_age_seconds: int = Field(30 * 24 * 60 * 60, description="Default session cookie lifetime")
    share_code_session_max_age_seconds: int = Field(
        8 * 60 * 60, description="Session lifetime after a share code login"
    )

    # Session cookie
    session_cookie_name: str = Field("user_session", description="Cookie carrying the session token")
    session_cookie_secure: bool = Field(False, description="Mark the session cookie Secure")

    cleanup_interval_seconds: int = Field(3600, description="Interval of the expired session purge")

    @model_validator(mode="after")
    def _default_database_url(self) -> "Settings":
        if not self.database_url:
            self.database_url = f"sqlite:///{self.data_dir / 'gcopy.db'}"
        return self

    @property
    def sender_address(self) -> Optional[str]:
        """Address used in the From header."""
        return self.smtp_sender or self.smtp_username


settings = Settings()
