from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"
DEFAULT_ACCOUNTS_FILE = Path(__file__).resolve().parent.parent / "accounts.json"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Local account storage (JSON file, one record per provider account)
    ACCOUNTS_FILE: str = str(DEFAULT_ACCOUNTS_FILE)

    # Provider API endpoints
    SENDX_API_BASE_URL: str = "https://api.sendx.io/api/v1/rest"
    SENDPULSE_API_BASE_URL: str = "https://api.sendpulse.com"
    GETRESPONSE_API_BASE_URL: str = "https://api.getresponse.com/v3"
    MAGIC_LINK_API_BASE_URL: str = "https://api.magic.link"
    PROVIDER_REQUEST_TIMEOUT: float = 30.0

    # SendPulse access tokens are refreshed this many seconds before expiry
    SENDPULSE_TOKEN_EXPIRY_BUFFER_SECONDS: int = 60

    # =================================================================
    # JOB SETTINGS
    # =================================================================
    DELETION_PAGE_SIZE: int = 100
    DELETION_JOB_RETENTION_SECONDS: float = 60.0
    DELETION_JOB_ABANDONED_RETENTION_SECONDS: float = 3600.0
    ELAPSED_TICK_SECONDS: float = 1.0
    MAX_IMPORT_DELAY_SECONDS: float = 3600.0

    # CORS (the web UI runs on the Vite dev server locally)
    CORS_ALLOWED_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def accounts_path(self) -> Path:
        """Resolve the accounts file path."""
        return Path(self.ACCOUNTS_FILE).expanduser()

    def get_provider_base_urls(self) -> dict[str, str]:
        """Base URL per provider key."""
        return {
            "sendx": self.SENDX_API_BASE_URL.rstrip("/"),
            "sendpulse": self.SENDPULSE_API_BASE_URL.rstrip("/"),
            "getresponse": self.GETRESPONSE_API_BASE_URL.rstrip("/"),
            "magic_link": self.MAGIC_LINK_API_BASE_URL.rstrip("/"),
        }

    def get_job_config(self) -> dict:
        """
        Get background job configuration.
        Development keeps the same values; tests override individual keys.
        """
        return {
            "deletion_page_size": self.DELETION_PAGE_SIZE,
            "deletion_retention_seconds": self.DELETION_JOB_RETENTION_SECONDS,
            "deletion_abandoned_retention_seconds": self.DELETION_JOB_ABANDONED_RETENTION_SECONDS,
            "elapsed_tick_seconds": self.ELAPSED_TICK_SECONDS,
        }


settings = Settings()
