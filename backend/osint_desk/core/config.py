from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    project_name: str = "osint-desk"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./osint_desk.db"

    admin_api_key: str = "dev-admin-key"

    cors_origins: list[str] = [
        "http://localhost:5000",
        "http://127.0.0.1:5000",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # outbound provider calls
    provider_timeout_seconds: float = 10.0
    provider_max_retries: int = 1
    rdap_base_url: str = "https://rdap.org"
    dns_lifetime_seconds: float = 3.0

    search_history_default_limit: int = 50
    search_history_max_limit: int = 500

    report_author: str = "OSINT Desk"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("provider_max_retries")
    @classmethod
    def cap_retries(cls, v: int) -> int:
        # one retry at most; a hung provider must surface, not loop
        return max(0, min(v, 1))


settings = Settings()
