from functools import lru_cache
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "crowley-tracker"
    app_version: str = "2.0.0"
    env: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000

    storage_backend: str = "json"
    data_dir: Path = Path("data")
    uploads_dir: Path = Path("uploads")
    database_url: str = "sqlite+pysqlite:///./data/tracker.db"

    session_ttl_days: int = 7
    session_sweep_interval_seconds: int = 3600
    password_min_length: int = 6

    max_upload_bytes: int = 10 * 1024 * 1024
    max_json_body_bytes: int = 1_000_000
    ai_enabled: bool = True

    rate_limit_login: str = "5/minute"
    rate_limit_global: str = "100/minute"
    rate_limit_sensitive: str = "10/minute"

    cors_origins: str = "http://localhost:3000"
    cors_allow_methods: str = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
    cors_allow_headers: str = "Authorization,Content-Type"
    cors_max_age: int = 86400
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in {"json", "memory", "sql"}:
            raise ValueError("STORAGE_BACKEND must be one of: json, memory, sql")
        return backend

    @property
    def is_test(self) -> bool:
        return self.env.lower() == "test"

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 3600

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def allowed_methods(self) -> list[str]:
        return [
            m.strip().upper() for m in self.cors_allow_methods.split(",") if m.strip()
        ]

    @property
    def allowed_headers(self) -> list[str]:
        return [h.strip() for h in self.cors_allow_headers.split(",") if h.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
