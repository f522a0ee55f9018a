"""Application configuration using pydantic settings with structured sections."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    backend: Literal["sql", "memory"] = "sql"
    url: str = Field(default="sqlite+aiosqlite:///./paycore.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me-please", min_length=8)
    algorithm: str = "HS256"
    session_token_expire_minutes: int = 60 * 8
    signed_url_ttl_seconds: int = 300
    # Lets the superuser ``admin`` role read proofs without a session token.
    allow_admin_token_bypass: bool = True


class StorageSettings(BaseModel):
    root_dir: Path = Field(default=Path("storage/objects"))
    bucket: str = "freshmart-payment-proofs"
    region: str = "us-east-1"
    public_base_url: Optional[str] = None
    proof_prefix: str = "payment-proofs"
    quarantine_prefix: str = "quarantine/isolation"


class UploadSettings(BaseModel):
    min_size_bytes: int = 1024
    max_size_bytes: int = 5 * 1024 * 1024
    max_filename_length: int = 255
    min_width: int = 100
    min_height: int = 100
    thumbnail_size: int = 120
    retention_days: int = 30


class GatewaySettings(BaseModel):
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    attempt_timeout_seconds: Optional[float] = 10.0
    latency_scale: float = 1.0
    failure_rate_scale: float = 1.0
    card_decline_rate: float = 0.1
    verification_approval_rate: float = 0.8
    disabled: list[str] = Field(default_factory=list)


class WalletSettings(BaseModel):
    account_id: str = "store"
    opening_balance: Decimal = Decimal("0")


class SchedulerSettings(BaseModel):
    enabled: bool = False
    default_max_retries: int = 3
    default_retry_interval_hours: int = 24
    process_interval_seconds: int = 3600


class RetentionSettings(BaseModel):
    enabled: bool = False
    cleanup_interval_hours: int = 24


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Payment Settlement Server"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    storage: StorageSettings = StorageSettings()
    uploads: UploadSettings = UploadSettings()
    gateways: GatewaySettings = GatewaySettings()
    wallet: WalletSettings = WalletSettings()
    scheduler: SchedulerSettings = SchedulerSettings()
    retention: RetentionSettings = RetentionSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def storage_base_url(self) -> str:
        if self.storage.public_base_url:
            return self.storage.public_base_url.rstrip("/")
        return f"https://{self.storage.bucket}.s3.{self.storage.region}.amazonaws.com"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
