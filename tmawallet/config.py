from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Strip trailing slashes so endpoint paths can be appended safely."""

        super().model_post_init(__context)

        if self.wallet_endpoint.endswith("/"):
            object.__setattr__(self, "wallet_endpoint", self.wallet_endpoint.rstrip("/"))

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Wallet API
    wallet_endpoint: str = Field(
        default="http://127.0.0.1:8000/tmawallet",
        description="Base URL of the wallet API (serves /wallet/access and /wallet/address)",
        validation_alias=AliasChoices("wallet_endpoint", "tmawallet_endpoint"),
    )
    project_public_token: str = Field(default="", description="Public token identifying the host project")
    host_session_token: str = Field(
        default="",
        description="Session token issued by the host platform (CLI use only; the core takes it explicitly)",
    )
    request_timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")

    # Chain connection
    rpc_url: str = Field(default="", description="JSON-RPC endpoint of the chain connection")

    # Local storage for the CLI
    storage_path: Path = Field(
        default=Path.home() / ".tmawallet" / "storage.json",
        description="JSON file backing the CLI key-value storage",
    )

    @property
    def has_project_token(self) -> bool:
        return bool(self.project_public_token)

    @property
    def has_rpc(self) -> bool:
        return bool(self.rpc_url)


# Global settings instance
settings = Settings()
