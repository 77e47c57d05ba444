"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Ledger (EVM JSON-RPC)
    rpc_url: str = "https://rpc.ankr.com/filecoin_testnet"
    registry_address: str = "0xdbe926f96e2250d7C4901f118225566Dc654B969"
    hypercert_address: str = "0x822f17a9a5eecfd66dbaff7946a8071c265d1d07"
    funding_token_address: str = "0xb3042734b608a1B16e9e86B374A3f3e389B4cDf0"
    private_key: Optional[str] = None  # read-only gateway when unset
    transaction_timeout_seconds: float = 120.0

    # Content-addressed storage (IPFS)
    ipfs_gateway_url: str = "https://w3s.link"
    ipfs_api_url: str = "http://127.0.0.1:5001"

    # Reconciliation
    page_size: int = 100
    max_pages: int = 20
    max_concurrency: int = 16
    resolution_timeout_seconds: float = 20.0
    certificate_default_units: int = 1000  # 1000 units == 100%

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Cairn Reconciliation Service"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
