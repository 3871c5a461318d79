"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rtwallet.models import NetworkType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RTWALLET_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Node access (regtest defaults)
    rpc_url: str = "http://127.0.0.1:18443"
    rpc_user: str = "alice"
    rpc_password: str = "password"
    rpc_timeout: float = Field(default=30.0, gt=0)

    # Network used for address validation and script-to-address reconstruction
    network: NetworkType = NetworkType.REGTEST

    miner_wallet: str = Field(default="Miner", min_length=1)
    trader_wallet: str = Field(default="Trader", min_length=1)
    payment_amount: Decimal = Field(
        default=Decimal("20"), gt=0, decimal_places=8, description="Amount in BTC"
    )

    output_path: Path = Path("../out.txt")

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
