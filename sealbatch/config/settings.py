"""Pydantic Settings for the batch runner.

All environment variables use the SEALBATCH_ prefix.
Example: SEALBATCH_RPC_URL=https://fullnode.testnet.sui.io:443,
SEALBATCH_UPLOAD_MAX_ATTEMPTS=20
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from sealbatch.config.constants import (
    DEFAULT_IMAGE_URL,
    PACKAGE_ID,
    PUBLISHER_URLS,
    SERVICE_AMOUNT,
    SERVICE_DURATION_MS,
    SUI_TESTNET_RPC_URL,
)


class BatchSettings(BaseSettings):
    """Runner configuration validated from environment variables."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Ledger
    rpc_url: str = SUI_TESTNET_RPC_URL
    package_id: str = PACKAGE_ID
    gas_budget: int = Field(default=10_000_000, ge=1)
    connection_timeout_seconds: float = Field(default=10.0, gt=0)

    # Storage publishers
    publisher_urls: list[str] = Field(default_factory=lambda: list(PUBLISHER_URLS), min_length=1)
    blob_epochs: int = Field(default=1, ge=1)
    upload_max_attempts: int = Field(default=15, ge=1)
    upload_retry_delay_seconds: float = Field(default=5.0, ge=0)

    # Subscription service parameters
    service_amount: int = Field(default=SERVICE_AMOUNT, ge=0)
    service_duration_ms: int = Field(default=SERVICE_DURATION_MS, ge=0)

    # Image payload
    default_image_url: str = DEFAULT_IMAGE_URL
    local_image_path: str = "image.jpg"
    image_probe_timeout_seconds: float = Field(default=5.0, gt=0)

    # Files
    proxy_file: str = "proxies.txt"
    wallet_file: str = "wallets.txt"
    private_key_file: str = "private_key.txt"
    failed_wallets_file: str = "failed_wallets.txt"
    schedule_config_file: str = "schedule-config.json"
    lock_file: str = ".sealbatch.lock"

    model_config = {"env_prefix": "SEALBATCH_"}
