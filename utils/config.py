"""
Configuration loading for the ARSV Treasury client.

Values come from three layers, highest precedence first: environment
variables (``.env`` is loaded by the entry points), an optional
``config.yaml`` at the project root, and the defaults below, which point at
the contracts deployed on Sepolia.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import yaml  # type: ignore
from pydantic import BaseModel, field_validator

SEPOLIA_CHAIN_ID = 11155111
DEFAULT_DECIMALS = 4

ARSV_TOKEN_ADDRESS = "0xd53702873A346bF73b1De9232ab9Ba3Bcf232dAC"
USDT_TOKEN_ADDRESS = "0x7bc4B2fFcEaa7a612057DCed6f20f37e0575c1F8"
ARSV_TREASURY_ADDRESS = "0x81e2872E29b3e3f991fa62767bCdD1BA7cc8fe29"

DEFAULT_RPC_URL = "https://ethereum-sepolia-rpc.publicnode.com"

# variable de entorno -> campo de Settings
_ENV_FIELDS = {
    "RPC_URLS": "rpc_urls",
    "PRIVATE_KEY": "private_key",
    "ARSV_TOKEN_ADDRESS": "arsv_token_address",
    "USDT_TOKEN_ADDRESS": "usdt_token_address",
    "ARSV_TREASURY_ADDRESS": "treasury_address",
    "CHAIN_ID": "chain_id",
    "NETWORK_NAME": "network_name",
    "TOKEN_DECIMALS": "decimals",
    "RPC_TIMEOUT_SECS": "request_timeout_secs",
    "RPC_RETRIES": "rpc_retries",
    "RPC_RETRY_BACKOFF_SECS": "retry_backoff_secs",
    "RECEIPT_TIMEOUT_SECS": "receipt_timeout_secs",
    "EVENT_POLL_INTERVAL_SECS": "event_poll_interval_secs",
    "GAS_LIMIT_MULTIPLIER": "gas_limit_multiplier",
    "PRIORITY_FEE_GWEI": "priority_fee_gwei",
    "MAX_FEE_MULTIPLIER": "max_fee_multiplier",
    "CHECK_DECIMALS": "check_decimals",
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load application configuration from ``config.yaml``.

    :param path: Explicit file to read. Defaults to ``config.yaml`` next to
        ``main.py``.
    :returns: A dictionary representing the configuration. Missing files
        quietly yield an empty dictionary.
    """
    if path is None:
        base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
        path = os.path.join(base_dir, "config.yaml")
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


class Settings(BaseModel):
    rpc_urls: List[str] = [DEFAULT_RPC_URL]
    private_key: str = ""
    arsv_token_address: str = ARSV_TOKEN_ADDRESS
    usdt_token_address: str = USDT_TOKEN_ADDRESS
    treasury_address: str = ARSV_TREASURY_ADDRESS
    chain_id: int = SEPOLIA_CHAIN_ID
    network_name: str = "Sepolia"
    decimals: int = DEFAULT_DECIMALS

    request_timeout_secs: float = 30.0
    rpc_retries: int = 3
    retry_backoff_secs: float = 0.4
    receipt_timeout_secs: int = 180
    event_poll_interval_secs: float = 4.0

    gas_limit_multiplier: float = 1.20
    priority_fee_gwei: float = 1.5
    max_fee_multiplier: float = 2.0

    # compara decimals() on-chain con `decimals` al conectar (solo avisa)
    check_decimals: bool = True

    @field_validator("rpc_urls", mode="before")
    @classmethod
    def _split_rpc_urls(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            urls = [str(u).strip().rstrip("/") for u in v if str(u).strip()]
            return urls or [DEFAULT_RPC_URL]
        return v

    @field_validator("decimals")
    @classmethod
    def _check_decimals(cls, v: int) -> int:
        if v < 0 or v > 77:
            raise ValueError(f"decimals fuera de rango: {v}")
        return v

    @property
    def has_wallet(self) -> bool:
        return bool(self.private_key.strip())

    @classmethod
    def from_env(
        cls,
        overrides: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
    ) -> "Settings":
        """Build settings from ``config.yaml``, the environment and ``overrides``."""
        data: Dict[str, Any] = {}
        for key, value in load_config(config_path).items():
            if key in cls.model_fields:
                data[key] = value
        for env_name, field in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is not None and raw != "":
                data[field] = raw
        # compatibilidad con un único RPC
        if "rpc_urls" not in data and os.getenv("RPC_URL"):
            data["rpc_urls"] = os.getenv("RPC_URL")
        if overrides:
            data.update(overrides)
        return cls.model_validate(data)

    def __repr__(self) -> str:
        # nunca volcar la clave privada a logs
        shown = self.model_dump(exclude={"private_key"})
        return f"Settings({shown}, private_key={'***' if self.has_wallet else ''!r})"

    __str__ = __repr__
