"""
Service configuration.

ServiceConfig collects the cluster endpoint, commitment levels, custodial
credential location and token deployment defaults. Every field can be set
through an SPL_LOYALTY_-prefixed environment variable; factories cover the
two well-known clusters.

Example:
    ```python
    config = ServiceConfig.devnet(wallet_file_path="/var/lib/loyalty/solWallet.json")
    config = ServiceConfig.from_env()
    ```
"""

from __future__ import annotations
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVNET_ENDPOINT = "https://api.devnet.solana.com"
MAINNET_ENDPOINT = "https://api.mainnet-beta.solana.com"

DEFAULT_WALLET_FILE = "solWallet.json"
DEFAULT_DECIMALS = 9
DEFAULT_DESCRIPTION = "Only Possible On Solana"

ENV_PREFIX = "SPL_LOYALTY_"

_COMMITMENTS = ("processed", "confirmed", "finalized")


class ServiceConfig(BaseSettings):
    """
    Configuration for LoyaltyTokenService.

    All settings can be overridden via SPL_LOYALTY_* environment variables.
    Setting main_net without an endpoint selects the mainnet endpoint.
    """

    rpc_endpoint: str = Field(default=DEVNET_ENDPOINT, description="JSON-RPC endpoint")
    main_net: bool = Field(default=False, description="Whether the endpoint is mainnet")
    commitment: str = Field(default="confirmed", description="Commitment for reads and sends")
    finality: str = Field(
        default="finalized",
        description="Commitment awaited after mint, burn and transfer",
    )
    wallet_file_path: str = Field(default=DEFAULT_WALLET_FILE, description="Custodial credential file")
    decimals: int = Field(default=DEFAULT_DECIMALS, ge=0, le=18, description="Decimals of deployed mints")
    token_description: str = Field(default=DEFAULT_DESCRIPTION)
    explorer_url: str = Field(default="https://solana.fm/tx/{signature}")
    timeout: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
    )

    @field_validator("rpc_endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"RPC endpoint must be http(s): {v}")
        return v.rstrip("/")

    @field_validator("commitment", "finality")
    @classmethod
    def validate_commitment(cls, v: str) -> str:
        v = v.lower()
        if v not in _COMMITMENTS:
            raise ValueError(f"Commitment must be one of {', '.join(_COMMITMENTS)}")
        return v

    @model_validator(mode="after")
    def select_mainnet_endpoint(self) -> ServiceConfig:
        if self.main_net and "rpc_endpoint" not in self.model_fields_set:
            self.rpc_endpoint = MAINNET_ENDPOINT
        return self

    @property
    def cluster(self) -> str:
        """Explorer cluster name."""
        return "mainnet-alpha" if self.main_net else "devnet-solana"

    def explorer_link(self, signature: Any) -> str:
        """Explorer URL for a transaction signature."""
        return f"{self.explorer_url.format(signature=signature)}?cluster={self.cluster}"

    # =========================================================================
    # Factory methods
    # =========================================================================

    @classmethod
    def devnet(cls, **overrides: Any) -> ServiceConfig:
        """Configuration for the public devnet cluster."""
        return cls(**{"rpc_endpoint": DEVNET_ENDPOINT, "main_net": False, **overrides})

    @classmethod
    def mainnet(cls, **overrides: Any) -> ServiceConfig:
        """Configuration for the public mainnet-beta cluster."""
        return cls(**{"rpc_endpoint": MAINNET_ENDPOINT, "main_net": True, **overrides})

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Configuration read from the environment alone."""
        return cls()


__all__ = [
    "ServiceConfig",
    "DEVNET_ENDPOINT",
    "MAINNET_ENDPOINT",
    "ENV_PREFIX",
]
