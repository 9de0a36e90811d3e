"""
SPL Loyalty - custodial token service

This package wraps the Solana SDK (solana-py and solders) to run a
loyalty-points program: custodial wallet, Token-2022 token deployment with
embedded metadata, minting, burning, balances and transfers.
"""

from .config import ServiceConfig, DEVNET_ENDPOINT, MAINNET_ENDPOINT
from .service import LoyaltyTokenService
from .ledger import LedgerClient
from .models import CreatedWallet, TokenBalance, TokenInstance
from .runtime.errors import *
from .keys import FileKeyStore, MemoryKeyStore, KeyStore, create_wallet
from .tx import TokenMetadata

__version__ = "0.1.0"
__all__ = [
    # Service
    "LoyaltyTokenService",
    "LedgerClient",
    "ServiceConfig",
    "DEVNET_ENDPOINT",
    "MAINNET_ENDPOINT",

    # Models
    "CreatedWallet",
    "TokenBalance",
    "TokenInstance",
    "TokenMetadata",

    # Keys
    "KeyStore",
    "FileKeyStore",
    "MemoryKeyStore",
    "create_wallet",

    # Errors
    "ServiceError",
    "ValidationError",
    "InvalidSecretKeyError",
    "InvalidAddressError",
    "CredentialError",
    "AccountNotFoundError",
    "LedgerError",
    "wrap_ledger_error",
]
