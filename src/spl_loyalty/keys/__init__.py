"""
Key management for the loyalty token service.

Provides custodial credential storage and user wallet helpers.
"""

from .keystore import KeyStore, MemoryKeyStore, FileKeyStore
from .wallet import create_wallet, keypair_from_secret, parse_address

__all__ = [
    "KeyStore",
    "MemoryKeyStore",
    "FileKeyStore",
    "create_wallet",
    "keypair_from_secret",
    "parse_address",
]
