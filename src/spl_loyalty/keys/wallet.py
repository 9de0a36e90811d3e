"""
User wallet helpers.

User wallets are not held by the service: create_wallet() hands the secret to
the caller, and later operations receive it back as a base58 string.
"""

from __future__ import annotations
import logging

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..models import CreatedWallet
from ..runtime.errors import InvalidAddressError, InvalidSecretKeyError

logger = logging.getLogger(__name__)


def create_wallet() -> CreatedWallet:
    """
    Generate a new user wallet.

    Returns:
        Base58 address and base58-encoded 64-byte secret key
    """
    keypair = Keypair()
    private_key = base58.b58encode(bytes(keypair)).decode("ascii")
    logger.debug(f"Generated wallet {keypair.pubkey()}")
    return CreatedWallet(private_key=private_key, address=str(keypair.pubkey()))


def keypair_from_secret(secret: str, operation: str) -> Keypair:
    """
    Decode a base58 secret key into a keypair.

    Args:
        secret: Base58-encoded 64-byte secret key
        operation: Name of the calling operation, used in the error message

    Raises:
        InvalidSecretKeyError: If the secret does not decode into a keypair
    """
    try:
        return Keypair.from_bytes(base58.b58decode(secret))
    except (ValueError, TypeError) as e:
        raise InvalidSecretKeyError(operation, cause=e)


def parse_address(address: str) -> Pubkey:
    """
    Decode a base58 public key.

    Raises:
        InvalidAddressError: If the address is not a valid public key
    """
    if isinstance(address, Pubkey):
        return address
    try:
        return Pubkey.from_string(address)
    except (ValueError, TypeError) as e:
        raise InvalidAddressError(str(address), cause=e)


__all__ = [
    "create_wallet",
    "keypair_from_secret",
    "parse_address",
]
