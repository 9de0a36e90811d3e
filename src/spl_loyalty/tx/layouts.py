"""
Account layouts for the SPL Token and Token-2022 programs.

The base mint and token account layouts come from the SDK; Token-2022
extension data that follows them is left undecoded. Sizes cover what the
deployment path needs to allocate.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional

from solders.pubkey import Pubkey
from spl.token._layouts import ACCOUNT_LAYOUT, MINT_LAYOUT

MINT_SIZE = 82
ACCOUNT_SIZE = 165
MULTISIG_SIZE = 355
ACCOUNT_TYPE_SIZE = 1

# TLV header of every extension entry
TYPE_SIZE = 2
LENGTH_SIZE = 2

METADATA_POINTER_SIZE = 64


class ExtensionType(IntEnum):
    """Token-2022 extension type tags used by this service."""

    METADATA_POINTER = 18
    TOKEN_METADATA = 19


_FIXED_EXTENSION_SIZES = {
    ExtensionType.METADATA_POINTER: METADATA_POINTER_SIZE,
}


class AccountState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    FROZEN = 2


@dataclass
class MintInfo:
    """Decoded base layout of a mint account."""
    address: Optional[Pubkey]
    mint_authority: Optional[Pubkey]
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority: Optional[Pubkey]


@dataclass
class TokenAccountInfo:
    """Decoded base layout of a token account."""
    mint: Pubkey
    owner: Pubkey
    amount: int
    delegate: Optional[Pubkey]
    state: AccountState
    delegated_amount: int
    close_authority: Optional[Pubkey]


def get_mint_len(extensions: Iterable[ExtensionType] = ()) -> int:
    """
    Size of a mint account carrying the given fixed-size extensions.

    Args:
        extensions: Extension types to reserve space for

    Returns:
        Account size in bytes

    Raises:
        ValueError: If an extension has no fixed size
    """
    extensions = list(extensions)
    if not extensions:
        return MINT_SIZE

    size = ACCOUNT_SIZE + ACCOUNT_TYPE_SIZE
    for ext in extensions:
        if ext not in _FIXED_EXTENSION_SIZES:
            raise ValueError(f"Extension {ExtensionType(ext).name} has no fixed size")
        size += TYPE_SIZE + LENGTH_SIZE + _FIXED_EXTENSION_SIZES[ext]

    # A mint must never be mistaken for a multisig account
    if size == MULTISIG_SIZE:
        size += TYPE_SIZE
    return size


def _option_pubkey(option: int, key: bytes) -> Optional[Pubkey]:
    return Pubkey.from_bytes(key) if option else None


def unpack_mint(data: bytes, address: Optional[Pubkey] = None) -> MintInfo:
    """
    Decode the base mint layout.

    Raises:
        ValueError: If the data is shorter than a mint
    """
    if len(data) < MINT_LAYOUT.sizeof():
        raise ValueError(f"Invalid mint size: {len(data)}")

    decoded = MINT_LAYOUT.parse(data)
    return MintInfo(
        address=address,
        mint_authority=_option_pubkey(decoded.mint_authority_option, decoded.mint_authority),
        supply=decoded.supply,
        decimals=decoded.decimals,
        is_initialized=decoded.is_initialized != 0,
        freeze_authority=_option_pubkey(decoded.freeze_authority_option, decoded.freeze_authority),
    )


def unpack_token_account(data: bytes) -> TokenAccountInfo:
    """
    Decode the base token account layout.

    Raises:
        ValueError: If the data is shorter than a token account
    """
    if len(data) < ACCOUNT_LAYOUT.sizeof():
        raise ValueError(f"Invalid token account size: {len(data)}")

    decoded = ACCOUNT_LAYOUT.parse(data)
    return TokenAccountInfo(
        mint=Pubkey.from_bytes(decoded.mint),
        owner=Pubkey.from_bytes(decoded.owner),
        amount=decoded.amount,
        delegate=_option_pubkey(decoded.delegate_option, decoded.delegate),
        state=AccountState(decoded.state),
        delegated_amount=decoded.delegated_amount,
        close_authority=_option_pubkey(decoded.close_authority_option, decoded.close_authority),
    )


__all__ = [
    "MINT_SIZE",
    "ACCOUNT_SIZE",
    "ACCOUNT_TYPE_SIZE",
    "TYPE_SIZE",
    "LENGTH_SIZE",
    "METADATA_POINTER_SIZE",
    "ExtensionType",
    "AccountState",
    "MintInfo",
    "TokenAccountInfo",
    "get_mint_len",
    "unpack_mint",
    "unpack_token_account",
]
