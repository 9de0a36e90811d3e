"""
Token metadata builders for Token-2022 mints.

Provides the metadata model and the three extension instructions the Solana
SDK does not ship: metadata pointer initialization, token metadata
initialization and field update.

Instruction layouts follow the Token-2022 program and the
spl-token-metadata-interface (8-byte sha256 discriminators, Borsh payloads).
"""

from __future__ import annotations
import hashlib
from enum import IntEnum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_2022_PROGRAM_ID

from ..codec import BinaryWriter
from .layouts import LENGTH_SIZE, TYPE_SIZE

# Token-2022 instruction tags
METADATA_POINTER_EXTENSION = 39
METADATA_POINTER_INITIALIZE = 0

_NONE_PUBKEY = bytes(32)


def _discriminator(name: str) -> bytes:
    return hashlib.sha256(f"spl_token_metadata_interface:{name}".encode()).digest()[:8]


INITIALIZE_DISCRIMINATOR = _discriminator("initialize_account")
UPDATE_FIELD_DISCRIMINATOR = _discriminator("updating_field")


class MetadataField(IntEnum):
    """Field selector of the update_field instruction."""
    NAME = 0
    SYMBOL = 1
    URI = 2
    KEY = 3


class TokenMetadata(BaseModel):
    """
    Metadata stored inside a Token-2022 mint.

    additional_metadata holds arbitrary (key, value) pairs written with
    update_field after initialization.
    """
    update_authority: Optional[Pubkey] = Field(default=None, alias="updateAuthority")
    mint: Pubkey
    name: str
    symbol: str
    uri: str = ""
    additional_metadata: List[Tuple[str, str]] = Field(default_factory=list, alias="additionalMetadata")

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
    }

    @field_validator("name", "symbol")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    def pack(self) -> bytes:
        """Serialize in the on-chain TLV value layout."""
        writer = BinaryWriter()
        writer.bytes(bytes(self.update_authority) if self.update_authority else _NONE_PUBKEY)
        writer.bytes(bytes(self.mint))
        writer.string(self.name).string(self.symbol).string(self.uri)
        writer.u32le(len(self.additional_metadata))
        for key, value in self.additional_metadata:
            writer.string(key).string(value)
        return writer.to_bytes()

    @property
    def packed_len(self) -> int:
        return len(self.pack())

    @property
    def extension_len(self) -> int:
        """Bytes the metadata occupies in the mint, including its TLV header."""
        return TYPE_SIZE + LENGTH_SIZE + self.packed_len


def initialize_metadata_pointer(
    mint: Pubkey,
    authority: Optional[Pubkey],
    metadata_address: Optional[Pubkey],
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    """
    Create an InitializeMetadataPointer instruction.

    Must run before the mint itself is initialized.

    Args:
        mint: Mint account to initialize the extension on
        authority: Authority allowed to change the metadata address
        metadata_address: Account holding the metadata (the mint itself here)
        program_id: Token-2022 program id
    """
    data = (
        BinaryWriter()
        .u8(METADATA_POINTER_EXTENSION)
        .u8(METADATA_POINTER_INITIALIZE)
        .bytes(bytes(authority) if authority else _NONE_PUBKEY)
        .bytes(bytes(metadata_address) if metadata_address else _NONE_PUBKEY)
        .to_bytes()
    )
    return Instruction(program_id, data, [AccountMeta(mint, is_signer=False, is_writable=True)])


def initialize_token_metadata(
    metadata: Pubkey,
    update_authority: Pubkey,
    mint: Pubkey,
    mint_authority: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    """
    Create a token metadata Initialize instruction.

    Args:
        metadata: Account holding the metadata
        update_authority: Authority that can update the metadata
        mint: Mint the metadata describes
        mint_authority: Mint authority, must sign
        name: Token name
        symbol: Token symbol
        uri: Token URI (image or JSON document)
        program_id: Program implementing the metadata interface
    """
    data = (
        BinaryWriter()
        .bytes(INITIALIZE_DISCRIMINATOR)
        .string(name)
        .string(symbol)
        .string(uri)
        .to_bytes()
    )
    accounts = [
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(update_authority, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(mint_authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, data, accounts)


def update_token_metadata_field(
    metadata: Pubkey,
    update_authority: Pubkey,
    field: Union[MetadataField, str],
    value: str,
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    """
    Create a token metadata UpdateField instruction.

    A plain string field names a custom key in additional_metadata.
    """
    writer = BinaryWriter().bytes(UPDATE_FIELD_DISCRIMINATOR)
    if isinstance(field, MetadataField):
        if field == MetadataField.KEY:
            raise ValueError("Custom fields are passed by key name")
        writer.u8(field)
    else:
        writer.u8(MetadataField.KEY).string(field)
    writer.string(value)

    accounts = [
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(update_authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, writer.to_bytes(), accounts)


__all__ = [
    "MetadataField",
    "TokenMetadata",
    "INITIALIZE_DISCRIMINATOR",
    "UPDATE_FIELD_DISCRIMINATOR",
    "initialize_metadata_pointer",
    "initialize_token_metadata",
    "update_token_metadata_field",
]
