"""
Transaction building for the loyalty token service.

Provides Token-2022 account layouts, metadata extension instructions and the
token deployment instruction sequence.
"""

from .layouts import (
    ExtensionType, MintInfo, TokenAccountInfo,
    get_mint_len, unpack_mint, unpack_token_account,
)
from .metadata import (
    MetadataField, TokenMetadata,
    initialize_metadata_pointer, initialize_token_metadata, update_token_metadata_field,
)
from .deploy import build_deploy_instructions, mint_space, rent_space

__all__ = [
    "ExtensionType",
    "MintInfo",
    "TokenAccountInfo",
    "get_mint_len",
    "unpack_mint",
    "unpack_token_account",
    "MetadataField",
    "TokenMetadata",
    "initialize_metadata_pointer",
    "initialize_token_metadata",
    "update_token_metadata_field",
    "build_deploy_instructions",
    "mint_space",
    "rent_space",
]
