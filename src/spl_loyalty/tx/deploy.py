"""
Token deployment instruction sequence.

A loyalty token is a Token-2022 mint whose metadata lives inside the mint
account itself. The five instructions below are submitted as one atomic
transaction signed by the payer and the new mint keypair.
"""

from __future__ import annotations
import logging
from typing import List

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account
from spl.token.constants import TOKEN_2022_PROGRAM_ID
from spl.token.instructions import initialize_mint
from spl.token.models import InitializeMintParams

from .layouts import ExtensionType, get_mint_len
from .metadata import (
    TokenMetadata,
    initialize_metadata_pointer,
    initialize_token_metadata,
    update_token_metadata_field,
)

logger = logging.getLogger(__name__)


def mint_space() -> int:
    """Space allocated up front: the mint plus its metadata pointer."""
    return get_mint_len([ExtensionType.METADATA_POINTER])


def rent_space(metadata: TokenMetadata) -> int:
    """
    Space the mint grows to once the metadata is written.

    The program reallocates the account during metadata initialization, so
    the lamports have to cover this size even though only mint_space() is
    allocated by create_account.
    """
    return mint_space() + metadata.extension_len


def build_deploy_instructions(
    payer: Pubkey,
    metadata: TokenMetadata,
    lamports: int,
    decimals: int,
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> List[Instruction]:
    """
    Build the ordered instructions that register a new token type.

    The payer becomes mint authority, freeze authority, metadata pointer
    authority and metadata update authority.

    Args:
        payer: Custodial wallet funding the mint account
        metadata: Metadata to attach; metadata.mint is the new mint address
        lamports: Rent-exempt balance for rent_space(metadata)
        decimals: Decimals of the mint
        program_id: Token-2022 program id

    Returns:
        Instructions in submission order
    """
    mint = metadata.mint
    update_authority = metadata.update_authority or payer

    instructions = [
        create_account(
            CreateAccountParams(
                from_pubkey=payer,
                to_pubkey=mint,
                lamports=lamports,
                space=mint_space(),
                owner=program_id,
            )
        ),
        # the pointer has to be in place before the mint is initialized
        initialize_metadata_pointer(mint, payer, mint, program_id),
        initialize_mint(
            InitializeMintParams(
                decimals=decimals,
                program_id=program_id,
                mint=mint,
                mint_authority=payer,
                freeze_authority=payer,
            )
        ),
        initialize_token_metadata(
            metadata=mint,
            update_authority=update_authority,
            mint=mint,
            mint_authority=payer,
            name=metadata.name,
            symbol=metadata.symbol,
            uri=metadata.uri,
            program_id=program_id,
        ),
    ]

    if metadata.additional_metadata:
        key, value = metadata.additional_metadata[0]
        instructions.append(
            update_token_metadata_field(mint, update_authority, key, value, program_id)
        )

    logger.debug(f"Built {len(instructions)} deploy instructions for mint {mint}")
    return instructions


__all__ = [
    "mint_space",
    "rent_space",
    "build_deploy_instructions",
]
