"""
Ledger client.

Thin async wrapper over the solana-py RPC client. Every call either returns a
decoded value or raises a ServiceError; raw SDK exceptions never leave this
module.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.models import TokenAccountOpts, TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from spl.token.constants import TOKEN_2022_PROGRAM_ID
from spl.token.instructions import create_associated_token_account, get_associated_token_address

from .config import ServiceConfig
from .runtime.errors import AccountNotFoundError, LedgerError, ValidationError, wrap_ledger_error
from .tx.layouts import MintInfo, TokenAccountInfo, unpack_mint, unpack_token_account

logger = logging.getLogger(__name__)


class LedgerClient:
    """
    Async ledger access for the loyalty token service.

    Owns the underlying AsyncClient unless one was passed in.
    """

    def __init__(
        self,
        config: ServiceConfig,
        client: Optional[AsyncClient] = None,
        program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
    ):
        """
        Initialize the ledger client.

        Args:
            config: Service configuration (endpoint, commitments, timeout)
            client: Optional pre-built AsyncClient
            program_id: Token program all token calls target
        """
        self.config = config
        self.commitment = Commitment(config.commitment)
        self.program_id = program_id
        self._client = client or AsyncClient(
            config.rpc_endpoint, commitment=self.commitment, timeout=config.timeout
        )
        self._owns_client = client is None

    @property
    def client(self) -> AsyncClient:
        return self._client

    async def close(self) -> None:
        """Close the RPC client if owned by this ledger client."""
        if self._owns_client:
            await self._client.close()

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_balance(self, address: Pubkey) -> int:
        """Lamport balance of an account."""
        try:
            resp = await self._client.get_balance(address, commitment=self.commitment)
        except Exception as e:
            raise wrap_ledger_error(e, f"Failed to get balance of {address}")
        return resp.value

    async def minimum_balance_for_rent_exemption(self, size: int) -> int:
        """Lamports an account of the given size needs to be rent exempt."""
        try:
            resp = await self._client.get_minimum_balance_for_rent_exemption(size, commitment=self.commitment)
        except Exception as e:
            raise wrap_ledger_error(e, "Failed to get rent exemption minimum")
        return resp.value

    async def account_exists(self, address: Pubkey) -> bool:
        try:
            resp = await self._client.get_account_info(address, commitment=self.commitment)
        except Exception as e:
            raise wrap_ledger_error(e, f"Failed to get account {address}")
        return resp.value is not None

    async def get_mint(self, mint: Pubkey) -> MintInfo:
        """
        Fetch and decode a mint account.

        Raises:
            AccountNotFoundError: If the mint does not exist
            ValidationError: If the account is not owned by the token program
        """
        try:
            resp = await self._client.get_account_info(mint, commitment=self.commitment)
        except Exception as e:
            raise wrap_ledger_error(e, f"Failed to get mint {mint}")

        account = resp.value
        if account is None:
            raise AccountNotFoundError(f"Mint not found: {mint}", details={"mint": str(mint)})
        if account.owner != self.program_id:
            raise ValidationError(
                f"Invalid mint owner: {account.owner}",
                details={"mint": str(mint), "owner": str(account.owner)},
            )
        try:
            return unpack_mint(bytes(account.data), mint)
        except ValueError as e:
            raise ValidationError(f"Invalid mint account {mint}: {e}", cause=e)

    async def get_token_accounts_by_owner(self, owner: Pubkey) -> List[Tuple[Pubkey, TokenAccountInfo]]:
        """All token accounts of the token program owned by an address."""
        try:
            resp = await self._client.get_token_accounts_by_owner(
                owner, TokenAccountOpts(program_id=self.program_id), commitment=self.commitment
            )
            return [
                (keyed.pubkey, unpack_token_account(bytes(keyed.account.data)))
                for keyed in resp.value
            ]
        except Exception as e:
            raise wrap_ledger_error(e, f"Failed to get token accounts of {owner}")

    # =========================================================================
    # Submission
    # =========================================================================

    async def send_and_confirm(self, instructions: Sequence[Instruction], signers: Sequence[Keypair]) -> Signature:
        """
        Sign, submit and confirm one transaction.

        The first signer pays the fee.

        Args:
            instructions: Instructions in execution order
            signers: Keypairs that must sign, payer first

        Returns:
            Transaction signature
        """
        if not signers:
            raise ValidationError("At least one signer is required")

        unique: Dict[Pubkey, Keypair] = {}
        for signer in signers:
            unique.setdefault(signer.pubkey(), signer)

        try:
            blockhash_resp = await self._client.get_latest_blockhash(self.commitment)
            latest = blockhash_resp.value
            tx = Transaction.new_signed_with_payer(
                list(instructions), signers[0].pubkey(), list(unique.values()), latest.blockhash
            )
            resp = await self._client.send_raw_transaction(
                bytes(tx), opts=TxOpts(skip_confirmation=True, preflight_commitment=self.commitment)
            )
            signature = resp.value
        except Exception as e:
            raise wrap_ledger_error(e, "Failed to send transaction")

        logger.debug(f"Sent transaction {signature} with {len(instructions)} instructions")
        await self.confirm(signature, self.config.commitment, latest.last_valid_block_height)
        return signature

    async def confirm(
        self,
        signature: Signature,
        commitment: Optional[str] = None,
        last_valid_block_height: Optional[int] = None,
    ) -> None:
        """
        Wait until a transaction reaches the given commitment.

        Raises:
            LedgerError: If confirmation fails or the transaction errored
        """
        level = Commitment(commitment or self.config.commitment)
        try:
            resp = await self._client.confirm_transaction(
                signature, level, last_valid_block_height=last_valid_block_height
            )
        except Exception as e:
            raise wrap_ledger_error(e, f"Failed to confirm transaction {signature}")

        statuses = resp.value or []
        if statuses and statuses[0] is not None and statuses[0].err is not None:
            raise LedgerError(
                f"Transaction {signature} failed: {statuses[0].err}",
                details={"signature": str(signature)},
            )

    async def get_or_create_associated_token_account(
        self, payer: Keypair, mint: Pubkey, owner: Pubkey
    ) -> Pubkey:
        """
        Return the owner's associated token account, creating it if absent.

        The payer funds the account creation.
        """
        address = get_associated_token_address(owner, mint, token_program_id=self.program_id)
        if await self.account_exists(address):
            return address

        ix = create_associated_token_account(payer.pubkey(), owner, mint, token_program_id=self.program_id)
        try:
            await self.send_and_confirm([ix], [payer])
        except LedgerError:
            # another request may have created it first
            if await self.account_exists(address):
                return address
            raise

        logger.debug(f"Created associated token account {address} for {owner}")
        return address


__all__ = ["LedgerClient"]
