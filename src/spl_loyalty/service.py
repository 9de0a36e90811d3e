"""
Loyalty Token Service.

Custodial wallet, token deployment, minting, burning, balances and transfers
for a loyalty-points program on Solana Token-2022.

The service wallet pays every fee and is mint authority of the tokens it
deploys. User wallets are never stored; their secret keys are passed in per
call where the user has to sign (burn, transfer).

Example:
    ```python
    async with LoyaltyTokenService(ServiceConfig.devnet()) as service:
        mint = await service.deploy_token_contract("Points", "PTS", "https://example.com/pts.png")
        user = service.create_wallet()
        await service.mint_tokens_to_user(mint, user.address, 100)
        await service.transfer_tokens(mint, other_address, 25, user.private_key)
    ```
"""

from __future__ import annotations
import logging
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.instructions import burn, mint_to, transfer_checked
from spl.token.models import BurnParams, MintToParams, TransferCheckedParams

from .config import ServiceConfig
from .keys.keystore import FileKeyStore, KeyStore
from .keys.wallet import create_wallet, keypair_from_secret, parse_address
from .ledger import LedgerClient
from .models import CreatedWallet, TokenBalance, TokenInstance
from .runtime.amounts import Amount, to_base_units
from .runtime.errors import ValidationError, wrap_ledger_error
from .tx.deploy import build_deploy_instructions, rent_space
from .tx.metadata import TokenMetadata

logger = logging.getLogger(__name__)

Address = Union[str, Pubkey]


class LoyaltyTokenService:
    """
    Service object for custodial token operations.

    Attributes:
        config: Service configuration
        wallet: Custodial keypair, loaded or created at construction
        ledger: Ledger client used for every remote call
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        key_store: Optional[KeyStore] = None,
        client: Optional[AsyncClient] = None,
    ):
        """
        Initialize the service and its custodial wallet.

        Args:
            config: Service configuration (defaults to devnet)
            key_store: Credential store (defaults to the configured wallet file)
            client: Optional pre-built RPC client

        Raises:
            CredentialError: If the custodial wallet cannot be loaded or created
        """
        self.config = config or ServiceConfig()
        self.key_store = key_store or FileKeyStore(self.config.wallet_file_path)
        self.wallet: Keypair = self.key_store.load_or_create()
        self.ledger = LedgerClient(self.config, client)

    async def close(self) -> None:
        await self.ledger.close()

    async def __aenter__(self) -> LoyaltyTokenService:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Wallets
    # =========================================================================

    @staticmethod
    def create_wallet() -> CreatedWallet:
        """Generate a user wallet. Nothing is persisted."""
        return create_wallet()

    def get_vault_wallet_address(self) -> str:
        """Base58 address of the custodial wallet."""
        return str(self.wallet.pubkey())

    async def get_sol_balance(self) -> int:
        """Lamport balance of the custodial wallet."""
        try:
            return await self.ledger.get_balance(self.wallet.pubkey())
        except Exception as e:
            logger.error(f"Error getting SOL balance: {e}")
            raise wrap_ledger_error(e, "Error getting SOL balance")

    # =========================================================================
    # Token deployment
    # =========================================================================

    async def deploy_token_contract(self, token_name: str, token_symbol: str, image: str) -> str:
        """
        Register a new token type with embedded metadata.

        Args:
            token_name: Token name
            token_symbol: Token symbol
            image: Token URI, usually an image

        Returns:
            Base58 address of the new mint
        """
        mint_keypair = Keypair()
        mint = mint_keypair.pubkey()
        payer = self.wallet.pubkey()

        try:
            metadata = self._token_metadata(payer, mint, token_name, token_symbol, image)
            lamports = await self.ledger.minimum_balance_for_rent_exemption(rent_space(metadata))
            instructions = build_deploy_instructions(payer, metadata, lamports, self.config.decimals)
            signature = await self.ledger.send_and_confirm(instructions, [self.wallet, mint_keypair])
        except Exception as e:
            logger.error(f"Error deploying token {token_symbol}: {e}")
            raise wrap_ledger_error(e, f"Error deploying token {token_symbol}")

        logger.info(f"Create Mint Account: {self.config.explorer_link(signature)}")
        return str(mint)

    def _token_metadata(self, payer: Pubkey, mint: Pubkey, name: str, symbol: str, uri: str) -> TokenMetadata:
        try:
            return TokenMetadata(
                update_authority=payer,
                mint=mint,
                name=name,
                symbol=symbol,
                uri=uri,
                additional_metadata=[("description", self.config.token_description)],
            )
        except PydanticValidationError as e:
            fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
            raise ValidationError(f"Invalid token metadata: {', '.join(fields)}", details={"fields": fields}, cause=e)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_token_instance_and_decimals(self, token_address: Address) -> TokenInstance:
        """Resolve a mint address and read its decimals."""
        try:
            mint = parse_address(token_address)
            mint_info = await self.ledger.get_mint(mint)
        except Exception as e:
            logger.error(f"Error loading contract: {e}")
            raise wrap_ledger_error(e, "Error loading contract")
        return TokenInstance(contract=mint, decimals=mint_info.decimals)

    async def get_associated_token_account(self, mint: Address, owner: Address) -> Pubkey:
        """
        Get or create the owner's token account for a mint.

        The custodial wallet pays for the creation.
        """
        try:
            return await self.ledger.get_or_create_associated_token_account(
                self.wallet, parse_address(mint), parse_address(owner)
            )
        except Exception as e:
            logger.error(f"Error getting associated token account: {e}")
            raise wrap_ledger_error(e, "Error getting associated token account")

    async def get_wallet_token_balance(self, address: Address) -> List[TokenBalance]:
        """
        Raw balances of every Token-2022 account owned by an address.

        Returns:
            One TokenBalance per token account, amounts in base units
        """
        try:
            owner = parse_address(address)
            accounts = await self.ledger.get_token_accounts_by_owner(owner)
        except Exception as e:
            logger.error(f"Error getting wallet token balance: {e}")
            raise wrap_ledger_error(e, "Error getting wallet token balance")

        return [
            TokenBalance(token_address=str(info.mint), balance=info.amount)
            for _, info in accounts
        ]

    # =========================================================================
    # Mint, burn, transfer
    # =========================================================================

    async def mint_tokens_to_user(self, token_address: Address, to_address: Address, amount: Amount) -> Signature:
        """
        Mint tokens into a user's associated token account.

        Args:
            token_address: Mint address
            to_address: Recipient wallet address
            amount: Human amount, scaled by the mint's decimals

        Returns:
            Transaction signature, finalized
        """
        try:
            mint = parse_address(token_address)
            to = parse_address(to_address)

            mint_info = await self.ledger.get_mint(mint)
            adjusted_amount = to_base_units(amount, mint_info.decimals)
            token_account = await self.ledger.get_or_create_associated_token_account(self.wallet, mint, to)

            ix = mint_to(
                MintToParams(
                    program_id=self.ledger.program_id,
                    mint=mint,
                    dest=token_account,
                    mint_authority=self.wallet.pubkey(),
                    amount=adjusted_amount,
                )
            )
            signature = await self.ledger.send_and_confirm([ix], [self.wallet])
            await self.ledger.confirm(signature, self.config.finality)
        except Exception as e:
            logger.error(f"Error minting tokens: {e}")
            raise wrap_ledger_error(e, "Error minting tokens")

        logger.info(f"Minted {amount} tokens to {to_address}")
        return signature

    async def burn_tokens_from_user(self, token_address: Address, wallet: str, amount: Amount) -> Signature:
        """
        Burn tokens from a user's associated token account.

        Args:
            token_address: Mint address
            wallet: User's base58 secret key; the user signs as owner
            amount: Human amount, scaled by the mint's decimals

        Returns:
            Transaction signature, finalized
        """
        try:
            mint = parse_address(token_address)
            user_wallet = keypair_from_secret(wallet, "burnTokensFromUser")

            mint_info = await self.ledger.get_mint(mint)
            adjusted_amount = to_base_units(amount, mint_info.decimals)
            token_account = await self.ledger.get_or_create_associated_token_account(
                self.wallet, mint, user_wallet.pubkey()
            )

            ix = burn(
                BurnParams(
                    program_id=self.ledger.program_id,
                    account=token_account,
                    mint=mint,
                    owner=user_wallet.pubkey(),
                    amount=adjusted_amount,
                )
            )
            signature = await self.ledger.send_and_confirm([ix], [self.wallet, user_wallet])
            await self.ledger.confirm(signature, self.config.finality)
        except Exception as e:
            logger.error(f"Error burning tokens: {e}")
            raise wrap_ledger_error(e, "Error burning tokens")

        logger.info(f"Burned {amount} tokens from {user_wallet.pubkey()}")
        return signature

    async def transfer_tokens(self, token_address: Address, to: Address, amount: Amount, wallet: str) -> Signature:
        """
        Transfer tokens between two users.

        The sender's secret key is checked before any network call.

        Args:
            token_address: Mint address
            to: Recipient wallet address
            amount: Human amount, scaled by the mint's decimals
            wallet: Sender's base58 secret key

        Returns:
            Transaction signature, finalized
        """
        user_wallet = keypair_from_secret(wallet, "transferTokens")

        try:
            mint = parse_address(token_address)
            to_public_key = parse_address(to)

            mint_info = await self.ledger.get_mint(mint)
            adjusted_amount = to_base_units(amount, mint_info.decimals)
            from_token_account = await self.ledger.get_or_create_associated_token_account(
                self.wallet, mint, user_wallet.pubkey()
            )
            to_token_account = await self.ledger.get_or_create_associated_token_account(
                self.wallet, mint, to_public_key
            )

            ix = transfer_checked(
                TransferCheckedParams(
                    program_id=self.ledger.program_id,
                    source=from_token_account,
                    mint=mint,
                    dest=to_token_account,
                    owner=user_wallet.pubkey(),
                    amount=adjusted_amount,
                    decimals=mint_info.decimals,
                )
            )
            signature = await self.ledger.send_and_confirm([ix], [self.wallet, user_wallet])
            await self.ledger.confirm(signature, self.config.finality)
        except Exception as e:
            logger.error(f"Error transferring tokens: {e}")
            raise wrap_ledger_error(e, "Error transferring tokens")

        logger.info(f"Transferred {amount} tokens from {user_wallet.pubkey()} to {to}")
        return signature


__all__ = ["LoyaltyTokenService"]
