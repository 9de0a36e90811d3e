"""
Tests for LoyaltyTokenService against the fake RPC client.

Covers the custodial wallet, deployment, queries, mint, burn and transfer
flows, and how ledger failures surface to callers.
"""

import logging
import struct
from unittest.mock import AsyncMock, patch

import base58
import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID

from spl_loyalty import (
    AccountNotFoundError, InvalidAddressError, InvalidSecretKeyError, LedgerError, ValidationError,
)
from spl_loyalty.keys.keystore import FileKeyStore
from spl_loyalty.ledger import LedgerClient
from spl_loyalty.models import TokenBalance
from spl_loyalty.service import LoyaltyTokenService
from spl_loyalty.tx.deploy import mint_space
from helpers import decode_instructions, mk_keypair, mk_mint_data, mk_token_account_data


def ata(owner: Pubkey, mint: Pubkey) -> Pubkey:
    seeds = [bytes(owner), bytes(TOKEN_2022_PROGRAM_ID), bytes(mint)]
    return Pubkey.find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)[0]


def secret_of(keypair: Keypair) -> str:
    return base58.b58encode(bytes(keypair)).decode()


@pytest.fixture
def mint(fake_rpc, vault_keypair):
    """A 9-decimal mint owned by the token program, vault as authority."""
    address = mk_keypair(100).pubkey()
    fake_rpc.add_account(
        address,
        TOKEN_2022_PROGRAM_ID,
        mk_mint_data(decimals=9, mint_authority=vault_keypair.pubkey(), freeze_authority=vault_keypair.pubkey()),
    )
    return address


@pytest.fixture
def user():
    return mk_keypair(200)


class TestCustodialWallet:
    """Tests for the custodial wallet and user wallet generation."""

    def test_vault_address(self, service, vault_keypair):
        assert service.get_vault_wallet_address() == str(vault_keypair.pubkey())

    def test_file_store_reused_across_instances(self, service_config, fake_rpc):
        first = LoyaltyTokenService(service_config, client=fake_rpc)
        second = LoyaltyTokenService(service_config, client=fake_rpc)

        assert isinstance(first.key_store, FileKeyStore)
        assert first.get_vault_wallet_address() == second.get_vault_wallet_address()

    def test_create_wallet(self):
        created = LoyaltyTokenService.create_wallet()
        keypair = Keypair.from_bytes(base58.b58decode(created.private_key))
        assert str(keypair.pubkey()) == created.address

    @pytest.mark.asyncio
    async def test_sol_balance(self, service, fake_rpc, vault_keypair):
        fake_rpc.lamports[vault_keypair.pubkey()] = 1_500_000_000
        assert await service.get_sol_balance() == 1_500_000_000

    @pytest.mark.asyncio
    async def test_sol_balance_failure(self, service, fake_rpc):
        fake_rpc.fail("get_balance")
        with pytest.raises(LedgerError) as exc_info:
            await service.get_sol_balance()
        assert exc_info.value.status == 502


class TestDeployTokenContract:
    """Tests for token deployment."""

    @pytest.mark.asyncio
    async def test_deploy_submits_single_transaction(self, service, fake_rpc, vault_keypair):
        mint_address = await service.deploy_token_contract("Points", "PTS", "https://example.com/pts.png")

        assert len(fake_rpc.sent) == 1
        tx = fake_rpc.sent[0]
        assert len(tx.signatures) == 2
        assert tx.message.account_keys[0] == vault_keypair.pubkey()
        assert Pubkey.from_string(mint_address) in tx.message.account_keys

        instructions = decode_instructions(tx)
        assert len(instructions) == 5
        assert instructions[0].program_id == SYSTEM_PROGRAM_ID
        assert all(ix.program_id == TOKEN_2022_PROGRAM_ID for ix in instructions[1:])

    @pytest.mark.asyncio
    async def test_deploy_funds_rent_for_metadata(self, service, fake_rpc):
        await service.deploy_token_contract("Points", "PTS", "https://example.com/pts.png")

        metadata_len = (
            32 + 32
            + (4 + len("Points")) + (4 + len("PTS")) + (4 + len("https://example.com/pts.png"))
            + 4 + (4 + len("description")) + (4 + len("Only Possible On Solana"))
        )
        assert fake_rpc.rent_sizes == [mint_space() + 4 + metadata_len]

        create = decode_instructions(fake_rpc.sent[0])[0]
        lamports = struct.unpack_from('<Q', create.data, 4)[0]
        space = struct.unpack_from('<Q', create.data, 12)[0]
        assert lamports == fake_rpc.rent_sizes[0] * fake_rpc.rent_per_byte
        assert space == mint_space()

    @pytest.mark.asyncio
    async def test_deploy_uses_configured_decimals(self, service_config, vault_keypair, fake_rpc):
        from spl_loyalty.keys.keystore import MemoryKeyStore
        config = service_config.model_copy(update={"decimals": 2})
        service = LoyaltyTokenService(config, key_store=MemoryKeyStore(vault_keypair), client=fake_rpc)

        await service.deploy_token_contract("Points", "PTS", "")
        init_mint = decode_instructions(fake_rpc.sent[0])[2]
        assert init_mint.data[:2] == bytes([0, 2])

    @pytest.mark.asyncio
    async def test_deploy_failure_is_ledger_error(self, service, fake_rpc):
        fake_rpc.fail("send_raw_transaction")
        with pytest.raises(LedgerError):
            await service.deploy_token_contract("Points", "PTS", "")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,symbol", [("", "PTS"), ("Points", "  ")])
    async def test_deploy_rejects_blank_metadata(self, service, fake_rpc, name, symbol):
        with pytest.raises(ValidationError) as exc_info:
            await service.deploy_token_contract(name, symbol, "https://example.com/pts.png")

        assert exc_info.value.status == 400
        assert exc_info.value.message.startswith("Invalid token metadata")
        assert fake_rpc.calls == []


class TestQueries:
    """Tests for mint and balance lookups."""

    @pytest.mark.asyncio
    async def test_token_instance_and_decimals(self, service, mint):
        instance = await service.get_token_instance_and_decimals(str(mint))
        assert instance.contract == mint
        assert instance.address == str(mint)
        assert instance.decimals == 9

    @pytest.mark.asyncio
    async def test_missing_mint_is_not_found(self, service):
        with pytest.raises(AccountNotFoundError) as exc_info:
            await service.get_token_instance_and_decimals(str(mk_keypair(999).pubkey()))
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_foreign_owner_is_rejected(self, service, fake_rpc):
        address = mk_keypair(101).pubkey()
        fake_rpc.add_account(address, SYSTEM_PROGRAM_ID, mk_mint_data())
        with pytest.raises(ValidationError) as exc_info:
            await service.get_token_instance_and_decimals(address)
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_invalid_token_address(self, service, fake_rpc):
        with pytest.raises(InvalidAddressError):
            await service.get_token_instance_and_decimals("not-an-address")
        assert fake_rpc.calls == []

    @pytest.mark.asyncio
    async def test_wallet_token_balance(self, service, fake_rpc, mint, user):
        other_mint = mk_keypair(102).pubkey()
        fake_rpc.token_accounts[user.pubkey()] = [
            (ata(user.pubkey(), mint), mk_token_account_data(mint, user.pubkey(), 7_000)),
            (ata(user.pubkey(), other_mint), mk_token_account_data(other_mint, user.pubkey(), 0)),
        ]

        balances = await service.get_wallet_token_balance(str(user.pubkey()))
        assert balances == [
            TokenBalance(token_address=str(mint), balance=7_000),
            TokenBalance(token_address=str(other_mint), balance=0),
        ]

    @pytest.mark.asyncio
    async def test_wallet_without_token_accounts(self, service, user):
        assert await service.get_wallet_token_balance(user.pubkey()) == []

    @pytest.mark.asyncio
    async def test_wallet_token_balance_failure(self, service, fake_rpc, user, caplog):
        fake_rpc.fail("get_token_accounts_by_owner")
        with caplog.at_level(logging.ERROR, logger="spl_loyalty.service"):
            with pytest.raises(LedgerError) as exc_info:
                await service.get_wallet_token_balance(user.pubkey())

        assert exc_info.value.status == 502
        assert "Error getting wallet token balance" in caplog.text

    @pytest.mark.asyncio
    async def test_associated_token_account_failure(self, service, fake_rpc, mint, user, caplog):
        fake_rpc.fail("send_raw_transaction")
        with caplog.at_level(logging.ERROR, logger="spl_loyalty.service"):
            with pytest.raises(LedgerError) as exc_info:
                await service.get_associated_token_account(mint, user.pubkey())

        assert exc_info.value.status == 502
        assert "Error getting associated token account" in caplog.text

    @pytest.mark.asyncio
    async def test_associated_token_account_invalid_owner(self, service, fake_rpc, mint):
        with pytest.raises(InvalidAddressError):
            await service.get_associated_token_account(mint, "nope")
        assert fake_rpc.calls == []

    @pytest.mark.asyncio
    async def test_existing_associated_account_is_returned(self, service, fake_rpc, mint, user):
        address = ata(user.pubkey(), mint)
        fake_rpc.add_account(address, TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 0))

        assert await service.get_associated_token_account(mint, user.pubkey()) == address
        assert fake_rpc.sent == []


class TestMintTokens:
    """Tests for minting into user accounts."""

    @pytest.mark.asyncio
    async def test_mint_creates_account_then_mints(self, service, fake_rpc, mint, user, vault_keypair):
        signature = await service.mint_tokens_to_user(str(mint), str(user.pubkey()), 5)

        assert len(fake_rpc.sent) == 2
        create_ata = decode_instructions(fake_rpc.sent[0])[0]
        assert create_ata.program_id == ASSOCIATED_TOKEN_PROGRAM_ID
        assert create_ata.accounts[1] == ata(user.pubkey(), mint)

        mint_ix = decode_instructions(fake_rpc.sent[1])[0]
        assert mint_ix.program_id == TOKEN_2022_PROGRAM_ID
        assert mint_ix.data == bytes([7]) + struct.pack('<Q', 5 * 10**9)
        assert mint_ix.accounts == [mint, ata(user.pubkey(), mint), vault_keypair.pubkey()]

        assert signature == fake_rpc.sent[1].signatures[0]
        assert fake_rpc.confirmations[-1] == (signature, "finalized")
        assert fake_rpc.confirmations[-2] == (signature, "confirmed")

    @pytest.mark.asyncio
    async def test_mint_fractional_amount_rounds_down(self, service, fake_rpc, mint, user):
        fake_rpc.add_account(
            ata(user.pubkey(), mint), TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 0)
        )
        await service.mint_tokens_to_user(mint, user.pubkey(), "1.0000000019")

        mint_ix = decode_instructions(fake_rpc.sent[0])[0]
        assert mint_ix.data == bytes([7]) + struct.pack('<Q', 1_000_000_001)

    @pytest.mark.asyncio
    async def test_mint_rejects_non_positive_amount(self, service, fake_rpc, mint, user):
        fake_rpc.add_account(
            ata(user.pubkey(), mint), TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 0)
        )
        with pytest.raises(ValidationError):
            await service.mint_tokens_to_user(mint, user.pubkey(), 0)
        assert fake_rpc.sent == []

    @pytest.mark.asyncio
    async def test_mint_oversized_amount_creates_nothing(self, service, fake_rpc, mint, user):
        with pytest.raises(ValidationError) as exc_info:
            await service.mint_tokens_to_user(mint, user.pubkey(), 10**11)

        assert exc_info.value.status == 400
        assert fake_rpc.sent == []

    @pytest.mark.asyncio
    async def test_send_failure_is_ledger_error(self, service, fake_rpc, mint, user):
        fake_rpc.fail("send_raw_transaction")
        with pytest.raises(LedgerError) as exc_info:
            await service.mint_tokens_to_user(mint, user.pubkey(), 1)

        assert exc_info.value.status == 502
        assert "Mock send_raw_transaction failure" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, service, fake_rpc, mint, user, monkeypatch):
        monkeypatch.setattr(service.ledger, "get_mint", AsyncMock(side_effect=RuntimeError("boom")))
        fake_rpc.add_account(
            ata(user.pubkey(), mint), TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 0)
        )
        with pytest.raises(LedgerError) as exc_info:
            await service.mint_tokens_to_user(mint, user.pubkey(), 1)

        assert exc_info.value.message.startswith("Error minting tokens")
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_failed_transaction_is_ledger_error(self, service, fake_rpc, mint, user):
        fake_rpc.add_account(
            ata(user.pubkey(), mint), TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 0)
        )
        fake_rpc.default_transaction_error = "InstructionError"
        with pytest.raises(LedgerError) as exc_info:
            await service.mint_tokens_to_user(mint, user.pubkey(), 1)
        assert "InstructionError" in exc_info.value.message


class TestBurnTokens:
    """Tests for burning from user accounts."""

    @pytest.mark.asyncio
    async def test_burn_signed_by_vault_and_user(self, service, fake_rpc, mint, user, vault_keypair):
        address = ata(user.pubkey(), mint)
        fake_rpc.add_account(address, TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 10**10))

        signature = await service.burn_tokens_from_user(str(mint), secret_of(user), 2)

        assert len(fake_rpc.sent) == 1
        tx = fake_rpc.sent[0]
        assert len(tx.signatures) == 2
        assert tx.message.account_keys[0] == vault_keypair.pubkey()

        burn_ix = decode_instructions(tx)[0]
        assert burn_ix.data == bytes([8]) + struct.pack('<Q', 2 * 10**9)
        assert burn_ix.accounts == [address, mint, user.pubkey()]
        assert fake_rpc.confirmations[-1] == (signature, "finalized")

    @pytest.mark.asyncio
    async def test_burn_invalid_secret(self, service, fake_rpc, mint):
        with pytest.raises(InvalidSecretKeyError) as exc_info:
            await service.burn_tokens_from_user(str(mint), "not-a-key", 1)

        assert exc_info.value.status == 400
        assert exc_info.value.operation == "burnTokensFromUser"
        assert fake_rpc.sent == []


class TestTransferTokens:
    """Tests for user to user transfers."""

    @pytest.mark.asyncio
    async def test_transfer_checked(self, service, fake_rpc, mint, user, vault_keypair):
        recipient = mk_keypair(300).pubkey()
        source = ata(user.pubkey(), mint)
        fake_rpc.add_account(source, TOKEN_2022_PROGRAM_ID, mk_token_account_data(mint, user.pubkey(), 10**10))

        signature = await service.transfer_tokens(str(mint), str(recipient), 3, secret_of(user))

        # recipient account created, then the transfer itself
        assert len(fake_rpc.sent) == 2
        assert decode_instructions(fake_rpc.sent[0])[0].program_id == ASSOCIATED_TOKEN_PROGRAM_ID

        tx = fake_rpc.sent[1]
        assert len(tx.signatures) == 2
        assert tx.message.account_keys[0] == vault_keypair.pubkey()

        transfer_ix = decode_instructions(tx)[0]
        assert transfer_ix.data == bytes([12]) + struct.pack('<Q', 3 * 10**9) + bytes([9])
        assert transfer_ix.accounts == [source, mint, ata(recipient, mint), user.pubkey()]
        assert fake_rpc.confirmations[-1] == (signature, "finalized")

    @pytest.mark.asyncio
    async def test_transfer_invalid_secret_makes_no_calls(self, service, fake_rpc, mint):
        with pytest.raises(InvalidSecretKeyError) as exc_info:
            await service.transfer_tokens(str(mint), str(mk_keypair(300).pubkey()), 1, "0OIl")

        assert exc_info.value.operation == "transferTokens"
        assert fake_rpc.calls == []

    @pytest.mark.asyncio
    async def test_transfer_invalid_recipient(self, service, fake_rpc, mint, user):
        with pytest.raises(InvalidAddressError):
            await service.transfer_tokens(str(mint), "nope", 1, secret_of(user))
        assert fake_rpc.sent == []


class TestLifecycle:
    """Tests for client ownership and context management."""

    @pytest.mark.asyncio
    async def test_provided_client_is_not_closed(self, service, fake_rpc):
        async with service:
            pass
        assert fake_rpc.closed is False

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, service_config):
        with patch("spl_loyalty.ledger.AsyncClient") as client_cls:
            client_cls.return_value.close = AsyncMock()
            ledger = LedgerClient(service_config)
            await ledger.close()

        client_cls.assert_called_once()
        client_cls.return_value.close.assert_awaited_once()
