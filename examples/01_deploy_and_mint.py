#!/usr/bin/env python3
"""
Example 1: Deploy a Loyalty Token and Reward a User

Loads (or creates) the custodial wallet, deploys a Token-2022 mint with
embedded metadata, creates a user wallet, mints points to it, moves some to a
second user and burns the rest.

The custodial wallet needs devnet SOL to pay fees. On a fresh wallet, fund the
printed address first (solana airdrop 2 <address> --url devnet).

Usage:
    python 01_deploy_and_mint.py --wallet-file solWallet.json --amount 100
"""

import argparse
import asyncio
import logging

from spl_loyalty import LoyaltyTokenService, ServiceConfig, ServiceError


def print_step(message: str) -> None:
    print(f"\n>> {message}")


async def run(args) -> int:
    config = ServiceConfig.devnet(rpc_endpoint=args.endpoint, wallet_file_path=args.wallet_file)

    async with LoyaltyTokenService(config) as service:
        print_step("Custodial wallet")
        print(f"   Address: {service.get_vault_wallet_address()}")
        lamports = await service.get_sol_balance()
        print(f"   Balance: {lamports / 1_000_000_000:.4f} SOL")
        if lamports == 0:
            print("   Wallet is empty, fund it on devnet and run again")
            return 1

        print_step("Deploying token")
        mint = await service.deploy_token_contract(args.name, args.symbol, args.image)
        print(f"   Mint: {mint}")

        print_step("Creating user wallets")
        alice = service.create_wallet()
        bob = service.create_wallet()
        print(f"   Alice: {alice.address}")
        print(f"   Bob:   {bob.address}")

        print_step(f"Minting {args.amount} {args.symbol} to Alice")
        signature = await service.mint_tokens_to_user(mint, alice.address, args.amount)
        print(f"   {config.explorer_link(signature)}")

        half = args.amount / 2
        print_step(f"Transferring {half} {args.symbol} from Alice to Bob")
        signature = await service.transfer_tokens(mint, bob.address, half, alice.private_key)
        print(f"   {config.explorer_link(signature)}")

        print_step(f"Burning {half} {args.symbol} from Alice")
        signature = await service.burn_tokens_from_user(mint, alice.private_key, half)
        print(f"   {config.explorer_link(signature)}")

        print_step("Balances")
        for name, wallet in (("Alice", alice), ("Bob", bob)):
            for balance in await service.get_wallet_token_balance(wallet.address):
                print(f"   {name}: {balance.balance} base units of {balance.token_address}")

    return 0


def main():
    parser = argparse.ArgumentParser(description="Deploy a loyalty token and reward a user")
    parser.add_argument(
        "--endpoint",
        default="https://api.devnet.solana.com",
        help="Solana RPC endpoint"
    )
    parser.add_argument(
        "--wallet-file",
        default="solWallet.json",
        help="Custodial wallet file, created if missing"
    )
    parser.add_argument("--name", default="Loyalty Points", help="Token name")
    parser.add_argument("--symbol", default="PTS", help="Token symbol")
    parser.add_argument("--image", default="", help="Token image URI")
    parser.add_argument("--amount", type=float, default=100, help="Points to mint")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    print("=== SPL Loyalty Example 1: Deploy and Mint ===")
    print(f"Endpoint: {args.endpoint}")

    try:
        return asyncio.run(run(args))
    except ServiceError as e:
        print(f"\nFailed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
