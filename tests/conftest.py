"""
Test bootstrap:
- Make src/ and tests/helpers importable at collection time
- Provide the fake RPC client, key store and service fixtures
"""
import sys
import pathlib
import pytest

ROOT = pathlib.Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
TESTS = ROOT / "tests"

for path in (SRC, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from helpers import FakeRpcClient, mk_keypair  # noqa: E402


@pytest.fixture
def vault_keypair():
    """Deterministic custodial keypair."""
    return mk_keypair(1)


@pytest.fixture
def fake_rpc():
    """Provide a fake RPC client with an empty ledger."""
    return FakeRpcClient()


@pytest.fixture
def service_config(tmp_path):
    from spl_loyalty.config import ServiceConfig
    return ServiceConfig.devnet(wallet_file_path=str(tmp_path / "solWallet.json"))


@pytest.fixture
def service(service_config, vault_keypair, fake_rpc):
    """Service wired to the fake RPC client and an in-memory custodial key."""
    from spl_loyalty.keys.keystore import MemoryKeyStore
    from spl_loyalty.service import LoyaltyTokenService
    return LoyaltyTokenService(service_config, key_store=MemoryKeyStore(vault_keypair), client=fake_rpc)
