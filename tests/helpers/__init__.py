from .mocks import FakeRpcClient, MockRpcError, decode_instructions
from .factories import mk_keypair, mk_mint_data, mk_token_account_data
from . import layouts

__all__ = [
    "FakeRpcClient",
    "MockRpcError",
    "decode_instructions",
    "mk_keypair",
    "mk_mint_data",
    "mk_token_account_data",
    "layouts",
]
