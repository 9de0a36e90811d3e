"""
Result models returned by the loyalty token service.

Field aliases follow the camelCase keys the HTTP layer in front of the
service serializes (model_dump(by_alias=True)).
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from solders.pubkey import Pubkey


class CreatedWallet(BaseModel):
    """A freshly generated user wallet. The service keeps no copy."""
    private_key: str = Field(alias="privateKey", description="Base58 64-byte secret key")
    address: str = Field(description="Base58 public key")

    model_config = {"populate_by_name": True}


class TokenInstance(BaseModel):
    """A mint resolved from its address."""
    contract: Pubkey
    decimals: int = Field(ge=0)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def address(self) -> str:
        return str(self.contract)


class TokenBalance(BaseModel):
    """Raw balance of one token account, in base units."""
    token_address: str
    balance: int = Field(ge=0)


__all__ = [
    "CreatedWallet",
    "TokenInstance",
    "TokenBalance",
]
