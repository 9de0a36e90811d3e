"""
Binary Codec Module

Borsh-style little-endian primitives for the Token-2022 extension
instructions the Solana SDK does not ship.

Key components:
- writer.py: Binary writer for instruction data
"""

from .writer import BinaryWriter

__all__ = [
    "BinaryWriter",
]
