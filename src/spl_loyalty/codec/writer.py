"""
Binary Writer

Little-endian, Borsh-compatible encoding used for Token-2022 extension
instructions and token metadata. Strings and vectors carry a u32 length prefix.
"""

import struct
from typing import List


class BinaryWriter:
    """
    Binary writer for Borsh-style instruction data.

    Accumulates bytes and returns them with to_bytes().
    """

    def __init__(self):
        """Initialize writer with empty byte buffer."""
        self._bb: List[int] = []

    def u8(self, v: int) -> "BinaryWriter":
        """
        Write unsigned 8-bit integer.

        Args:
            v: Integer value to write (0-255)
        """
        self._bb.append(v & 0xFF)
        return self

    def u32le(self, v: int) -> "BinaryWriter":
        """
        Write unsigned 32-bit integer in little-endian format.

        Args:
            v: Integer value to write as 32-bit little-endian
        """
        self._bb.extend(struct.pack('<I', v & 0xFFFFFFFF))
        return self

    def bytes(self, v: bytes) -> "BinaryWriter":
        """
        Write raw bytes without length prefix.

        Args:
            v: Bytes to write directly
        """
        self._bb.extend(v)
        return self

    def string(self, s: str) -> "BinaryWriter":
        """
        Write a UTF-8 string with a u32 length prefix.

        Args:
            s: String to write
        """
        b = s.encode("utf-8")
        self.u32le(len(b))
        return self.bytes(b)

    def to_bytes(self) -> bytes:
        """
        Return accumulated bytes as immutable bytes object.

        Returns:
            Bytes containing all written data
        """
        return bytes(self._bb)

    def __len__(self) -> int:
        return len(self._bb)
