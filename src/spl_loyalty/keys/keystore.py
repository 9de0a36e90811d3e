"""
Custodial credential storage.

The service signs and pays for every on-chain action with one keypair. That
keypair is persisted as a JSON file holding the 64-byte secret key as an
array of byte integers, created on first start and loaded afterwards.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Union
import json
import logging
import os
import tempfile
from pathlib import Path

from solders.keypair import Keypair

from ..runtime.errors import CredentialError

logger = logging.getLogger(__name__)

PRIVATE_KEY_FIELD = "privateKey"
CREDENTIAL_FILE_MODE = 0o600


class KeyStore(ABC):
    """
    Abstract custodial key store.

    Exactly one keypair is held per store.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if a keypair has been stored."""
        pass

    @abstractmethod
    def load(self) -> Optional[Keypair]:
        """
        Load the stored keypair.

        Returns:
            Keypair if stored, None otherwise
        """
        pass

    @abstractmethod
    def save(self, keypair: Keypair) -> None:
        """
        Persist a keypair.

        Raises:
            CredentialError: If a keypair is already stored
        """
        pass

    def load_or_create(self) -> Keypair:
        """
        Load the custodial keypair, generating and saving one if absent.

        Raises:
            CredentialError: If the credential cannot be read or written
        """
        try:
            keypair = self.load()
            if keypair is not None:
                logger.info(f"Loaded existing SOL wallet: {keypair.pubkey()}")
                return keypair

            keypair = Keypair()
            self.save(keypair)
            logger.info(f"Created new wallet: {keypair.pubkey()}")
            return keypair
        except Exception as e:
            logger.error(f"Error loading or creating wallet: {e}")
            reason = e.message if isinstance(e, CredentialError) else str(e)
            raise CredentialError(f"Error reading or creating solana wallet: {reason}", cause=e)


class MemoryKeyStore(KeyStore):
    """
    In-memory key store implementation.

    Holds the keypair with no persistence.
    """

    def __init__(self, keypair: Optional[Keypair] = None):
        self._keypair = keypair

    def exists(self) -> bool:
        return self._keypair is not None

    def load(self) -> Optional[Keypair]:
        return self._keypair

    def save(self, keypair: Keypair) -> None:
        if self._keypair is not None:
            raise CredentialError("Key already exists in memory key store")
        self._keypair = keypair

    def __repr__(self) -> str:
        return f"MemoryKeyStore(stored={self.exists()})"


class FileKeyStore(KeyStore):
    """
    File-based key store implementation.

    Stores the keypair as {"privateKey": [b0, ..., b63]}.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize file key store.

        Args:
            path: Location of the credential JSON file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[Keypair]:
        """
        Read the keypair from file.

        Raises:
            CredentialError: If the file exists but is not a valid credential
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            secret = data[PRIVATE_KEY_FIELD]
            return Keypair.from_bytes(bytes(secret))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CredentialError(f"Invalid credential file {self.path}: {e}", cause=e)

    def save(self, keypair: Keypair) -> None:
        """
        Write the keypair to file, creating parent directories.

        The file is written under a temporary name readable only by the owner
        and moved into place once complete, so a crash never leaves a partial
        credential behind.
        """
        if self.path.exists():
            raise CredentialError(f"Credential file already exists: {self.path}")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            os.chmod(tmp_path, CREDENTIAL_FILE_MODE)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump({PRIVATE_KEY_FIELD: list(bytes(keypair))}, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        logger.debug(f"Stored custodial key to file {self.path}")

    def __repr__(self) -> str:
        return f"FileKeyStore(path='{self.path}')"


__all__ = [
    "KeyStore",
    "MemoryKeyStore",
    "FileKeyStore",
    "PRIVATE_KEY_FIELD",
    "CREDENTIAL_FILE_MODE",
]
