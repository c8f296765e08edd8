"""
Localbase Encryption Module
Provides Fernet encryption of stored blobs for any storage backend
"""

from typing import List, Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from .errors import StorageError
from .storage import StorageBackend


def generate_key() -> str:
    """Generate a new urlsafe base64 Fernet key suitable for LOCALBASE_ENCRYPTION_KEY"""
    return Fernet.generate_key().decode('ascii')


class BlobCipher:
    """
    Encryption helper using Fernet (AES-128-CBC + HMAC-SHA256)

    Features:
    - Transparent encryption/decryption of whole blobs
    - Integrity verification via HMAC
    """

    def __init__(self, key: Union[str, bytes]):
        if isinstance(key, str):
            key = key.encode('ascii')
        try:
            self._fernet = Fernet(key)
        except ValueError as e:
            raise ValueError(f"Invalid encryption key: {e}") from e

    def encrypt(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decrypt(self, encrypted_data: bytes) -> bytes:
        """
        Decrypt data.

        Raises:
            StorageError: if the blob was not produced with this key or was tampered with
        """
        try:
            return self._fernet.decrypt(encrypted_data)
        except InvalidToken as e:
            raise StorageError("Stored blob failed integrity verification") from e

    def verify_integrity(self, encrypted_data: bytes) -> bool:
        try:
            self._fernet.decrypt(encrypted_data)
            return True
        except InvalidToken:
            return False


class EncryptedStorageBackend(StorageBackend):
    """Wraps another backend; blobs are encrypted before write and decrypted after read."""

    def __init__(self, inner: StorageBackend, key: Union[str, bytes]):
        self.inner = inner
        self.cipher = BlobCipher(key)

    def read(self, key: str) -> Optional[bytes]:
        data = self.inner.read(key)
        if data is None:
            return None
        return self.cipher.decrypt(data)

    def write(self, key: str, data: bytes) -> None:
        self.inner.write(key, self.cipher.encrypt(data))

    def remove(self, key: str) -> None:
        self.inner.remove(key)

    def keys(self) -> List[str]:
        return self.inner.keys()
