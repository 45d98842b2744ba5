"""AES-256-GCM encryption of sensitive employee fields with key versioning."""

import base64
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)


class EncryptionService:
    """Encrypts SSNs and portal passwords into storable text tokens.

    Supports key versioning for seamless key rotation:
    - New data is always encrypted with the current (latest) key
    - Old data can be decrypted with any known key version
    - Magic bytes + version prefix identifies the key used

    Token format: URL-safe base64 of
    magic (2 bytes) + version (1 byte) + nonce (12 bytes) + ciphertext
    """

    # Magic bytes to identify versioned encryption format (0xEC = "Encrypted")
    MAGIC_BYTES = b"\xEC\x01"
    MAGIC_SIZE = 2
    NONCE_SIZE = 12  # 96 bits for GCM
    VERSION_SIZE = 1

    def __init__(self, current_key: str, legacy_keys: list[str] | None = None) -> None:
        """Initialize encryption service with current key and optional legacy keys.

        Args:
            current_key: Current encryption key (base64-encoded, 32 bytes decoded)
            legacy_keys: Keys still needed for decryption (oldest to newest)
        """
        self._current_key = self._decode_key(current_key)
        self._current_aesgcm = AESGCM(self._current_key)

        self._key_chain: list[bytes] = [self._decode_key(key) for key in legacy_keys or []]
        # Current key is always the latest in the chain
        self._key_chain.append(self._current_key)

    def _decode_key(self, key: str) -> bytes:
        """Decode and validate a base64-encoded encryption key.

        Args:
            key: Base64 URL-safe encoded encryption key

        Returns:
            Decoded 32-byte key

        Raises:
            ValueError: If key is not valid base64 or not 32 bytes
        """
        try:
            padded_key = key + "=" * (-len(key) % 4)
            decoded = base64.urlsafe_b64decode(padded_key)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid base64-encoded encryption key: {type(e).__name__}") from e

        if len(decoded) != 32:
            raise ValueError("Encryption key must be 32 bytes (256 bits)")
        return decoded

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string with the current key.

        Args:
            plaintext: Value to protect

        Returns:
            Text token safe to store in a database column
        """
        nonce = os.urandom(self.NONCE_SIZE)
        ciphertext = self._current_aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        version = len(self._key_chain) - 1
        blob = self.MAGIC_BYTES + bytes([version]) + nonce + ciphertext
        return base64.urlsafe_b64encode(blob).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Never raises: malformed, tampered or foreign tokens yield an empty
        string so that callers such as form pre-fill simply skip the value.

        Args:
            token: Stored token

        Returns:
            Plaintext, or ``""`` if the token cannot be decrypted
        """
        if not token:
            return ""
        try:
            blob = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        except (ValueError, TypeError):
            logger.warning("Encrypted value is not valid base64")
            return ""

        header_size = self.MAGIC_SIZE + self.VERSION_SIZE
        if blob[: self.MAGIC_SIZE] != self.MAGIC_BYTES or len(blob) < header_size + self.NONCE_SIZE + 1:
            logger.warning("Encrypted value has an unknown format")
            return ""

        version = blob[self.MAGIC_SIZE]
        nonce = blob[header_size : header_size + self.NONCE_SIZE]
        ciphertext = blob[header_size + self.NONCE_SIZE :]

        # Try the recorded key version first, then every key newest to oldest
        candidates = []
        if version < len(self._key_chain):
            candidates.append(self._key_chain[version])
        candidates.extend(key for key in reversed(self._key_chain) if key not in candidates)

        for key in candidates:
            try:
                return AESGCM(key).decrypt(nonce, ciphertext, None).decode("utf-8")
            except (InvalidTag, UnicodeDecodeError):
                continue

        logger.warning("Encrypted value could not be decrypted with any known key")
        return ""

    def re_encrypt(self, token: str) -> str:
        """Re-encrypt a token with the current key.

        Useful for key rotation: decrypt with old key, re-encrypt with new key.

        Raises:
            ValueError: If the token cannot be decrypted
        """
        plaintext = self.decrypt(token)
        if not plaintext:
            raise ValueError("Decryption failed: no valid key found")
        return self.encrypt(plaintext)

