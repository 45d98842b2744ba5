"""Security package."""

from hrms_api.security.encryption import EncryptionService

__all__ = ["EncryptionService"]
