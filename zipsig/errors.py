"""
ZipSig Errors
Typed failures raised at the crypto and archive boundaries.
"""
from typing import Optional


class ZipSigError(Exception):
    """Base exception for zipsig."""


class ValidationError(ZipSigError, ValueError):
    """Caller input rejected before any cryptographic work started."""


class ManifestError(ZipSigError):
    """The .zipsig manifest could not be read."""


class KeyImportError(ZipSigError):
    """A PEM key could not be decoded or is not an RSA key."""


class DecryptionError(ZipSigError):
    """A member could not be decrypted (wrong password or corrupt payload)."""

    def __init__(self, message: str, member_path: Optional[str] = None):
        super().__init__(message)
        self.member_path = member_path

    def __str__(self):
        base = super().__str__()
        if self.member_path:
            return f"{base}: {self.member_path}"
        return base


class OperationCancelled(ZipSigError):
    """A pending operation was abandoned by the caller."""


__all__ = [
    "ZipSigError",
    "ValidationError",
    "ManifestError",
    "KeyImportError",
    "DecryptionError",
    "OperationCancelled",
]
