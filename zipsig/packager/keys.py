"""
ZipSig Key Manager
RSA-PSS key generation, PEM export/import, sign and verify.
"""
import base64
import binascii
import re
from typing import Tuple

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..errors import KeyImportError
from ..utils.logger import logger

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537
PSS_SALT_LENGTH = 32

PUBLIC_LABEL = "PUBLIC KEY"
PRIVATE_LABEL = "PRIVATE KEY"

_WHITESPACE = re.compile(r'\s+')


def _pss() -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=PSS_SALT_LENGTH)


def generate_keypair() -> Tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]:
    private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)
    return private_key, private_key.public_key()


def _to_pem(der: bytes, label: str) -> str:
    body = base64.b64encode(der).decode('ascii')
    lines = [body[i:i + 64] for i in range(0, len(body), 64)]
    return '\n'.join([f"-----BEGIN {label}-----", *lines, f"-----END {label}-----"])


def _from_pem(text: str, label: str) -> bytes:
    if isinstance(text, bytes):
        text = text.decode('ascii', errors='replace')
    body = (
        text.replace(f"-----BEGIN {label}-----", '')
            .replace(f"-----END {label}-----", '')
    )
    body = _WHITESPACE.sub('', body)
    if not body:
        raise KeyImportError(f"No {label} data found")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyImportError(f"Invalid base64 in {label}: {e}") from e


def export_public_key(public_key: rsa.RSAPublicKey) -> str:
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return _to_pem(der, PUBLIC_LABEL)


def export_private_key(private_key: rsa.RSAPrivateKey) -> str:
    der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return _to_pem(der, PRIVATE_LABEL)


def import_public_key(pem: str) -> rsa.RSAPublicKey:
    der = _from_pem(pem, PUBLIC_LABEL)
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyImportError(f"Could not load public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyImportError("Public key is not an RSA key")
    return key


def import_private_key(pem: str) -> rsa.RSAPrivateKey:
    der = _from_pem(pem, PRIVATE_LABEL)
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyImportError(f"Could not load private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyImportError("Private key is not an RSA key")
    return key


def sign(private_key: rsa.RSAPrivateKey, payload: bytes) -> bytes:
    return private_key.sign(payload, _pss(), hashes.SHA256())


def verify(public_key: rsa.RSAPublicKey, signature: bytes, payload: bytes) -> bool:
    """True only for a matching RSA-PSS/SHA-256 signature. Never raises."""
    try:
        public_key.verify(signature, payload, _pss(), hashes.SHA256())
        return True
    except InvalidSignature:
        return False
    except (ValueError, TypeError) as e:
        logger.debug(f"Signature check errored: {e}")
        return False


__all__ = [
    "generate_keypair",
    "export_public_key",
    "export_private_key",
    "import_public_key",
    "import_private_key",
    "sign",
    "verify",
    "KEY_SIZE",
    "PSS_SALT_LENGTH",
]
