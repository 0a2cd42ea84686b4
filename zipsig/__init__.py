"""
ZipSig
Signed ZIP archives with optional per-file encryption.
"""
from .errors import (
    ZipSigError,
    ValidationError,
    ManifestError,
    KeyImportError,
    DecryptionError,
    OperationCancelled,
)
from .packager.manifest import Manifest, MemberInfo, ManifestCodec
from .packager.signer import Signer, SignResult, SignState
from .unpacker.verifier import Verifier, VerificationResult, Reason, VerifyState
from .unpacker.extractor import Extractor, ExtractionResult
from .utils.encryption import FileCipher
from .utils.timesource import TimeSource, RetryPolicy

__version__ = "1.0.0"

__all__ = [
    "ZipSigError",
    "ValidationError",
    "ManifestError",
    "KeyImportError",
    "DecryptionError",
    "OperationCancelled",
    "Manifest",
    "MemberInfo",
    "ManifestCodec",
    "Signer",
    "SignResult",
    "SignState",
    "Verifier",
    "VerificationResult",
    "Reason",
    "VerifyState",
    "Extractor",
    "ExtractionResult",
    "FileCipher",
    "TimeSource",
    "RetryPolicy",
]
