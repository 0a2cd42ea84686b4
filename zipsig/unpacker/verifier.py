"""
ZipSig Verifier
Checks a signed ZIP: manifest present, content digest unchanged,
signature valid under the current or the legacy payload.
"""
import binascii
import io
import zipfile
import zlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from ..errors import KeyImportError, ManifestError
from ..packager import keys
from ..packager.manifest import Manifest, ManifestCodec, b64decode
from ..utils.checksum import MANIFEST_NAME, compute_content_digest
from ..utils.logger import logger

PROBE_DATA = b"test_verification_data"

# Everything zipfile can raise while reading a damaged or unsupported archive
ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    OSError,
    EOFError,
)


class VerifyState(Enum):
    LOADED = "loaded"
    DIGEST_CHECKED = "digest_checked"
    SIGNATURE_CHECKED = "signature_checked"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Reason(Enum):
    VERIFIED = "verified"
    MANIFEST_MISSING = "manifest_missing"
    MALFORMED_ARCHIVE = "malformed_archive"
    MALFORMED_MANIFEST = "malformed_manifest"
    CONTENT_MODIFIED = "content_modified"
    INVALID_SIGNATURE = "invalid_signature"


MESSAGES = {
    Reason.VERIFIED: "Signature verified",
    Reason.MANIFEST_MISSING: "No .zipsig file found",
    Reason.MALFORMED_ARCHIVE: "Not a readable ZIP archive",
    Reason.MALFORMED_MANIFEST: "The .zipsig file could not be read",
    Reason.CONTENT_MODIFIED: "File contents have been modified",
    Reason.INVALID_SIGNATURE: "Invalid signature",
}


@dataclass
class VerificationResult:
    state: VerifyState
    reason: Reason
    message: str
    manifest: Optional[Manifest] = None
    computed_digest: Optional[str] = None
    scheme: Optional[str] = None
    members: Dict[str, bytes] = field(default_factory=dict, repr=False)

    @property
    def is_valid(self) -> bool:
        return self.reason is Reason.VERIFIED


@dataclass
class KeyCheckResult:
    matched: bool
    message: str


def read_archive(data: bytes) -> Dict[str, bytes]:
    """All file entries of a ZIP, directory entries skipped"""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {
            info.filename: zf.read(info)
            for info in zf.infolist()
            if not info.is_dir()
        }


class Verifier:
    def __init__(self):
        self.codec = ManifestCodec()

    def verify_file(self, archive_path: Union[str, Path]) -> VerificationResult:
        logger.info(f"Verifying: {archive_path}")
        with open(archive_path, 'rb') as f:
            return self.verify_bytes(f.read())

    def verify_bytes(
        self,
        data: bytes,
        on_state: Optional[Callable[[VerifyState], None]] = None
    ) -> VerificationResult:
        notify = on_state or (lambda state: None)
        try:
            entries = read_archive(data)
        except ARCHIVE_ERRORS as e:
            logger.error(f"Cannot open archive: {e}")
            return self._reject(Reason.MALFORMED_ARCHIVE, detail=str(e))

        if MANIFEST_NAME not in entries:
            logger.warning("Archive has no .zipsig manifest")
            return self._reject(Reason.MANIFEST_MISSING)

        try:
            manifest = self.codec.parse(entries.pop(MANIFEST_NAME))
        except ManifestError as e:
            logger.error(f"Manifest unreadable: {e}")
            return self._reject(Reason.MALFORMED_MANIFEST, detail=str(e))

        notify(VerifyState.LOADED)
        digest = compute_content_digest(entries)
        if digest != manifest.content_digest:
            logger.warning("Content digest mismatch, archive modified after signing")
            return self._reject(
                Reason.CONTENT_MODIFIED, manifest=manifest, digest=digest, members=entries
            )
        notify(VerifyState.DIGEST_CHECKED)
        logger.debug(f"Digest matches: {digest}")

        scheme = self.check_signature(manifest)
        notify(VerifyState.SIGNATURE_CHECKED)
        if scheme is None:
            logger.warning("Signature does not match manifest")
            return self._reject(
                Reason.INVALID_SIGNATURE, manifest=manifest, digest=digest, members=entries
            )

        notify(VerifyState.VERIFIED)
        logger.info(f"✅ Verified: signed by '{manifest.creator_id}' at {manifest.timestamp}")
        return VerificationResult(
            state=VerifyState.VERIFIED,
            reason=Reason.VERIFIED,
            message=MESSAGES[Reason.VERIFIED],
            manifest=manifest,
            computed_digest=digest,
            scheme=scheme,
            members=entries,
        )

    def check_signature(self, manifest: Manifest) -> Optional[str]:
        """
        Returns 'current' or 'legacy' for whichever payload verifies,
        None if neither does. The legacy payload is only tried for
        manifests without file_structure and encrypted.
        """
        try:
            public_key = keys.import_public_key(manifest.public_key)
            signature = b64decode(manifest.signature)
        except (KeyImportError, binascii.Error, ValueError, TypeError) as e:
            logger.warning(f"Cannot read key or signature: {e}")
            return None

        if self.verify_current(manifest, public_key, signature):
            return 'current'
        if manifest.is_legacy and self.verify_legacy(manifest, public_key, signature):
            return 'legacy'
        return None

    def verify_current(self, manifest: Manifest, public_key, signature: bytes) -> bool:
        return keys.verify(public_key, signature, self.codec.canonicalize(manifest))

    def verify_legacy(self, manifest: Manifest, public_key, signature: bytes) -> bool:
        return keys.verify(public_key, signature, self.codec.legacy_payload(manifest))

    def check_private_key(self, private_key_pem: str, manifest: Manifest) -> KeyCheckResult:
        """
        Does this private key belong to the manifest's public key?
        Signs fixed test data and verifies it; no key material is compared.
        """
        try:
            private_key = keys.import_private_key(private_key_pem)
            public_key = keys.import_public_key(manifest.public_key)
            matched = keys.verify(public_key, keys.sign(private_key, PROBE_DATA), PROBE_DATA)
        except (KeyImportError, ValueError, TypeError) as e:
            logger.warning(f"Private key check failed: {e}")
            return KeyCheckResult(False, f"Error: {e}")

        if matched:
            logger.info("✅ Private key matches the signature's public key")
            return KeyCheckResult(True, "Private key matches this signature")
        logger.warning("Private key does not match the signature's public key")
        return KeyCheckResult(False, "Private key does not match this signature")

    def _reject(
        self,
        reason: Reason,
        manifest: Manifest = None,
        digest: str = None,
        members: Dict[str, bytes] = None,
        detail: str = None
    ) -> VerificationResult:
        message = MESSAGES[reason]
        if detail:
            message = f"{message}: {detail}"
        return VerificationResult(
            state=VerifyState.REJECTED,
            reason=reason,
            message=message,
            manifest=manifest,
            computed_digest=digest,
            members=members or {},
        )


__all__ = [
    "Verifier",
    "VerificationResult",
    "KeyCheckResult",
    "VerifyState",
    "Reason",
    "read_archive",
    "PROBE_DATA",
    "ARCHIVE_ERRORS",
]
