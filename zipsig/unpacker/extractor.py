"""
ZipSig Extractor
Decrypts the members of a signed archive and writes them out,
either as a directory tree or as a fresh plain ZIP.
"""
import io
import os
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from ..config import config
from ..errors import DecryptionError, ManifestError, ValidationError
from ..packager.manifest import Manifest, ManifestCodec, b64decode
from ..utils.checksum import MANIFEST_NAME
from ..utils.encryption import FileCipher
from ..utils.logger import logger
from .verifier import ARCHIVE_ERRORS, read_archive


@dataclass
class ExtractionResult:
    manifest: Manifest
    files: Dict[str, bytes] = field(default_factory=dict, repr=False)
    decrypted: int = 0

    @property
    def zip_name(self) -> str:
        return f"{self.manifest.creator_id or 'files'}_extracted.zip"


def safe_member_path(member_path: str) -> PurePosixPath:
    """Reject member names that would escape the output directory"""
    path = PurePosixPath(member_path)
    if path.is_absolute() or '..' in path.parts or not path.parts:
        raise ValidationError(f"Unsafe member path: {member_path}")
    return path


class Extractor:
    def __init__(self, cipher: FileCipher = None, max_workers: int = None):
        self.cipher = cipher or FileCipher()
        self.codec = ManifestCodec()
        self.max_workers = max_workers or config.max_workers or min(32, (os.cpu_count() or 4) * 2)

    def extract_bytes(self, data: bytes, password: Optional[str] = None) -> ExtractionResult:
        """
        Decrypt every encrypted member. Nothing is returned if any member
        fails: the first DecryptionError aborts the whole extraction.

        Args:
            data: signed archive bytes
            password: required when the manifest marks members as encrypted

        Returns:
            ExtractionResult with plaintext bytes by member path
        """
        try:
            entries = read_archive(data)
        except ARCHIVE_ERRORS as e:
            raise ManifestError(f"Not a readable ZIP archive: {e}") from e

        if MANIFEST_NAME not in entries:
            raise ManifestError("No .zipsig file found")
        manifest = self.codec.parse(entries.pop(MANIFEST_NAME))

        # Per-member flags decide; the archive-level flag is informational
        listed = manifest.members_by_path()
        pending = {
            path: listed[path]
            for path in entries
            if path in listed and listed[path].needs_decryption
        }

        if pending:
            # Presence only; length limits apply when signing
            if not password:
                raise ValidationError("Password is required to decrypt this archive")
            logger.info(f"🔓 Decrypting {len(pending)} file(s)...")

        files = dict(entries)
        if pending:
            files.update(self._decrypt_all(entries, pending, password))

        return ExtractionResult(manifest=manifest, files=files, decrypted=len(pending))

    def _decrypt_all(self, entries, pending, password) -> Dict[str, bytes]:
        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_path = {
                executor.submit(self._decrypt_one, path, entries[path], info, password): path
                for path, info in pending.items()
            }
            try:
                for future in as_completed(future_to_path):
                    path = future_to_path[future]
                    results[path] = future.result()
            except DecryptionError as e:
                for pending_future in future_to_path:
                    pending_future.cancel()
                logger.error(f"Decryption failed: {e.member_path}")
                raise
        return results

    def _decrypt_one(self, path, ciphertext, info, password) -> bytes:
        try:
            salt = b64decode(info.salt)
            iv = b64decode(info.iv)
        except ValueError as e:
            raise DecryptionError("Invalid salt or IV", member_path=path) from e
        return self.cipher.decrypt_member(ciphertext, password, salt, iv, member_path=path)

    def extract_file(
        self,
        archive_path: str,
        output_dir: str,
        password: Optional[str] = None
    ) -> dict:
        """Decrypt an archive on disk into output_dir, keeping member paths"""
        start_time = time.time()
        with open(archive_path, 'rb') as f:
            result = self.extract_bytes(f.read(), password)

        # Check every path before writing anything
        targets = {path: safe_member_path(path) for path in result.files}

        out_dir = Path(output_dir)
        for path, relative in targets.items():
            target = out_dir.joinpath(*relative.parts)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(result.files[path])

        elapsed = time.time() - start_time
        logger.info(f"✅ Extracted {len(result.files)} file(s) to {out_dir}")
        return {
            'success': True,
            'output_dir': str(out_dir),
            'files': sorted(result.files),
            'decrypted': result.decrypted,
            'time': elapsed
        }

    def repackage(self, result: ExtractionResult) -> bytes:
        """Plain ZIP of the decrypted members, no manifest"""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(result.files):
                zf.writestr(path, result.files[path])
        return buffer.getvalue()

    def extract_to_zip(
        self,
        archive_path: str,
        output_dir: str,
        password: Optional[str] = None
    ) -> str:
        with open(archive_path, 'rb') as f:
            result = self.extract_bytes(f.read(), password)

        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / result.zip_name
        out_path.write_bytes(self.repackage(result))
        logger.info(f"✅ Extracted archive saved: {out_path}")
        return str(out_path)


__all__ = ["Extractor", "ExtractionResult", "safe_member_path"]
