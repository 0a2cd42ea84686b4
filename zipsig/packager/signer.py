"""
ZipSig Signer
Builds a signed ZIP: optional per-member encryption, content digest,
RSA-PSS signature over the canonical manifest, .zipsig written last.
"""
import io
import os
import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import config
from ..errors import ValidationError
from ..utils.checksum import MANIFEST_NAME, compute_content_digest
from ..utils.encryption import FileCipher
from ..utils.files import collect_members
from ..utils.logger import logger
from ..utils.passwords import validate_encryption_password
from ..utils.timesource import TimeSource
from . import keys
from .manifest import Manifest, ManifestCodec


class SignState(Enum):
    COLLECTING = "collecting"
    HASHING = "hashing"
    SIGNING = "signing"
    SIGNED = "signed"


@dataclass
class SignResult:
    archive: bytes
    manifest: Manifest
    private_key_pem: str
    password: Optional[str] = None

    def save(self, output_dir: str, folder_name: str = '') -> Dict[str, str]:
        """
        Write each artifact to its own file. Returns {artifact: path}.
        The password file is only written when encryption was used.
        """
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        paths = {
            'archive': out / (f"{folder_name}_signed.zip" if folder_name else 'signed_files.zip'),
            'private_key': out / f"{folder_name or 'files'}_private_key.pem",
        }
        if self.password:
            paths['password'] = out / (
                f"{folder_name}_password.txt" if folder_name else 'files_password.txt'
            )

        paths['archive'].write_bytes(self.archive)
        paths['private_key'].write_text(self.private_key_pem, encoding='utf-8')
        if 'password' in paths:
            paths['password'].write_text(self.password, encoding='utf-8')

        for name, path in paths.items():
            logger.info(f"   Saved {name}: {path}")
        return {name: str(path) for name, path in paths.items()}


class Signer:
    def __init__(
        self,
        time_source: TimeSource = None,
        cipher: FileCipher = None,
        max_workers: int = None
    ):
        self.time_source = time_source or TimeSource()
        self.cipher = cipher or FileCipher()
        self.codec = ManifestCodec()
        self.max_workers = max_workers or config.max_workers or min(32, (os.cpu_count() or 4) * 2)

    def sign_paths(
        self,
        inputs: List[str],
        creator_id: str,
        encrypt: bool = False,
        password: Optional[str] = None,
        password_confirm: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        on_state: Optional[Callable[[SignState], None]] = None
    ) -> SignResult:
        """Sign files and directories from disk. See sign_members."""
        self._validate(creator_id, encrypt, password, password_confirm)
        members, _ = collect_members(inputs)
        return self.sign_members(
            members, creator_id, encrypt, password, password_confirm, cancel_event, on_state
        )

    def sign_members(
        self,
        members: Dict[str, bytes],
        creator_id: str,
        encrypt: bool = False,
        password: Optional[str] = None,
        password_confirm: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        on_state: Optional[Callable[[SignState], None]] = None
    ) -> SignResult:
        """
        Produce a signed archive.

        Args:
            members: {member_path: plaintext bytes}
            creator_id: free-text signer label stored in the manifest
            encrypt: encrypt every member with `password`
            password / password_confirm: required when encrypt is set;
                confirm defaults to password when omitted
            cancel_event: abandons a pending timestamp fetch when set
            on_state: called with each SignState as the operation advances

        Returns:
            SignResult with archive bytes, manifest, private key PEM and
            the password if one was used
        """
        start_time = time.time()
        notify = on_state or (lambda state: None)

        self._validate(creator_id, encrypt, password, password_confirm)
        if not members:
            raise ValidationError("No files to sign")
        if MANIFEST_NAME in members:
            raise ValidationError(f"'{MANIFEST_NAME}' is reserved for the signature manifest")

        notify(SignState.COLLECTING)
        logger.info(f"Signing {len(members)} file(s) as '{creator_id}'"
                    f"{' [encrypted]' if encrypt else ''}")

        timestamp = self.time_source.get_trusted_timestamp(cancel_event)
        logger.info(f"   Timestamp: {timestamp}")

        stored, member_list = self._prepare_members(members, password if encrypt else None)

        notify(SignState.HASHING)
        digest = compute_content_digest(stored)
        logger.info(f"   Digest:    {digest}")

        notify(SignState.SIGNING)
        draft = self.codec.create_manifest(
            creator_id=creator_id,
            timestamp=timestamp,
            content_digest=digest,
            members=member_list,
            encrypted=True if encrypt else None,
        )
        private_key, public_key = keys.generate_keypair()
        signature = keys.sign(private_key, self.codec.canonicalize(draft))
        manifest = self.codec.with_signature(draft, signature, keys.export_public_key(public_key))

        archive = self._write_archive(stored, manifest)
        notify(SignState.SIGNED)

        elapsed = time.time() - start_time
        logger.info(f" Signing Complete!")
        logger.info(f"   Files:     {len(stored)}")
        logger.info(f"   Archive:   {len(archive)/1024:.2f} KB")
        logger.info(f"   Time:      {elapsed:.2f}s")

        return SignResult(
            archive=archive,
            manifest=manifest,
            private_key_pem=keys.export_private_key(private_key),
            password=password if encrypt else None,
        )

    def _validate(self, creator_id, encrypt, password, password_confirm):
        if not creator_id or not creator_id.strip():
            raise ValidationError("Creator ID is required")
        if encrypt:
            confirm = password if password_confirm is None else password_confirm
            validate_encryption_password(password, confirm)

    def _prepare_members(self, members: Dict[str, bytes], password: Optional[str]):
        """Returns (stored bytes by path, MemberInfo list in input order)"""
        paths = list(members)

        if password is None:
            infos = [self.codec.add_member(p, len(members[p])) for p in paths]
            return dict(members), infos

        def encrypt_one(path):
            return self.cipher.encrypt_member(members[path], password)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            encrypted = list(executor.map(encrypt_one, paths))

        stored = {}
        infos = []
        for path, result in zip(paths, encrypted):
            stored[path] = result.ciphertext
            infos.append(self.codec.add_member(
                path,
                len(members[path]),
                salt=result.salt,
                iv=result.iv,
                encrypted=True,
            ))
        logger.info(f"   Encrypted: {len(paths)} file(s)")
        return stored, infos

    def _write_archive(self, stored: Dict[str, bytes], manifest: Manifest) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            for path, data in stored.items():
                zf.writestr(path, data)
            zf.writestr(MANIFEST_NAME, self.codec.serialize(manifest))
        return buffer.getvalue()


__all__ = ["Signer", "SignResult", "SignState"]
