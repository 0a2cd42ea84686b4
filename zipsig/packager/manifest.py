"""
ZipSig Manifest
Data model of the .zipsig record and its two encodings:
the canonical signing payload and the pretty-printed storage form.
"""
import base64
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..errors import ManifestError
from ..utils.checksum import MANIFEST_NAME

TOOL_TAG = "zipsig"

# Signed key order. Never derive this from a dict's iteration order.
CANONICAL_FIELDS = ("creator_id", "timestamp", "file_hash", "tool")
OPTIONAL_CANONICAL_FIELDS = ("file_structure", "encrypted")

REQUIRED_KEYS = ("creator_id", "timestamp", "file_hash", "signature", "public_key")


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def b64decode(text: str) -> bytes:
    return base64.b64decode(text, validate=True)


@dataclass(frozen=True)
class MemberInfo:
    member_path: str
    size: Optional[int]
    iv: Optional[str] = None
    salt: Optional[str] = None
    is_encrypted: Optional[bool] = None

    @property
    def needs_decryption(self) -> bool:
        return bool(self.is_encrypted and self.iv and self.salt)

    def to_dict(self) -> Dict[str, Any]:
        data = {'path': self.member_path}
        if self.size is not None:
            data['size'] = self.size
        if self.iv is not None:
            data['iv'] = self.iv
        if self.salt is not None:
            data['salt'] = self.salt
        if self.is_encrypted is not None:
            data['encrypted'] = self.is_encrypted
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberInfo":
        if not isinstance(data, dict) or 'path' not in data:
            raise ManifestError("file_structure entry without 'path'")
        size = data.get('size')
        if size is not None and (isinstance(size, bool) or not isinstance(size, int)):
            raise ManifestError(f"file_structure entry {data['path']!r} has a non-integer size")
        return cls(
            member_path=data['path'],
            size=size,
            iv=data.get('iv'),
            salt=data.get('salt'),
            is_encrypted=data.get('encrypted'),
        )


@dataclass(frozen=True)
class Manifest:
    creator_id: str
    timestamp: str
    content_digest: str
    signature: str = ""
    public_key: str = ""
    tool: Optional[str] = TOOL_TAG
    member_list: Optional[List[MemberInfo]] = field(default=None)
    is_encrypted: Optional[bool] = None

    @property
    def is_legacy(self) -> bool:
        """Legacy manifests predate file_structure/encrypted"""
        return self.member_list is None and self.is_encrypted is None

    @property
    def is_signed(self) -> bool:
        return bool(self.signature and self.public_key)

    def members_by_path(self) -> Dict[str, MemberInfo]:
        return {info.member_path: info for info in self.member_list or []}

    def member(self, path: str) -> Optional[MemberInfo]:
        return self.members_by_path().get(path)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'creator_id': self.creator_id,
            'timestamp': self.timestamp,
            'file_hash': self.content_digest,
            'signature': self.signature,
            'public_key': self.public_key,
        }
        if self.tool is not None:
            data['tool'] = self.tool
        if self.member_list is not None:
            data['file_structure'] = [m.to_dict() for m in self.member_list]
        if self.is_encrypted is not None:
            data['encrypted'] = self.is_encrypted
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        if not isinstance(data, dict):
            raise ManifestError("Manifest is not a JSON object")
        for key in REQUIRED_KEYS:
            if key not in data:
                raise ManifestError(f"Missing required key: {key}")
            if not isinstance(data[key], str):
                raise ManifestError(f"Key '{key}' must be a string")

        structure = data.get('file_structure')
        if structure is not None and not isinstance(structure, list):
            raise ManifestError("file_structure must be a list")

        return cls(
            creator_id=data['creator_id'],
            timestamp=data['timestamp'],
            content_digest=data['file_hash'],
            signature=data['signature'],
            public_key=data['public_key'],
            tool=data.get('tool'),
            member_list=(
                [MemberInfo.from_dict(item) for item in structure]
                if structure is not None else None
            ),
            is_encrypted=data.get('encrypted'),
        )


class ManifestCodec:
    NAME = MANIFEST_NAME

    def create_manifest(
        self,
        creator_id: str,
        timestamp: str,
        content_digest: str,
        members: Optional[List[MemberInfo]] = None,
        encrypted: Optional[bool] = None
    ) -> Manifest:
        """Unsigned draft: signature and public_key stay empty"""
        return Manifest(
            creator_id=creator_id,
            timestamp=timestamp,
            content_digest=content_digest,
            tool=TOOL_TAG,
            member_list=list(members) if members is not None else None,
            is_encrypted=encrypted,
        )

    def add_member(
        self,
        path: str,
        size: int,
        salt: bytes = None,
        iv: bytes = None,
        encrypted: Optional[bool] = None
    ) -> MemberInfo:
        """Helper to create a file_structure entry"""
        return MemberInfo(
            member_path=path,
            size=size,
            iv=b64encode(iv) if iv is not None else None,
            salt=b64encode(salt) if salt is not None else None,
            is_encrypted=encrypted,
        )

    def with_signature(self, manifest: Manifest, signature: bytes, public_key_pem: str) -> Manifest:
        return replace(manifest, signature=b64encode(signature), public_key=public_key_pem)

    def canonicalize(self, manifest: Manifest) -> bytes:
        """
        Compact JSON signing payload. Fixed field order; signature and
        public_key are never part of it.
        """
        full = manifest.to_dict()
        ordered = {}
        for key in CANONICAL_FIELDS:
            if key in full:
                ordered[key] = full[key]
        for key in OPTIONAL_CANONICAL_FIELDS:
            if key in full:
                ordered[key] = full[key]
        return json.dumps(ordered, separators=(',', ':'), ensure_ascii=False).encode('utf-8')

    def legacy_payload(self, manifest: Manifest) -> bytes:
        return (manifest.creator_id + manifest.timestamp + manifest.content_digest).encode('utf-8')

    def serialize(self, manifest: Manifest) -> bytes:
        return json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False).encode('utf-8')

    def parse(self, data: bytes) -> Manifest:
        try:
            raw = json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestError(f"Manifest is not valid JSON: {e}") from e
        return Manifest.from_dict(raw)

    def load_manifest(self, manifest_path: str) -> Manifest:
        """Load manifest from a .zipsig file on disk"""
        with open(manifest_path, 'rb') as f:
            return self.parse(f.read())


__all__ = [
    "Manifest",
    "MemberInfo",
    "ManifestCodec",
    "CANONICAL_FIELDS",
    "TOOL_TAG",
    "b64encode",
    "b64decode",
]
