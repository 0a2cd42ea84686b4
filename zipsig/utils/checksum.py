"""
ZipSig Checksum Utility
Order-independent SHA-256 digest over archive members.
"""
import hashlib
from typing import Iterable, Mapping, Tuple, Union

MANIFEST_NAME = ".zipsig"

Members = Union[Mapping[str, bytes], Iterable[Tuple[str, bytes]]]


def ordered_members(members: Members) -> list:
    """
    Returns (path, payload) pairs sorted by the UTF-8 bytes of the path,
    with the manifest entry removed.
    """
    items = members.items() if isinstance(members, Mapping) else members
    kept = [(path, data) for path, data in items if path != MANIFEST_NAME]
    return sorted(kept, key=lambda item: item[0].encode('utf-8'))


def compute_content_digest(members: Members) -> str:
    """
    Calculates the content digest of an archive.

    Payloads are hashed in ordinal path order with no delimiters, so the
    result does not depend on the physical order of members in the ZIP.

    Args:
        members: mapping or iterable of (path, stored bytes)

    Returns:
        str: lowercase hexadecimal SHA-256
    """
    digest = hashlib.sha256()
    for _, data in ordered_members(members):
        digest.update(data)
    return digest.hexdigest()


__all__ = [
    "MANIFEST_NAME",
    "ordered_members",
    "compute_content_digest",
]
