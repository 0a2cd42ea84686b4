"""
ZipSig File Collection
Turns files and directories on disk into archive members.
"""
from pathlib import Path
from typing import Dict, List, Tuple

from ..errors import ValidationError
from .checksum import MANIFEST_NAME
from .logger import logger


def collect_members(inputs: List[str]) -> Tuple[Dict[str, bytes], str]:
    """
    Read input files into a {member_path: bytes} map.

    A directory contributes every file below it, keyed by a path that starts
    with the directory's own name (e.g. 'photos/2024/a.jpg'). A plain file
    is keyed by its name.

    Returns:
        (members, folder_name) where folder_name is the name of the first
        directory input, or '' when only files were given
    """
    members: Dict[str, bytes] = {}
    folder_name = ''

    for item in inputs:
        path = Path(item)
        if not path.exists():
            raise ValidationError(f"Input not found: {item}")

        if path.is_dir():
            if not folder_name:
                folder_name = path.name
            files = sorted(f for f in path.rglob('*') if f.is_file())
            for f in files:
                member_path = (Path(path.name) / f.relative_to(path)).as_posix()
                _add(members, member_path, f)
        else:
            _add(members, path.name, path)

    logger.debug(f"Collected {len(members)} members")
    return members, folder_name


def _add(members: Dict[str, bytes], member_path: str, source: Path):
    if member_path == MANIFEST_NAME:
        raise ValidationError(f"'{MANIFEST_NAME}' is reserved for the signature manifest")
    if member_path in members:
        raise ValidationError(f"Duplicate member path: {member_path}")
    members[member_path] = source.read_bytes()


__all__ = ["collect_members"]
