"""
ZipSig Archive Inspector
Peek at a signed archive's manifest without verifying or decrypting.
"""
import zipfile
from pathlib import Path
from typing import Dict, List

from ..errors import ManifestError
from ..packager.manifest import ManifestCodec, MemberInfo
from ..utils.checksum import MANIFEST_NAME


def build_tree(members: List[MemberInfo]) -> Dict:
    """
    Nest member paths into a directory tree.
    Files map to their MemberInfo, directories to dicts.
    """
    root: Dict = {}
    for info in members:
        parts = info.member_path.split('/')
        node = root
        for part in parts[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                # name already taken by a file
                break
            node = child
        else:
            node[parts[-1]] = info
    return root


class Inspector:
    def __init__(self):
        self.codec = ManifestCodec()

    def inspect(self, package_path: str, show: bool = True) -> dict:
        """
        Read the manifest from an archive (or a bare .zipsig file).
        """
        path = Path(package_path)
        if not path.exists():
            raise ValueError(f"Archive not found: {package_path}")

        if zipfile.is_zipfile(path):
            with zipfile.ZipFile(path) as zf:
                if MANIFEST_NAME not in zf.namelist():
                    raise ManifestError("No .zipsig file found")
                manifest = self.codec.parse(zf.read(MANIFEST_NAME))
                stored_count = len([n for n in zf.namelist() if n != MANIFEST_NAME and not n.endswith('/')])
        else:
            manifest = self.codec.load_manifest(str(path))
            stored_count = None

        members = manifest.member_list or []
        info = {
            'archive_path': str(path),
            'archive_size': path.stat().st_size,
            'creator_id': manifest.creator_id,
            'timestamp': manifest.timestamp,
            'file_hash': manifest.content_digest,
            'tool': manifest.tool,
            'format': 'legacy' if manifest.is_legacy else 'structured',
            'encrypted': bool(manifest.is_encrypted) or any(m.needs_decryption for m in members),
            'member_count': len(members) if manifest.member_list is not None else stored_count,
            'original_size': sum(m.size or 0 for m in members),
            'tree': build_tree(members),
        }

        if show:
            self._print(info)
        return info

    def _print(self, info: dict):
        def fmt_size(b):
            if b is None or b == 0:
                return '0 B'
            if b >= 1024 * 1024:
                return f"{b/1024/1024:.2f} MB"
            if b >= 1024:
                return f"{b/1024:.1f} KB"
            return f"{b} B"

        def walk(node, indent):
            for name in sorted(node):
                child = node[name]
                if isinstance(child, dict):
                    print(f"  {'  ' * indent}{name}/")
                    walk(child, indent + 1)
                else:
                    lock = ' [encrypted]' if child.is_encrypted else ''
                    print(f"  {'  ' * indent}{name}  ({fmt_size(child.size)}){lock}")

        print(f"\n{'='*50}")
        print(f"  ZipSig Archive Inspection")
        print(f"{'='*50}")
        print(f"  File:        {info['archive_path']}")
        print(f"  Creator:     {info['creator_id']}")
        print(f"  Signed at:   {info['timestamp']}")
        print(f"  Tool:        {info['tool'] or 'unknown'}")
        print(f"  Format:      {info['format']}")
        print(f"  Encrypted:   {'yes' if info['encrypted'] else 'no'}")
        print()
        print(f"  Files:       {info['member_count'] if info['member_count'] is not None else 'unknown'}")
        print(f"  Original:    {fmt_size(info['original_size'])}")
        print(f"  Archive:     {fmt_size(info['archive_size'])}")
        print(f"  Hash:        {info['file_hash']}")
        if info['tree']:
            print()
            walk(info['tree'], 0)
        print(f"{'='*50}\n")


__all__ = ["Inspector", "build_tree"]
