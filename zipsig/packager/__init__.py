from .manifest import Manifest, MemberInfo, ManifestCodec
from .signer import Signer, SignResult, SignState

__all__ = ["Manifest", "MemberInfo", "ManifestCodec", "Signer", "SignResult", "SignState"]
