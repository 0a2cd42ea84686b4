"""
ZipSig CLI Commands
Executable modules for signing, verifying, extracting and inspecting archives.
"""

from . import sign
from . import verify
from . import extract
from . import inspect
from . import checkkey

__all__ = ["sign", "verify", "extract", "inspect", "checkkey"]
