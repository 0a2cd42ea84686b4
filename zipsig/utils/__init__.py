from .logger import logger
from .checksum import MANIFEST_NAME, compute_content_digest

__all__ = ["logger", "MANIFEST_NAME", "compute_content_digest"]
