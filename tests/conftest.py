import io
import struct
import zipfile

import pytest

from zipsig.packager import keys
from zipsig.packager.signer import Signer
from zipsig.unpacker.verifier import Verifier
from zipsig.utils.checksum import MANIFEST_NAME

FIXED_TIMESTAMP = "2024-05-01T09:30:12Z"


class FixedTimeSource:
    """Stands in for the network time service"""

    def __init__(self, timestamp=FIXED_TIMESTAMP):
        self.timestamp = timestamp
        self.calls = 0

    def get_trusted_timestamp(self, cancel_event=None):
        self.calls += 1
        return self.timestamp


def unzip(data: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def rezip(entries: dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def patch_headers(data: bytes, method=None, flag_bits=None) -> bytes:
    """Rewrite compression method and/or flag bits in every local and central header"""
    out = bytearray(data)
    # signature, offset of flag bits, offset of method
    for signature, flag_at, method_at in ((b'PK\x03\x04', 6, 8), (b'PK\x01\x02', 8, 10)):
        start = out.find(signature)
        while start != -1:
            if flag_bits is not None:
                struct.pack_into('<H', out, start + flag_at, flag_bits)
            if method is not None:
                struct.pack_into('<H', out, start + method_at, method)
            start = out.find(signature, start + 4)
    return bytes(out)


@pytest.fixture
def time_source():
    return FixedTimeSource()


@pytest.fixture
def signer(time_source):
    return Signer(time_source=time_source, max_workers=4)


@pytest.fixture
def verifier():
    return Verifier()


@pytest.fixture(scope="session")
def keypair():
    return keys.generate_keypair()


@pytest.fixture(scope="session")
def other_keypair():
    return keys.generate_keypair()


@pytest.fixture
def sample_files():
    return {'a.txt': b'x', 'b/c.txt': b'y', 'd.txt': b'z'}


@pytest.fixture
def manifest_name():
    return MANIFEST_NAME
