import hashlib
import json

import pytest

from zipsig.packager import keys
from zipsig.packager.manifest import Manifest, ManifestCodec, MemberInfo, b64decode
from zipsig.unpacker.verifier import PROBE_DATA, Reason, Verifier, VerifyState
from zipsig.utils.checksum import MANIFEST_NAME, compute_content_digest

from .conftest import FIXED_TIMESTAMP, patch_headers, rezip, unzip


def replace_manifest(archive: bytes, **changes) -> bytes:
    entries = unzip(archive)
    raw = json.loads(entries[MANIFEST_NAME])
    raw.update(changes)
    entries[MANIFEST_NAME] = json.dumps(raw, indent=2).encode('utf-8')
    return rezip(entries)


def build_archive(members, manifest):
    entries = dict(members)
    entries[MANIFEST_NAME] = ManifestCodec().serialize(manifest)
    return rezip(entries)


def signed_legacy_manifest(members, keypair, **extra):
    codec = ManifestCodec()
    private_key, public_key = keypair
    draft = Manifest(
        creator_id='alice',
        timestamp=FIXED_TIMESTAMP,
        content_digest=compute_content_digest(members),
        **extra,
    )
    signature = keys.sign(private_key, codec.legacy_payload(draft))
    return codec.with_signature(draft, signature, keys.export_public_key(public_key))


def test_round_trip_verifies(signer, verifier, sample_files):
    result = verifier.verify_bytes(signer.sign_members(sample_files, 'alice').archive)

    assert result.is_valid
    assert result.reason is Reason.VERIFIED
    assert result.state is VerifyState.VERIFIED
    assert result.scheme == 'current'
    assert result.computed_digest == hashlib.sha256(b'xyz').hexdigest()
    assert result.manifest.creator_id == 'alice'
    assert result.members == sample_files


def test_states_in_order(signer, verifier, sample_files):
    seen = []
    verifier.verify_bytes(signer.sign_members(sample_files, 'alice').archive, on_state=seen.append)
    assert seen == [
        VerifyState.LOADED,
        VerifyState.DIGEST_CHECKED,
        VerifyState.SIGNATURE_CHECKED,
        VerifyState.VERIFIED,
    ]


def test_encrypted_archive_verifies(signer, verifier, sample_files):
    signed = signer.sign_members(sample_files, 'alice', encrypt=True, password='correct-horse-1')
    result = verifier.verify_bytes(signed.archive)
    assert result.is_valid
    assert result.manifest.is_encrypted is True


def test_member_order_in_zip_does_not_matter(signer, verifier, sample_files):
    entries = unzip(signer.sign_members(sample_files, 'alice').archive)
    reordered = {name: entries[name] for name in sorted(entries, reverse=True)}
    assert verifier.verify_bytes(rezip(reordered)).is_valid


@pytest.mark.parametrize("path", ['a.txt', 'b/c.txt', 'd.txt'])
def test_tampered_member_detected(signer, verifier, sample_files, path):
    entries = unzip(signer.sign_members(sample_files, 'alice').archive)
    entries[path] = bytes([entries[path][0] ^ 0x01]) + entries[path][1:]

    result = verifier.verify_bytes(rezip(entries))
    assert not result.is_valid
    assert result.reason is Reason.CONTENT_MODIFIED
    assert result.manifest is not None
    assert result.manifest.creator_id == 'alice'


def test_added_member_detected(signer, verifier, sample_files):
    entries = unzip(signer.sign_members(sample_files, 'alice').archive)
    entries['extra.txt'] = b'!'
    assert verifier.verify_bytes(rezip(entries)).reason is Reason.CONTENT_MODIFIED


def test_substituted_public_key_rejected(signer, verifier, sample_files, other_keypair):
    archive = signer.sign_members(sample_files, 'alice').archive
    forged = replace_manifest(archive, public_key=keys.export_public_key(other_keypair[1]))

    result = verifier.verify_bytes(forged)
    assert result.reason is Reason.INVALID_SIGNATURE
    assert result.computed_digest == result.manifest.content_digest


def test_edited_creator_rejected(signer, verifier, sample_files):
    archive = signer.sign_members(sample_files, 'alice').archive
    result = verifier.verify_bytes(replace_manifest(archive, creator_id='mallory'))
    assert result.reason is Reason.INVALID_SIGNATURE


def test_garbage_public_key_rejected(signer, verifier, sample_files):
    archive = signer.sign_members(sample_files, 'alice').archive
    result = verifier.verify_bytes(replace_manifest(archive, public_key='not a key'))
    assert result.reason is Reason.INVALID_SIGNATURE


def test_garbage_signature_rejected(signer, verifier, sample_files):
    archive = signer.sign_members(sample_files, 'alice').archive
    result = verifier.verify_bytes(replace_manifest(archive, signature='%%%'))
    assert result.reason is Reason.INVALID_SIGNATURE


def test_legacy_manifest_verifies_via_fallback(verifier, sample_files, keypair):
    manifest = signed_legacy_manifest(sample_files, keypair)
    assert manifest.is_legacy

    result = verifier.verify_bytes(build_archive(sample_files, manifest))
    assert result.is_valid
    assert result.scheme == 'legacy'

    public_key = keys.import_public_key(manifest.public_key)
    signature = b64decode(manifest.signature)
    assert not verifier.verify_current(manifest, public_key, signature)
    assert verifier.verify_legacy(manifest, public_key, signature)


def test_legacy_payload_not_tried_for_structured_manifest(verifier, sample_files, keypair):
    # Signed the legacy way but carries an encrypted flag: stays on the current scheme
    manifest = signed_legacy_manifest(sample_files, keypair, is_encrypted=False)
    result = verifier.verify_bytes(build_archive(sample_files, manifest))
    assert result.reason is Reason.INVALID_SIGNATURE

    manifest = signed_legacy_manifest(
        sample_files, keypair, member_list=[MemberInfo(p, len(d)) for p, d in sample_files.items()]
    )
    assert verifier.verify_bytes(build_archive(sample_files, manifest)).reason is Reason.INVALID_SIGNATURE



def test_members_without_size_verify(verifier, sample_files, keypair):
    codec = ManifestCodec()
    private_key, public_key = keypair
    draft = codec.create_manifest(
        creator_id='alice',
        timestamp=FIXED_TIMESTAMP,
        content_digest=compute_content_digest(sample_files),
        members=[MemberInfo(path, None) for path in sample_files],
    )
    assert b'"size"' not in codec.canonicalize(draft)
    signature = keys.sign(private_key, codec.canonicalize(draft))
    manifest = codec.with_signature(draft, signature, keys.export_public_key(public_key))

    result = verifier.verify_bytes(build_archive(sample_files, manifest))
    assert result.is_valid
    assert result.scheme == 'current'

def test_manifest_missing(verifier, sample_files):
    result = verifier.verify_bytes(rezip(sample_files))
    assert result.reason is Reason.MANIFEST_MISSING
    assert result.state is VerifyState.REJECTED
    assert result.manifest is None


def test_not_a_zip(verifier):
    result = verifier.verify_bytes(b'definitely not a zip file')
    assert result.reason is Reason.MALFORMED_ARCHIVE


@pytest.mark.parametrize("patch", [
    {'method': 99},
    {'flag_bits': 0x1},
], ids=['unsupported-compression', 'zip-password'])
def test_unreadable_members_are_rejected(verifier, signer, sample_files, patch):
    archive = patch_headers(signer.sign_members(sample_files, 'alice').archive, **patch)
    result = verifier.verify_bytes(archive)
    assert result.state is VerifyState.REJECTED
    assert result.reason is Reason.MALFORMED_ARCHIVE


def test_unreadable_manifest(verifier, sample_files):
    entries = dict(sample_files)
    entries[MANIFEST_NAME] = b'{"creator_id": '
    assert verifier.verify_bytes(rezip(entries)).reason is Reason.MALFORMED_MANIFEST


def test_directory_entries_ignored(signer, verifier, sample_files):
    entries = unzip(signer.sign_members(sample_files, 'alice').archive)
    entries['b/'] = b''
    assert verifier.verify_bytes(rezip(entries)).is_valid


def test_verify_file(signer, verifier, sample_files, tmp_path):
    path = tmp_path / 'signed.zip'
    path.write_bytes(signer.sign_members(sample_files, 'alice').archive)
    assert verifier.verify_file(str(path)).is_valid


def test_private_key_check_matches(signer, verifier, sample_files):
    signed = signer.sign_members(sample_files, 'alice')
    check = verifier.check_private_key(signed.private_key_pem, signed.manifest)
    assert check.matched


def test_private_key_check_rejects_other_key(signer, verifier, sample_files, other_keypair):
    signed = signer.sign_members(sample_files, 'alice')
    other_pem = keys.export_private_key(other_keypair[0])
    check = verifier.check_private_key(other_pem, signed.manifest)
    assert not check.matched


def test_private_key_check_handles_garbage(signer, verifier, sample_files):
    signed = signer.sign_members(sample_files, 'alice')
    check = verifier.check_private_key('not a pem', signed.manifest)
    assert not check.matched
    assert check.message.startswith('Error')


def test_key_check_payload_is_fixed():
    assert PROBE_DATA == b'test_verification_data'
