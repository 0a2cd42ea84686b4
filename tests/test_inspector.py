from zipsig.packager.manifest import MemberInfo
from zipsig.tools.inspector import Inspector, build_tree

from .conftest import FIXED_TIMESTAMP


def test_build_tree():
    tree = build_tree([MemberInfo('a.txt', 1), MemberInfo('b/c.txt', 2), MemberInfo('b/d/e.txt', 3)])
    assert set(tree) == {'a.txt', 'b'}
    assert tree['b']['c.txt'].size == 2
    assert tree['b']['d']['e.txt'].member_path == 'b/d/e.txt'


def test_inspect_archive(signer, sample_files, tmp_path, capsys):
    path = tmp_path / 'signed.zip'
    path.write_bytes(signer.sign_members(sample_files, 'alice', encrypt=True, password='correct-horse-1').archive)

    info = Inspector().inspect(str(path))

    assert info['creator_id'] == 'alice'
    assert info['timestamp'] == FIXED_TIMESTAMP
    assert info['encrypted'] is True
    assert info['member_count'] == 3
    assert info['original_size'] == 3
    assert info['format'] == 'structured'
    assert 'ZipSig Archive Inspection' in capsys.readouterr().out


def test_inspect_quietly(signer, sample_files, tmp_path, capsys):
    path = tmp_path / 'signed.zip'
    path.write_bytes(signer.sign_members(sample_files, 'alice').archive)
    info = Inspector().inspect(str(path), show=False)
    assert info['encrypted'] is False
    assert capsys.readouterr().out == ''
