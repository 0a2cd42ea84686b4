import json

from zipsig.config import CONFIG_ENV_VAR, DEFAULTS, ZipSigConfig


def test_defaults_without_file(tmp_path):
    cfg = ZipSigConfig(str(tmp_path / 'missing.json'))
    assert cfg.retry_base_delay == 2.0
    assert cfg.retry_growth == 1.5
    assert cfg.retry_max_delay == 30.0
    assert cfg.time_timeout == 8.0
    assert cfg.min_password_length == 8
    assert cfg.max_workers is None


def test_file_merges_over_defaults(tmp_path):
    path = tmp_path / 'zipsig.config.json'
    path.write_text(json.dumps({'time': {'max_delay': 10}, 'workers': {'max_workers': 2}}))

    cfg = ZipSigConfig(str(path))
    assert cfg.retry_max_delay == 10
    assert cfg.retry_base_delay == 2.0
    assert cfg.max_workers == 2


def test_invalid_json_keeps_defaults(tmp_path):
    path = tmp_path / 'zipsig.config.json'
    path.write_text('{broken')
    cfg = ZipSigConfig(str(path))
    assert cfg.time_url == DEFAULTS['time']['url']


def test_get_set_and_save(tmp_path):
    cfg = ZipSigConfig(str(tmp_path / 'missing.json'))
    cfg.set('encryption', 'min_password_length', 12)
    assert cfg.get('encryption', 'min_password_length') == 12
    assert cfg.get('nope', 'missing', default='x') == 'x'

    out = tmp_path / 'saved.json'
    cfg.save(str(out))
    assert json.loads(out.read_text())['encryption']['min_password_length'] == 12


def test_defaults_not_mutated(tmp_path):
    cfg = ZipSigConfig(str(tmp_path / 'missing.json'))
    cfg.set('time', 'max_delay', 1)
    assert DEFAULTS['time']['max_delay'] == 30.0


def test_dotted_get(tmp_path):
    cfg = ZipSigConfig(str(tmp_path / 'missing.json'))
    assert cfg.get('time.base_delay') == 2.0


def test_non_positive_values_rejected(tmp_path):
    path = tmp_path / 'zipsig.config.json'
    path.write_text(json.dumps({'time': {'base_delay': -1}}))
    cfg = ZipSigConfig(str(path))
    assert cfg.retry_base_delay == 2.0


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / 'custom.json'
    path.write_text(json.dumps({'encryption': {'min_password_length': 10}}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert ZipSigConfig().min_password_length == 10
