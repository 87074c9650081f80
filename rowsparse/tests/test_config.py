import logging

import pytest

from ..config import BUFFER_LEN, BUFFERS, CONFIG_ENV_VAR, PoolConfig, load_config
from ..errors import ConfigError


def test_defaults(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    cfg = load_config()
    assert cfg == PoolConfig()
    assert cfg.buffers == BUFFERS == 10
    assert cfg.buffer_len == BUFFER_LEN == 100


def test_load_file(tmp_path):
    p = tmp_path / "pool.yaml"
    p.write_text("buffers: 3\nbuffer_len: 42\n")
    cfg = load_config(p)
    assert cfg.to_dict() == dict(buffers=3, buffer_len=42)


def test_load_partial_file(tmp_path):
    p = tmp_path / "pool.yaml"
    p.write_text("buffers: 5\n")
    cfg = load_config(str(p))
    assert cfg.buffers == 5
    assert cfg.buffer_len == BUFFER_LEN


def test_empty_file_is_defaults(tmp_path):
    p = tmp_path / "pool.yaml"
    p.write_text("")
    assert load_config(p) == PoolConfig()


def test_env_var(tmp_path, monkeypatch):
    p = tmp_path / "env.yaml"
    p.write_text("buffers: 2\nbuffer_len: 9\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(p))
    assert load_config() == PoolConfig(buffers=2, buffer_len=9)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_unknown_keys(tmp_path):
    p = tmp_path / "pool.yaml"
    p.write_text("buffers: 2\nbufers: 3\n")
    with pytest.raises(ConfigError):
        load_config(p)


@pytest.mark.parametrize("text", ["- 1\n- 2\n", "[]\n", "0\n", "false\n", "''\n"])
def test_not_a_mapping(tmp_path, text):
    p = tmp_path / "pool.yaml"
    p.write_text(text)
    with pytest.raises(ConfigError):
        load_config(p)


def test_invalid_yaml(tmp_path):
    p = tmp_path / "pool.yaml"
    p.write_text("buffers: [1, 2\n")
    with pytest.raises(ConfigError):
        load_config(p)


@pytest.mark.parametrize("kwargs", [
    dict(buffers=0),
    dict(buffers=-3),
    dict(buffers=2.5),
    dict(buffers=True),
    dict(buffer_len=-1),
    dict(buffer_len="100"),
])
def test_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        PoolConfig(**kwargs)
    with pytest.raises(ValueError):
        PoolConfig.from_dict(kwargs)


def test_load_is_logged(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="rowsparse.config")
    p = tmp_path / "pool.yaml"
    p.write_text("buffers: 3\n")
    load_config(p)
    rec = [r for r in caplog.records if r.name == "rowsparse.config"][-1]
    assert rec.args == (p,)
    assert rec.getMessage() == f"Loaded pool configuration from {p}"
