import pytest
from pydantic import ValidationError

from kvshim_lib.config.config import CliConfig, load_config, load_yaml_file


def test_load_yaml_file_missing_and_invalid(tmp_path):
    assert load_yaml_file(tmp_path / "missing.yml") == {}
    bad = tmp_path / "bad.yml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml_file(bad)


def test_load_config_reads_all_fields(tmp_path):
    cfg_file = tmp_path / "kvshim.yml"
    cfg_file.write_text(
        "implementation: Redis\n"
        "encoding: msgpack\n"
        "log_level: debug\n"
        "options:\n"
        "  address: cache:6379\n"
        "  db: 2\n",
        encoding="utf-8",
    )
    cfg = load_config(cfg_file)
    assert cfg.implementation == "redis"
    assert cfg.encoding == "msgpack"
    assert cfg.log_level == "debug"
    assert cfg.options == {"address": "cache:6379", "db": 2}


def test_explicit_missing_config_file_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_defaults_and_validation():
    cfg = CliConfig()
    assert cfg.implementation == "memory" and cfg.encoding == "json" and cfg.options == {}
    with pytest.raises(ValidationError):
        CliConfig(implementation="cassandra")
    with pytest.raises(ValidationError):
        CliConfig(encoding="xml")
    with pytest.raises(ValidationError):
        CliConfig(unknown_key=True)


def test_encrypted_encoding_is_rejected():
    with pytest.raises(ValidationError, match="encrypted"):
        CliConfig(encoding="encrypted")
