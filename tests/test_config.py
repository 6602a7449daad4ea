import json

import pytest

from rotating_logging.config import (
    DEFAULT_MAX_SIZE,
    RotatorConfig,
    get_default_config,
    set_default_config,
)
from rotating_logging.naming import DEFAULT_TIME_FORMAT

EXPECTED = dict(
    filename="foo",
    max_size=5,
    max_age=10,
    max_backups=3,
    local_time=True,
    compress=True,
    keep_last_decompressed=2,
    time_format="%H:%M.%S",
    backup_dir="bar",
)


def assert_expected(config):
    for name, value in EXPECTED.items():
        assert getattr(config, name) == value, name


def test_config_defaults():
    config = RotatorConfig()
    assert config.filename == ""
    assert config.max_size == 0
    assert config.max_bytes() == DEFAULT_MAX_SIZE * 1024 * 1024
    assert config.max_age == 0
    assert config.max_backups == 0
    assert config.local_time is False
    assert config.compress is False
    assert config.keep_last_decompressed == 0
    assert config.time_format == DEFAULT_TIME_FORMAT
    assert config.backup_dir == ""


def test_resolved_filename(tmp_path):
    assert RotatorConfig(filename=str(tmp_path / "x.log")).resolved_filename == str(
        tmp_path / "x.log"
    )
    assert RotatorConfig().resolved_filename.endswith("-rotating.log")


def test_empty_time_format_uses_default():
    assert RotatorConfig(time_format="").time_format == DEFAULT_TIME_FORMAT


@pytest.mark.parametrize(
    "settings",
    [
        {"max_size": -1},
        {"max_age": -1},
        {"max_backups": -1},
        {"keep_last_decompressed": -1},
        {"compression_level": 10},
        {"time_format": "%Y-%Q"},
    ],
)
def test_config_validation(settings):
    with pytest.raises(ValueError):
        RotatorConfig(**settings)


def test_from_json():
    data = """
{
    "filename": "foo",
    "maxsize": 5,
    "maxage": 10,
    "maxbackups": 3,
    "localtime": true,
    "compress": true,
    "keeplastdecompressed": 2,
    "timeformat": "%H:%M.%S",
    "backupdir": "bar"
}"""
    assert_expected(RotatorConfig.from_json(data))


def test_from_yaml():
    data = """
filename: foo
maxsize: 5
maxage: 10
maxbackups: 3
localtime: true
compress: true
keeplastdecompressed: 2
timeformat: "%H:%M.%S"
backupdir: bar
"""
    assert_expected(RotatorConfig.from_yaml(data))


def test_from_toml():
    data = """
filename = "foo"
maxsize = 5
maxage = 10
maxbackups = 3
localtime = true
compress = true
keeplastdecompressed = 2
timeformat = "%H:%M.%S"
backupdir = "bar"
"""
    assert_expected(RotatorConfig.from_toml(data))


def test_keys_are_case_insensitive():
    config = RotatorConfig.from_dict(
        {"FileName": "foo", "MaxBackups": 4, "max_age": 7, "KEEP_LAST_DECOMPRESSED": 1}
    )
    assert config.filename == "foo"
    assert config.max_backups == 4
    assert config.max_age == 7
    assert config.keep_last_decompressed == 1


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError, match="unknown"):
        RotatorConfig.from_dict({"filename": "foo", "maxsizemb": 1})


def test_from_file(tmp_path):
    path = tmp_path / "rotate.json"
    path.write_text(json.dumps({"filename": "foo", "maxbackups": 3}))
    config = RotatorConfig.from_file(str(path))
    assert config.filename == "foo"
    assert config.max_backups == 3

    empty_yaml = tmp_path / "rotate.yml"
    empty_yaml.write_text("")
    assert RotatorConfig.from_file(str(empty_yaml)) == RotatorConfig()

    ini = tmp_path / "rotate.ini"
    ini.write_text("[rotate]\n")
    with pytest.raises(ValueError):
        RotatorConfig.from_file(str(ini))


def test_from_env(monkeypatch):
    monkeypatch.setenv("ROTATING_LOG_FILENAME", "/tmp/app.log")
    monkeypatch.setenv("ROTATING_LOG_MAX_SIZE", "20")
    monkeypatch.setenv("ROTATING_LOG_MAX_BACKUPS", "4")
    monkeypatch.setenv("ROTATING_LOG_COMPRESS", "true")
    monkeypatch.setenv("ROTATING_LOG_LOCAL_TIME", "false")

    config = RotatorConfig.from_env()
    assert config.filename == "/tmp/app.log"
    assert config.max_size == 20
    assert config.max_backups == 4
    assert config.compress is True
    assert config.local_time is False
    assert config.max_age == 0


def test_get_default_config():
    set_default_config(None)
    config = get_default_config()
    assert isinstance(config, RotatorConfig)


def test_set_default_config():
    custom_config = RotatorConfig(max_backups=9)
    set_default_config(custom_config)

    assert get_default_config() is custom_config
    set_default_config(None)
