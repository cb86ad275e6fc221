"""
测试 config.py 模块的多来源合并。
"""

import json

import pytest
from pydantic import ValidationError

from src.qwac.config import Config


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("CONFIG_FILE", "TARGET_FOLDER", "WORKERS", "LOG_LEVEL", "ISSUER_PRIVATE_KEY_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = Config()
    assert cfg.issuer_private_key_path == "certificates/MyRootCA.key"
    assert cfg.issuer_certificate_path == "certificates/MyRootCA.pem"
    assert cfg.target_folder == "certs"
    assert cfg.workers == 1
    assert cfg.issuer_auto_create is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TARGET_FOLDER", "/tmp/out")
    monkeypatch.setenv("WORKERS", "4")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    cfg = Config()
    assert cfg.target_folder == "/tmp/out"
    assert cfg.workers == 4
    assert cfg.log_level == "DEBUG"


def test_config_json(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"issuer_private_key_path": "ca/root.key", "workers": 2}), encoding="utf-8"
    )
    cfg = Config()
    assert cfg.issuer_private_key_path == "ca/root.key"
    assert cfg.workers == 2


def test_env_beats_config_json(tmp_path, monkeypatch):
    (tmp_path / "config.json").write_text(json.dumps({"target_folder": "from-json"}), encoding="utf-8")
    monkeypatch.setenv("TARGET_FOLDER", "from-env")
    assert Config().target_folder == "from-env"


def test_config_file_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"target_folder": "custom"}), encoding="utf-8")
    monkeypatch.setenv("CONFIG_FILE", str(path))
    assert Config().target_folder == "custom"


def test_broken_config_json_is_ignored(tmp_path):
    (tmp_path / "config.json").write_text("{broken", encoding="utf-8")
    assert Config().target_folder == "certs"


def test_workers_must_be_positive():
    with pytest.raises(ValidationError):
        Config(workers=0)


def test_non_object_config_json_is_ignored(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps(["target_folder"]), encoding="utf-8")
    assert Config().target_folder == "certs"
