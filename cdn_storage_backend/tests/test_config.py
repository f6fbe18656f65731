import pathlib

import pytest

from src.api.config import DEFAULT_MAX_UPLOAD_BYTES, Settings, load_settings

pytestmark = pytest.mark.unit

_VARS = (
    "STORAGE_PATH",
    "PUBLIC_BASE_URL",
    "MAX_UPLOAD_BYTES",
    "CORS_ALLOW_ORIGINS",
    "HOST",
    "PORT",
    "WEB_CONCURRENCY",
    "LOG_LEVEL",
    "LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = load_settings()
    assert s.storage_root == pathlib.Path("/var/cdn-storage").resolve()
    assert s.public_base_url == "https://cdn.citydash.kz"
    assert s.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert s.cors_allow_origins == ["*"]
    assert s.port == 3050
    assert s.workers == 1
    assert s.log_dir is None


def test_overrides(clean_env, tmp_path):
    clean_env.setenv("STORAGE_PATH", str(tmp_path / "store"))
    clean_env.setenv("PUBLIC_BASE_URL", "https://files.example.test/")
    clean_env.setenv("MAX_UPLOAD_BYTES", "2048")
    clean_env.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
    clean_env.setenv("WEB_CONCURRENCY", "3")
    clean_env.setenv("LOG_LEVEL", "debug")
    s = load_settings()
    assert s.storage_root == (tmp_path / "store").resolve()
    assert s.public_base_url == "https://files.example.test"
    assert s.max_upload_bytes == 2048
    assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
    assert s.workers == 3
    assert s.log_level == "DEBUG"


def test_invalid_int_is_fatal(clean_env):
    clean_env.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT"):
        load_settings()


def test_settings_are_immutable(tmp_path):
    s = Settings(storage_root=tmp_path)
    with pytest.raises(Exception):
        s.storage_root = tmp_path / "other"
