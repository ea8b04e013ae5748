# Tests for settings, backend selection and logging setup.
# Created: 2026-10-19

import logging

import pytest
from rich.logging import RichHandler

from soundshelf.config import Settings
from soundshelf.errors import ConfigurationError
from soundshelf.logging_setup import setup_logging
from soundshelf.storage.factory import build_backend
from soundshelf.storage.filesystem import FilesystemBackend
from soundshelf.storage.object_store import ObjectStoreBackend


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "SOUNDSHELF_BACKEND",
        "SOUNDSHELF_ZONE",
        "QINIU_ZONE",
        "SOUNDSHELF_ENDPOINT_URL",
        "SOUNDSHELF_STORAGE_PATH",
        "STORAGE_PATH",
        "SOUNDSHELF_PORT",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.backend == "local"
        assert settings.port == 3000
        assert settings.region == "cn-east-1"

    def test_qiniu_env_names(self, monkeypatch):
        monkeypatch.setenv("QINIU_BUCKET", "media")
        monkeypatch.setenv("QINIU_ZONE", "na0")
        settings = Settings()
        assert settings.bucket == "media"
        assert settings.region == "us-north-1"
        assert settings.resolved_endpoint_url == "https://s3.us-north-1.qiniucs.com"

    def test_port_fallback(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert Settings().port == 8080

    @pytest.mark.parametrize("value", ["s3", "qiniu", "object-store", "OBJECT_STORE"])
    def test_backend_aliases(self, monkeypatch, value):
        monkeypatch.setenv("SOUNDSHELF_BACKEND", value)
        assert Settings().backend == "object_store"

    def test_explicit_endpoint_wins(self):
        settings = Settings(endpoint_url="http://localhost:9000")
        assert settings.resolved_endpoint_url == "http://localhost:9000"

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("SOUNDSHELF_BACKEND=fs\n")
        assert Settings().backend == "local"


class TestBuildBackend:
    def test_filesystem(self, tmp_path):
        backend = build_backend(Settings(storage_path=tmp_path / "store"))
        assert isinstance(backend, FilesystemBackend)
        assert (tmp_path / "store").is_dir()

    def test_object_store(self):
        settings = Settings(
            backend="object_store",
            access_key="ak",
            secret_key="sk",
            bucket="media",
            domain="cdn.example.com",
        )
        backend = build_backend(settings)
        assert isinstance(backend, ObjectStoreBackend)
        assert backend.endpoint_url == "https://s3.cn-east-1.qiniucs.com"

    def test_object_store_missing_fields(self, monkeypatch):
        for name in ("SOUNDSHELF_SECRET_KEY", "QINIU_SECRET_KEY", "SOUNDSHELF_DOMAIN", "QINIU_DOMAIN"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(backend="object_store", access_key="ak", bucket="media")
        with pytest.raises(ConfigurationError, match="secret_key, domain"):
            build_backend(settings)


class TestLogging:
    def test_setup_is_idempotent(self):
        setup_logging("DEBUG")
        setup_logging("INFO")
        handlers = [h for h in logging.getLogger().handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("botocore").level == logging.WARNING
