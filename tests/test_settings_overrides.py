from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

import pytest

from services.ingest import build_default_ingest_service
from settings import DEFAULT_DATA_DIR, get_settings
from storage.partitioned_files import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


_CACHES = (get_settings, build_default_store, build_default_ingest_service)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for name in ("SEDER_CONFIG", "SEDER_DATA_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    _clear_caches(_CACHES)
    yield
    _clear_caches(_CACHES)


def test_defaults_without_config() -> None:
    settings = get_settings()

    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.log_level == "INFO"


def test_config_file_supplies_data_dir(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "custom.yaml"
    config_path.write_text("data_dir: /var/lib/seder\n")
    monkeypatch.setenv("SEDER_CONFIG", str(config_path))

    assert get_settings().data_dir == "/var/lib/seder"


def test_default_config_file_is_read(tmp_path: Path) -> None:
    (tmp_path / "seder.config").write_text("data_dir: ./from-file\n")

    assert get_settings().data_dir == "./from-file"


def test_environment_overrides_apply(monkeypatch, tmp_path: Path) -> None:
    (tmp_path / "seder.config").write_text("data_dir: ./from-file\n")
    data_root = tmp_path / "env-data"
    monkeypatch.setenv("SEDER_DATA_DIR", str(data_root))
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    settings = get_settings()
    service = build_default_ingest_service()

    assert settings.data_dir == str(data_root)
    assert settings.log_level == "DEBUG"
    assert service.store.root_path == data_root


def test_blank_environment_values_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("SEDER_DATA_DIR", "   ")
    monkeypatch.setenv("LOG_LEVEL", "")

    settings = get_settings()

    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.log_level == "INFO"


def test_invalid_config_file_raises(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("- just\n- a list\n")
    monkeypatch.setenv("SEDER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="must contain a mapping"):
        get_settings()
