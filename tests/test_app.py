from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.ingest import IngestService, build_default_ingest_service
from settings import get_settings
from storage.partitioned_files import PartitionedFileStore, build_default_store


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def api_client(data_dir: Path, monkeypatch) -> Iterator[TestClient]:
    service = IngestService(store=PartitionedFileStore(root_path=data_dir))

    def build_test_service(root_path: str | None = None) -> IngestService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_ingest_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_ingest_service", build_test_service)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _stored_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return sorted(path for path in root.rglob("*") if path.is_file())


def test_lifespan_clears_cached_service(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SEDER_DATA_DIR", str(tmp_path / "lifespan"))
    get_settings.cache_clear()
    build_default_store.cache_clear()
    build_default_ingest_service.cache_clear()
    app = create_app()

    try:
        with TestClient(app):
            service_during = build_default_ingest_service()
            assert service_during.store.root_path == tmp_path / "lifespan"

        service_after = build_default_ingest_service()
        assert service_after is not service_during
    finally:
        build_default_ingest_service.cache_clear()
        build_default_store.cache_clear()
        get_settings.cache_clear()


def test_root_returns_greeting(api_client: TestClient) -> None:
    response = api_client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello seder!"


def test_health_reports_data_dir(api_client: TestClient, data_dir: Path) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "data_dir": str(data_dir)}


def test_upload_is_acknowledged_and_stored(api_client: TestClient, data_dir: Path, make_payload) -> None:
    response = api_client.post(
        "/v0/data",
        content=make_payload(),
        headers={"Content-Type": "application/octet-stream"},
    )

    assert response.status_code == 200
    assert response.text == "!\n"
    files = _stored_files(data_dir)
    assert files == [data_dir / "ACCOUNT001" / "2014" / "03" / "10" / "00-DEVICE0001.dat"]
    assert files[0].read_text().splitlines()[1] == (
        "ACCOUNT001,DEVICE0001,2014-03-10T00:57:40.000Z,1000,10,20"
    )


def test_empty_body_is_acknowledged(api_client: TestClient, data_dir: Path) -> None:
    response = api_client.post("/v0/data", content=b"")

    assert response.status_code == 200
    assert response.text == "!\n"
    assert _stored_files(data_dir) == []


def test_malformed_payload_is_rejected(api_client: TestClient, data_dir: Path, make_payload) -> None:
    response = api_client.post("/v0/data", content=make_payload()[:-1])

    assert response.status_code == 400
    assert "truncated" in response.json()["detail"]
    assert _stored_files(data_dir) == []


def test_write_failure_reports_error_and_service_recovers(
    api_client: TestClient, data_dir: Path, make_payload
) -> None:
    data_dir.parent.mkdir(parents=True, exist_ok=True)
    data_dir.write_text("blocking the data directory")

    failed = api_client.post("/v0/data", content=make_payload())

    assert failed.status_code == 500
    assert "Unable to write samples" in failed.json()["detail"]

    data_dir.unlink()
    recovered = api_client.post("/v0/data", content=make_payload())

    assert recovered.status_code == 200
    assert recovered.text == "!\n"
    assert len(_stored_files(data_dir)) == 1
