"""
Tests for the REST API.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from conftest import FakeEngine, FakeLoader, make_detection, make_frame
from models.config import SessionConfig
from models.model_record import BUILTIN_MODEL_ID
from pipeline.session import SessionController
from web.app import create_app


@pytest.fixture
def loader():
    return FakeLoader(lambda: FakeEngine([make_detection(10, 20, 30, 40)]))


@pytest.fixture
def session(repository, loader):
    session = SessionController(repository, SessionConfig(stats_interval=3600.0), engine_loader=loader)
    session.start()
    yield session
    session.stop()


@pytest.fixture
def client(session, repository):
    return TestClient(create_app(session, repository))


@pytest.fixture
def model_paths(tmp_path, model_files):
    weights, config, names = model_files
    (tmp_path / "birds.weights").write_bytes(weights)
    (tmp_path / "birds.cfg").write_bytes(config)
    (tmp_path / "birds.names").write_bytes(names)
    return {
        "name": "Birds",
        "weights_path": str(tmp_path / "birds.weights"),
        "config_path": str(tmp_path / "birds.cfg"),
        "names_path": str(tmp_path / "birds.names"),
    }


class TestModels:
    def test_list_marks_selected(self, client):
        response = client.get("/api/models")

        assert response.status_code == 200
        [builtin] = response.json()
        assert builtin["id"] == str(BUILTIN_MODEL_ID)
        assert builtin["is_builtin"] is True
        assert builtin["selected"] is True

    def test_import(self, client, model_paths):
        response = client.post("/api/models/import", json=model_paths)

        assert response.status_code == 201
        body = response.json()
        assert body["display_name"] == "Birds"
        assert (body["input_width"], body["input_height"]) == (416, 416)
        assert body["selected"] is False
        assert len(client.get("/api/models").json()) == 2

    def test_import_validation_error(self, client, model_paths, tmp_path):
        (tmp_path / "birds.weights").write_bytes(b"\x00" * 10)

        response = client.post("/api/models/import", json=model_paths)

        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "too_small"

    def test_import_missing_file(self, client, model_paths, tmp_path):
        model_paths["names_path"] = str(tmp_path / "nope.names")

        response = client.post("/api/models/import", json=model_paths)

        assert response.status_code == 400

    def test_delete_builtin_forbidden(self, client):
        assert client.delete(f"/api/models/{BUILTIN_MODEL_ID}").status_code == 403

    def test_delete_unknown(self, client):
        assert client.delete(f"/api/models/{uuid.uuid4()}").status_code == 404

    def test_delete_imported(self, client, model_paths):
        model_id = client.post("/api/models/import", json=model_paths).json()["id"]

        assert client.delete(f"/api/models/{model_id}").status_code == 204
        assert len(client.get("/api/models").json()) == 1


class TestSelection:
    def test_select_imported(self, client, model_paths, session):
        model_id = client.post("/api/models/import", json=model_paths).json()["id"]

        response = client.put("/api/selection", json={"model_id": model_id})

        assert response.status_code == 200
        assert response.json()["selected"] is True
        assert str(session.current_model.id) == model_id

    def test_load_failure_conflict(self, client, model_paths, repository, loader, session):
        model_id = client.post("/api/models/import", json=model_paths).json()["id"]
        record = repository.get(model_id)
        loader.failing.add(repository.resolve_paths(record).weights)

        response = client.put("/api/selection", json={"model_id": model_id})

        assert response.status_code == 409
        assert session.current_model.id == BUILTIN_MODEL_ID


class TestThresholds:
    def test_update(self, client, session):
        response = client.put("/api/thresholds", json={"confidence": 0.6, "nms": 0.3})

        assert response.status_code == 200
        assert session.config.confidence_threshold == 0.6
        assert session.config.nms_threshold == 0.3

    def test_out_of_range_rejected(self, client, session):
        response = client.put("/api/thresholds", json={"confidence": 1.5, "nms": 0.3})

        assert response.status_code == 422
        assert session.config.confidence_threshold == 0.25


class TestLiveData:
    def test_detections_after_frame(self, client, session):
        session.on_frame(make_frame(1080, 1920))
        assert session.scheduler.wait_until_idle(5.0)

        body = client.get("/api/detections").json()

        assert body["model_name"] == "yolov4-tiny-coco"
        assert body["video_size"] == [1080, 1920]
        assert body["detections"][0]["bbox"] == {"x": 10.0, "y": 20.0, "width": 30.0, "height": 40.0}

    def test_stats(self, client):
        body = client.get("/api/stats").json()

        assert set(body) == {"detection_fps", "capture_fps", "inference_ms", "detection_count", "model_name"}

    def test_health(self, client, repository):
        body = client.get("/api/health").json()

        assert body["healthy"] is True
        assert body["model_count"] == 1
        assert body["issues"] == []
