"""Tests for the HTTP API."""

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from burnsub.config import Settings
from burnsub.main import create_app
from burnsub.render.pipeline import ExportPipeline

from conftest import FakeRunner, video_transport

PROJECT = {
    "Id": "demo",
    "Video": "https://videos.example.com/original.mp4",
    "Silent": True,
    "Subtitles": [
        {"Text": "Hello", "Time": 0.5, "Duration": 1.5, "Color": "#ff0", "Position": {"X": "left", "Y": "top"}},
    ],
}


def _wait_until_finished(client: TestClient, job_id: str, timeout: float = 10.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/api/export/{job_id}").json()
        if body["finished"] or time.monotonic() > deadline:
            return body
        time.sleep(0.02)


@pytest.fixture
def client(settings: Settings, pipeline: ExportPipeline):
    with TestClient(create_app(settings, pipeline)) as test_client:
        yield test_client


class TestExportApi:
    """Tests for /api/export."""

    def test_export_and_download(self, client: TestClient):
        response = client.post("/api/export", json=PROJECT)
        assert response.status_code == 200
        job_id = response.json()["jobId"]
        assert len(job_id) == 12
        assert job_id.isalpha()

        status = _wait_until_finished(client, job_id)
        assert status == {"id": job_id, "finished": True, "progress": 1.0, "error": None}

        video = client.get(f"/video/{job_id}/video.mp4")
        assert video.status_code == 200
        assert video.headers["content-type"] == "video/mp4"
        assert video.content == b"rendered video"

    def test_status_right_after_submit(self, client: TestClient):
        job_id = client.post("/api/export", json=PROJECT).json()["jobId"]

        status = client.get(f"/api/export/{job_id}").json()
        assert status["id"] == job_id
        assert 0.0 <= status["progress"] <= 1.0
        assert status["error"] is None

    def test_failed_export_reports_error(self, settings: Settings):
        pipeline = ExportPipeline(settings, runner=FakeRunner(), transport=video_transport(status_code=404))

        with TestClient(create_app(settings, pipeline)) as client:
            job_id = client.post("/api/export", json=PROJECT).json()["jobId"]
            status = _wait_until_finished(client, job_id)

            assert status["finished"] is True
            assert status["progress"] == 1.0
            assert status["error"].startswith("Could not download original video")

            video = client.get(f"/video/{job_id}/video.mp4")
            assert video.status_code == 404

    def test_lowercase_keys(self, client: TestClient):
        body = {"video": "https://videos.example.com/original.mp4", "silent": True, "subtitles": []}
        response = client.post("/api/export", json=body)
        assert response.status_code == 200

    def test_unknown_job(self, client: TestClient):
        response = client.get("/api/export/abcdefghijkl")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "JOB_NOT_FOUND"

    def test_malformed_body(self, client: TestClient):
        response = client.post(
            "/api/export",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PROJECT"

    def test_missing_video(self, client: TestClient):
        response = client.post("/api/export", json={"Subtitles": []})
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_PROJECT"
        assert "video" in error["message"]

    def test_wrong_field_type(self, client: TestClient):
        body = dict(PROJECT, Subtitles=[{"Text": "x", "Time": "soon"}])
        response = client.post("/api/export", json=body)
        assert response.status_code == 400


class TestVideoApi:
    """Tests for /video/{id}/video.mp4."""

    @pytest.mark.parametrize("video_id", ["abc123", "abc-def", "abc_def"])
    def test_invalid_id(self, client: TestClient, video_id):
        response = client.get(f"/video/{video_id}/video.mp4")
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Invalid id."

    def test_missing_video(self, client: TestClient):
        response = client.get("/video/abcdefghijkl/video.mp4")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "VIDEO_NOT_FOUND"

    def test_serves_existing_file(self, client: TestClient, settings: Settings):
        workspace = Path(settings.export_root) / "existingVideo"
        workspace.mkdir(parents=True)
        (workspace / "rendered.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")

        response = client.get("/video/existingVideo/video.mp4")
        assert response.status_code == 200
        assert response.content == b"\x00\x00\x00\x18ftypmp42"


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
