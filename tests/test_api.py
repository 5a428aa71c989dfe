"""
HTTP API Tests
==============

Tests for the FastAPI service running against the mock existence check.
"""

import time

import pytest
from fastapi.testclient import TestClient

from raster_playback import main
from raster_playback.config import settings


def wait_for(client, condition, timeout=5.0):
    """Poll /status until ``condition`` holds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        status = client.get("/status").json()
        if condition(status):
            return status
        time.sleep(0.02)
    raise AssertionError(f"Condition not reached, last status: {status}")


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings.probe, "backend", "mock")
    monkeypatch.setattr(settings.probe, "mock_missing", [])
    monkeypatch.setattr(settings.session, "autostart", False)
    monkeypatch.setattr(settings.playback, "speed_ms", 1000)
    monkeypatch.setattr(settings.server, "push_interval_seconds", 0.01)

    with TestClient(main.app) as test_client:
        yield test_client


def play_range(client, payload):
    response = client.post("/range", json=payload)
    assert response.status_code == 202
    return wait_for(client, lambda s: s["condition"] not in ("IDLE", "PRELOADING"))


class TestServiceEndpoints:
    """Tests for informational endpoints."""

    def test_root(self, client):
        data = client.get("/").json()

        assert data["service"] == "RasterPlayback"
        assert data["probe_backend"] == "mock"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_initial_status(self, client):
        data = client.get("/status").json()

        assert data["condition"] == "IDLE"
        assert data["playback"]["current_frame_index"] is None
        assert data["preload"]["complete"] is False
        assert data["display_time"] is None

    def test_frames_before_probe(self, client):
        assert client.get("/frames").status_code == 503


class TestRangeEndpoint:
    """Tests for the range trigger."""

    def test_explicit_range_auto_plays(self, client, sample_range_payload):
        status = play_range(client, sample_range_payload)

        assert status["condition"] == "PLAYING"
        assert status["frames_available"] == 12
        assert status["range"]["total_frames"] == 12
        assert status["preload"]["progress_percent"] == 100
        assert "/12 • 2025-05-12" in status["label"]
        assert status["display_time"]["year"] == "2025"
        assert status["display_time"]["day"] == "12"

        frames = client.get("/frames").json()
        assert frames["total_frames"] == 12
        assert frames["missing"] == []
        assert frames["frames"][0]["locator"].endswith("20250512_1640Z.zarrpyramid")

    def test_malformed_range_uses_default(self, client):
        status = play_range(client, {"start": "not-a-date"})

        assert status["range"]["total_frames"] == settings.session.default_frame_count

    def test_oversized_range_uses_default(self, client):
        status = play_range(client, {"start": "2000-01-01", "end": "9999-12-31"})

        assert status["range"]["total_frames"] == settings.session.default_frame_count
        assert status["frames_available"] == settings.session.default_frame_count

    def test_metrics(self, client, sample_range_payload):
        play_range(client, sample_range_payload)

        data = client.get("/metrics").json()

        assert data["runs_completed"] == 1
        assert data["checks_issued"] == 12
        assert data["size"] == 12


class TestPlaybackEndpoints:
    """Tests for play/pause/reset/speed/layers."""

    def test_play_without_frames(self, client):
        assert client.post("/play").status_code == 409

    def test_pause_and_play(self, client, sample_range_payload):
        play_range(client, sample_range_payload)

        paused = client.post("/pause").json()
        assert paused["playback"]["state"] == "PAUSED"
        assert paused["condition"] == "READY"

        playing = client.post("/play").json()
        assert playing["playback"]["state"] == "PLAYING"

    def test_reset(self, client, sample_range_payload):
        play_range(client, sample_range_payload)

        data = client.post("/reset").json()

        assert data["playback"]["state"] == "IDLE"
        assert data["playback"]["current_frame_index"] == 0

    def test_speed(self, client):
        assert client.post("/speed", json={"speed_ms": 500}).json()["playback"]["speed_ms"] == 500
        assert client.post("/speed", json={"speed_ms": 50}).status_code == 422
        assert client.post("/speed", json={"speed_ms": 0}).status_code == 422

    def test_layers(self, client, sample_range_payload):
        play_range(client, sample_range_payload)

        response = client.post("/layers", json={"layers": [{"name": "included", "clim": [0, 10]}]})

        assert response.status_code == 200
        assert response.json()["playback"]["state"] == "PLAYING"
        assert main.get_surface().active_bindings()[0].layer.name == "included"

    def test_refresh(self, client, sample_range_payload):
        assert client.post("/refresh").status_code == 409

        play_range(client, sample_range_payload)

        assert client.post("/refresh").status_code == 202
        status = wait_for(client, lambda s: s["condition"] == "PLAYING")
        assert status["frames_available"] == 12


class TestFrameStream:
    """Tests for the WebSocket feed."""

    def test_stream_pushes_active_frame(self, client, sample_range_payload):
        play_range(client, sample_range_payload)

        with client.websocket_connect("/ws/frames") as websocket:
            message = websocket.receive_json()

        assert message["condition"] == "PLAYING"
        assert {b["frame_index"] for b in message["bindings"]} == {message["playback"]["current_frame_index"]}
        assert len(message["bindings"]) == len(settings.display.layers)
