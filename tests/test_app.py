"""
Application Tests
=================

HTTP endpoints and the capture WebSocket, driven through FastAPI's
TestClient with an assembler double.
"""

import time

from fastapi.testclient import TestClient

from canvas_video.main import create_app
from canvas_video.stream import encode_frame_message
from canvas_video.video import VideoAssembler

from conftest import FakeRunner, RecordingAssembler


def wait_for_finished(client, count, timeout=10.0):
    """Poll /metrics until `count` sessions have finished."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        metrics = client.get("/metrics").json()
        if metrics["sessions_finished"] >= count:
            return metrics
        time.sleep(0.05)
    raise AssertionError(f"Sessions did not finish: {metrics}")


class TestHttpEndpoints:
    """Tests for the HTTP surface."""

    def test_root(self, settings):
        with TestClient(create_app(settings, assembler=RecordingAssembler())) as client:
            body = client.get("/").json()

        assert body["service"] == "CanvasVideo"
        assert body["capture_endpoint"] == "/ws/frames"
        assert body["done_message"] == "done"

    def test_health(self, settings):
        with TestClient(create_app(settings, assembler=RecordingAssembler())) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics_initially_empty(self, settings):
        with TestClient(create_app(settings, assembler=RecordingAssembler())) as client:
            metrics = client.get("/metrics").json()

        assert metrics["active_sessions"] == 0
        assert metrics["sessions_opened"] == 0
        assert metrics["videos_created"] == 0


class TestCaptureWebSocket:
    """Tests for /ws/frames."""

    def test_done_message_assembles_video(self, settings, output_root, png_factory):
        assembler = RecordingAssembler()
        pngs = {key: png_factory(color=(key, 0, 0)) for key in (5, 3, 8)}

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as ws:
                for key in (5, 3, 8):
                    ws.send_text(encode_frame_message(key, pngs[key]))
                ws.send_text("done")

            metrics = wait_for_finished(client, 1)
            sessions = client.get("/sessions").json()

        assert metrics["videos_created"] == 1
        assert metrics["frames_stored"] == 3
        assert len(assembler.calls) == 1
        assert assembler.snapshots[0] == {
            "0.png": pngs[3],
            "1.png": pngs[5],
            "2.png": pngs[8],
        }

        session_id = sessions[0]["session_id"]
        assert sessions[0]["success"] is True
        assert sessions[0]["terminated_by"] == "done"
        assert (output_root / f"{session_id}.mp4").exists()
        assert not (output_root / session_id).exists()

    def test_disconnect_assembles_video(self, settings, png_factory):
        assembler = RecordingAssembler()

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as ws:
                ws.send_text(encode_frame_message(2, png_factory()))
                ws.send_text(encode_frame_message(1, png_factory()))

            wait_for_finished(client, 1)
            sessions = client.get("/sessions").json()

        assert len(assembler.calls) == 1
        assert sessions[0]["terminated_by"] == "close"
        assert sessions[0]["frames_sequenced"] == 2

    def test_binary_frames(self, settings, png_factory):
        assembler = RecordingAssembler()
        png = png_factory()

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as ws:
                ws.send_bytes(encode_frame_message(0, png).encode("utf-8"))
                ws.send_bytes(b"done")

            wait_for_finished(client, 1)

        assert assembler.snapshots[0] == {"0.png": png}

    def test_custom_done_message(self, settings, png_factory):
        settings.capture.done_message = "__end__"
        assembler = RecordingAssembler()

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as ws:
                ws.send_text(encode_frame_message(0, png_factory()))
                ws.send_text("__end__")

            wait_for_finished(client, 1)
            sessions = client.get("/sessions").json()

        assert sessions[0]["terminated_by"] == "done"

    def test_empty_session_reports_failure(self, settings):
        runner = FakeRunner()
        assembler = VideoAssembler(settings.video, runner=runner)

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as ws:
                ws.send_text("done")

            metrics = wait_for_finished(client, 1)

        assert metrics["active_sessions"] == 0
        assert metrics["assembly_failures"] == 1
        assert metrics["videos_created"] == 0
        assert runner.calls == []

    def test_sessions_are_isolated(self, settings, png_factory):
        assembler = RecordingAssembler()

        with TestClient(create_app(settings, assembler=assembler)) as client:
            with client.websocket_connect("/ws/frames") as first:
                with client.websocket_connect("/ws/frames") as second:
                    first.send_text(encode_frame_message(1, png_factory(color=(1, 0, 0))))
                    second.send_text(encode_frame_message(1, png_factory(color=(0, 1, 0))))
                    second.send_text(encode_frame_message(2, png_factory(color=(0, 2, 0))))
                    second.send_text("done")
                first.send_text("done")

            metrics = wait_for_finished(client, 2)

        assert metrics["videos_created"] == 2
        assert sorted(len(snapshot) for snapshot in assembler.snapshots) == [1, 2]
        assert assembler.calls[0][0] != assembler.calls[1][0]
