"""Integration tests for the interview and progress REST endpoints.

Drives a full interview through the HTTP API with the synthetic capture
device, then checks that completion reached the stored profile.
"""

from unittest.mock import AsyncMock

from byc.services.capture.synthetic import SyntheticCaptureDevice
from byc.services.interview import manager

SESSION = "/api/v1/interview/session"


async def _record(client) -> dict:
    """Start and stop one recording; returns the final snapshot."""
    resp = await client.post(f"{SESSION}/countdown")
    assert resp.json()["accepted"] is True
    assert resp.json()["session"]["state"] == "recording"
    resp = await client.post(f"{SESSION}/stop")
    assert resp.json()["accepted"] is True
    return resp.json()["session"]


class TestHealthAndQuestions:
    async def test_health(self, async_client):
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_questions(self, async_client):
        resp = await async_client.get("/api/v1/interview/questions")
        assert resp.status_code == 200
        questions = resp.json()
        assert [q["id"] for q in questions] == [1, 2]
        assert questions[0]["time_limit"] == 120


class TestSessionLifecycle:
    """Creating, inspecting and leaving a session."""

    async def test_no_session(self, async_client):
        resp = await async_client.get(SESSION)
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == "SESSION_NOT_FOUND"
        assert "timestamp" in body

    async def test_create_session(self, async_client):
        resp = await async_client.post(SESSION, json={"provider": "synthetic"})
        assert resp.status_code == 200
        snapshot = resp.json()
        assert snapshot["state"] == "idle"
        assert snapshot["question_count"] == 2
        assert snapshot["device_available"] is True
        assert snapshot["can_start"] is True
        assert snapshot["statuses"] == ["unrecorded", "unrecorded"]

    async def test_second_session_conflicts(self, async_client):
        await async_client.post(SESSION)
        resp = await async_client.post(SESSION)
        assert resp.status_code == 409
        assert resp.json()["code"] == "SESSION_ALREADY_ACTIVE"

    async def test_invalid_provider(self, async_client):
        resp = await async_client.post(SESSION, json={"provider": "hologram"})
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_leave_session(self, async_client):
        await async_client.post(SESSION)
        await _record(async_client)

        resp = await async_client.delete(SESSION)
        assert resp.status_code == 204
        assert (await async_client.get(SESSION)).status_code == 404
        assert (await async_client.delete(SESSION)).status_code == 404

    async def test_denied_device(self, async_client, monkeypatch):
        monkeypatch.setattr(
            manager,
            "create_capture_device",
            lambda provider, **kwargs: SyntheticCaptureDevice(available=False),
        )
        snapshot = (await async_client.post(SESSION)).json()
        assert snapshot["device_available"] is False
        assert snapshot["device_error"] == "Permission denied for camera and microphone"
        assert snapshot["can_start"] is False

        resp = await async_client.post(f"{SESSION}/countdown")
        assert resp.status_code == 200
        assert resp.json()["accepted"] is False
        assert resp.json()["session"]["state"] == "idle"


class TestRecordingFlow:
    """Record, review, re-record and navigate through the API."""

    async def test_guarded_actions_are_not_accepted(self, async_client):
        await async_client.post(SESSION)
        for action in ("stop", "review", "rerecord", "advance"):
            resp = await async_client.post(f"{SESSION}/{action}")
            assert resp.status_code == 200
            assert resp.json()["accepted"] is False

    async def test_record_and_review(self, async_client):
        await async_client.post(SESSION)
        snapshot = await _record(async_client)
        assert snapshot["state"] == "stopped"
        assert snapshot["statuses"][0] == "recorded"
        assert snapshot["artifact"]["tracks"] == ["audio"]

        resp = await async_client.post(f"{SESSION}/review")
        session = resp.json()["session"]
        assert session["state"] == "reviewing"
        assert session["preview"]["source"] == "artifact"
        assert session["preview"]["artifact_handle"] == snapshot["artifact"]["handle"]

        resp = await async_client.get(f"{SESSION}/artifacts/0/audio")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "audio/wav"
        assert resp.content[:4] == b"RIFF"

    async def test_missing_artifacts(self, async_client):
        await async_client.post(SESSION)
        resp = await async_client.get(f"{SESSION}/artifacts/0/audio")
        assert resp.status_code == 404
        assert resp.json()["code"] == "ARTIFACT_NOT_FOUND"

        await _record(async_client)
        assert (await async_client.get(f"{SESSION}/artifacts/0/video")).status_code == 404
        assert (await async_client.get(f"{SESSION}/artifacts/7/audio")).status_code == 404

    async def test_rerecord_replaces_artifact(self, async_client):
        await async_client.post(SESSION)
        first = (await _record(async_client))["artifact"]["handle"]

        resp = await async_client.post(f"{SESSION}/rerecord")
        session = resp.json()["session"]
        assert session["state"] == "idle"
        assert session["recorded_count"] == 0

        second = (await _record(async_client))["artifact"]["handle"]
        assert second != first

    async def test_no_preview_without_video(self, async_client):
        await async_client.post(SESSION)
        resp = await async_client.get(f"{SESSION}/preview")
        assert resp.status_code == 404
        assert resp.json()["code"] == "PREVIEW_UNAVAILABLE"


class TestSubmit:
    """Submission gating and progress reporting."""

    async def test_incomplete_submit(self, async_client):
        await async_client.post(SESSION)
        await _record(async_client)
        resp = await async_client.post(f"{SESSION}/submit")
        assert resp.status_code == 409
        assert resp.json()["code"] == "SESSION_INCOMPLETE"

    async def test_full_interview_updates_progress(self, async_client):
        await async_client.post(SESSION)
        await _record(async_client)
        resp = await async_client.post(f"{SESSION}/advance")
        assert resp.json()["session"]["question_index"] == 1
        snapshot = await _record(async_client)
        assert snapshot["can_submit"] is True

        resp = await async_client.post(f"{SESSION}/submit")
        assert resp.status_code == 200
        body = resp.json()
        assert body["completion"]["phase_name"] == "video"
        assert body["overall_progress"] == 100
        assert body["next_route"] == "/assessment/complete"
        assert body["session"]["submitted"] is True

        # Session is released after submission
        assert (await async_client.get(SESSION)).status_code == 404

        profile = (await async_client.get("/api/v1/progress")).json()
        progress = profile["assessment_progress"]
        assert progress["video"]["completed"] is True
        assert progress["overall_progress"] == 100
        assert progress["current_phase"] == "completed"

    async def test_progress_failure_is_retryable(self, async_client, monkeypatch):
        """503 keeps the session and its recordings; the retry succeeds."""
        report = AsyncMock(side_effect=[RuntimeError("database is locked"), None])
        monkeypatch.setattr(manager, "report_video_completion", report)
        await async_client.post(SESSION)
        await _record(async_client)
        await async_client.post(f"{SESSION}/advance")
        await _record(async_client)

        resp = await async_client.post(f"{SESSION}/submit")
        assert resp.status_code == 503
        assert resp.json()["code"] == "PROGRESS_UNAVAILABLE"

        session = (await async_client.get(SESSION)).json()
        assert session["recorded_count"] == 2
        assert session["submitted"] is False
        assert session["can_submit"] is True

        resp = await async_client.post(f"{SESSION}/submit")
        assert resp.status_code == 200
        assert report.await_count == 2

    async def test_error_schema_documented(self, app):
        """Error responses of the interview routes are described in OpenAPI."""
        schema = app.openapi()
        submit = schema["paths"]["/api/v1/interview/session/submit"]["post"]["responses"]
        for status in ("404", "409", "503"):
            ref = submit[status]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/ErrorResponse")
        assert "ErrorResponse" in schema["components"]["schemas"]
