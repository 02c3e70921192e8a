"""
Webhook端点测试
"""

import json

import pytest

from app.core.celery_app import MEETING_PROCESSING_EVENT
from app.core.exceptions import UpstreamServiceException
from app.core.security import compute_signature
from app.models.meeting import MeetingStatus


def started_payload(meeting_id="meeting-1") -> bytes:
    return json.dumps({
        "type": "call.session_started",
        "call_cid": f"default:{meeting_id}",
        "call": {"cid": f"default:{meeting_id}", "custom": {"meetingId": meeting_id}}
    }).encode("utf-8")


class TestWebhookValidation:
    """请求校验测试"""

    @pytest.mark.asyncio
    async def test_missing_signature_header(self, post_webhook):
        response = await post_webhook(
            started_payload(),
            headers={"content-type": "application/json", "x-api-key": "test-api-key"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] is True
        assert data["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_missing_api_key_header(self, post_webhook):
        response = await post_webhook(started_payload(), api_key="")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_signature(self, post_webhook, call_platform):
        response = await post_webhook(started_payload(), signature="0" * 64)

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_FAILED"
        call_platform.join_call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_signature_covers_raw_body(self, post_webhook, make_meeting, webhook_secret, meeting_service):
        await make_meeting()
        body = started_payload()
        reformatted = json.dumps(json.loads(body), indent=2).encode("utf-8")

        response = await post_webhook(reformatted, signature=compute_signature(body, webhook_secret))

        assert response.status_code == 401
        meeting = await meeting_service.get_meeting("meeting-1")
        assert meeting.status == MeetingStatus.UPCOMING

    @pytest.mark.asyncio
    async def test_invalid_json(self, post_webhook):
        response = await post_webhook(b"{not json")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON"

    @pytest.mark.asyncio
    async def test_non_object_payload(self, post_webhook):
        response = await post_webhook(b"[1, 2, 3]")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_event_type_is_acknowledged(self, post_webhook, call_platform):
        response = await post_webhook(json.dumps({"type": "message.new", "message": {"text": "hi"}}))

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        call_platform.join_call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_meeting_id(self, post_webhook):
        body = json.dumps({"type": "call.session_started", "call": {"cid": "default:x", "custom": {}}})

        response = await post_webhook(body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_known_event(self, post_webhook):
        body = json.dumps({"type": "call.transcription_ready", "call_cid": "default:meeting-1"})

        response = await post_webhook(body)

        assert response.status_code == 400


class TestWebhookLifecycle:
    """生命周期事件端到端测试"""

    @pytest.mark.asyncio
    async def test_session_started(self, post_webhook, make_meeting, meeting_service, call_platform):
        await make_meeting()

        response = await post_webhook(started_payload())

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "X-Request-ID" in response.headers
        meeting = await meeting_service.get_meeting("meeting-1")
        assert meeting.status == MeetingStatus.ACTIVE
        call_platform.join_call.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_session_started_redelivery(self, post_webhook, make_meeting, call_platform):
        await make_meeting()

        first = await post_webhook(started_payload())
        second = await post_webhook(started_payload())

        assert first.status_code == 200
        assert second.status_code == 404
        assert second.json()["code"] == "RESOURCE_NOT_FOUND"
        assert call_platform.join_call.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_meeting(self, post_webhook, db_engine):
        response = await post_webhook(started_payload("missing"))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_greeting_failure(self, post_webhook, make_meeting, meeting_service, call_platform):
        await make_meeting()
        call_platform.join_call.side_effect = UpstreamServiceException("call service down", 502)

        response = await post_webhook(started_payload())

        assert response.status_code == 500
        assert response.json()["code"] == "UPSTREAM_ERROR"
        meeting = await meeting_service.get_meeting("meeting-1")
        assert meeting.status == MeetingStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_session_ended(self, post_webhook, make_meeting, meeting_service):
        await make_meeting(status=MeetingStatus.ACTIVE)
        body = json.dumps({
            "type": "call.session_ended",
            "call": {"cid": "default:meeting-1", "custom": {"meetingId": "meeting-1"}}
        })

        response = await post_webhook(body)

        assert response.status_code == 200
        meeting = await meeting_service.get_meeting("meeting-1")
        assert meeting.status == MeetingStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_transcription_ready(self, post_webhook, make_meeting, enqueue_job):
        await make_meeting(status=MeetingStatus.PROCESSING)
        body = json.dumps({
            "type": "call.transcription_ready",
            "call_cid": "default:meeting-1",
            "call_transcription": {"url": "https://files.example.com/t.jsonl", "filename": "t.jsonl"}
        })

        response = await post_webhook(body)

        assert response.status_code == 200
        enqueue_job.assert_called_once_with(
            MEETING_PROCESSING_EVENT,
            {"meetingId": "meeting-1", "transcriptUrl": "https://files.example.com/t.jsonl"}
        )

    @pytest.mark.asyncio
    async def test_transcription_ready_unknown_meeting(self, post_webhook, enqueue_job, db_engine):
        body = json.dumps({
            "type": "call.transcription_ready",
            "call_cid": "default:missing",
            "call_transcription": {"url": "https://files.example.com/t.jsonl"}
        })

        response = await post_webhook(body)

        assert response.status_code == 404
        enqueue_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_recording_ready(self, post_webhook, make_meeting, meeting_service):
        await make_meeting(status=MeetingStatus.COMPLETED)
        body = json.dumps({
            "type": "call.recording_ready",
            "call_cid": "default:meeting-1",
            "call_recording": {"url": "https://files.example.com/r.mp4", "filename": "r.mp4"}
        })

        response = await post_webhook(body)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        meeting = await meeting_service.get_meeting("meeting-1")
        assert meeting.recording_url == "https://files.example.com/r.mp4"
        assert meeting.status == MeetingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_participant_left(self, post_webhook, call_platform):
        body = json.dumps({
            "type": "call.session_participant_left",
            "call_cid": "default:meeting-1",
            "participant": {"user": {"id": "user-1"}}
        })

        response = await post_webhook(body)

        assert response.status_code == 200
        call_platform.end_call.assert_awaited_once_with("default", "meeting-1")


class TestRootEndpoints:
    """基础端点测试"""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
