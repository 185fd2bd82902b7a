"""
Pytest test module for change-list completion notifications.

Resend calls go through an httpx.MockTransport; Slack goes through a fake
webhook client so no network is touched.

Test Classes:
- TestFormatting: Summary, subject, body and Slack blocks
- TestSendEmail: Resend channel
- TestSendSlack: Slack webhook channel
- TestNotifyCompleted: Both channels together
"""

import json
from datetime import date
from typing import Any, Dict, List

import httpx
import pytest
from slack_sdk.webhook.async_client import AsyncWebhookClient

from dnc_backend.core.config import Settings
from dnc_backend.models.enums import ChangeListStatus, ChangeType
from dnc_backend.models.schemas import ChangeListJob, ChangeListRunResult
from dnc_backend.services.notifications import (
    RESEND_API_URL,
    ChangeListNotifier,
    build_completion_summary,
    format_email_subject,
    format_email_text,
    format_slack_blocks,
)


# =============================================================================
# Helpers
# =============================================================================

class FakeSlackResponse:
    def __init__(self, status_code: int = 200, body: str = "ok") -> None:
        self.status_code = status_code
        self.body = body


class FakeWebhook:
    """Stands in for slack_sdk's AsyncWebhookClient."""

    def __init__(self, url: str, response: FakeSlackResponse, sent: List[Dict[str, Any]]) -> None:
        self.url = url
        self._response = response
        self._sent = sent

    async def send(self, text: str, blocks: List[Dict[str, Any]]) -> FakeSlackResponse:
        self._sent.append({'url': self.url, 'text': text, 'blocks': blocks})
        return self._response


def _webhook_factory(sent: List[Dict[str, Any]], status_code: int = 200, body: str = "ok"):
    def factory(url: str) -> FakeWebhook:
        return FakeWebhook(url, FakeSlackResponse(status_code, body), sent)
    return factory


def _resend_client(requests: List[httpx.Request], status_code: int = 200) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={'message': 'invalid api key'})
        return httpx.Response(200, json={'id': 'email_123'})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def job() -> ChangeListJob:
    return ChangeListJob(
        id='5d0c2c1e-8f7b-4b5e-9a59-0d7a4f0f3b1a',
        change_type=ChangeType.DELETIONS,
        ftc_file_date=date(2026, 10, 15),
        area_codes=['801', '385'],
        file_name='ftc-deletions.txt',
        status=ChangeListStatus.COMPLETED,
    )


@pytest.fixture
def result(job: ChangeListJob) -> ChangeListRunResult:
    return ChangeListRunResult(
        change_list_id=job.id,
        change_type=job.change_type,
        status=ChangeListStatus.COMPLETED,
        total_records=12500,
        total_batches=13,
        processed_records=12000,
        failed_records=0,
        skipped_records=500,
        duration_ms=4300,
    )


# =============================================================================
# Test Class: TestFormatting
# =============================================================================

class TestFormatting:

    def test_summary_fields(self, job: ChangeListJob, result: ChangeListRunResult) -> None:
        summary = build_completion_summary(job, result)

        assert summary['change_type'] == 'deletions'
        assert summary['area_codes'] == ['801', '385']
        assert summary['ftc_file_date'] == '2026-10-15'
        assert summary['duration_seconds'] == 4.3
        assert summary['error_count'] == 0

    def test_subject_uses_thousands_separators(self, job: ChangeListJob, result: ChangeListRunResult) -> None:
        subject = format_email_subject(build_completion_summary(job, result))

        assert subject == "FTC deletions processed: 12,000 of 12,500 records"

    def test_text_lists_counters(self, job: ChangeListJob, result: ChangeListRunResult) -> None:
        text = format_email_text(build_completion_summary(job, result))

        assert "Area codes: 801, 385" in text
        assert "Skipped: 500" in text
        assert "Errors recorded" not in text

    def test_text_mentions_errors(self, job: ChangeListJob, result: ChangeListRunResult) -> None:
        result.errors = ["Batch 2: connection reset by peer"]

        text = format_email_text(build_completion_summary(job, result))

        assert "Errors recorded: 1" in text

    def test_slack_warning_when_records_failed(self, job: ChangeListJob, result: ChangeListRunResult) -> None:
        result.failed_records = 3

        blocks = format_slack_blocks(build_completion_summary(job, result))

        assert blocks[0]['type'] == 'header'
        assert blocks[-1]['elements'][0]['text'].startswith(':warning:')


# =============================================================================
# Test Class: TestSendEmail
# =============================================================================

@pytest.mark.asyncio
class TestSendEmail:

    async def test_skipped_when_not_configured(self, mock_settings: Settings) -> None:
        notifier = ChangeListNotifier(mock_settings)

        outcome = await notifier.send_email({})

        assert outcome['success'] is True
        assert outcome['skipped'] is True

    async def test_posts_to_resend(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        requests: List[httpx.Request] = []
        async with _resend_client(requests) as client:
            notifier = ChangeListNotifier(notifying_settings, http_client=client)
            outcome = await notifier.send_email(build_completion_summary(job, result))

        assert outcome == {'success': True, 'id': 'email_123'}
        assert len(requests) == 1
        assert str(requests[0].url) == RESEND_API_URL
        assert requests[0].headers['Authorization'] == 'Bearer re_test_key'

        payload = json.loads(requests[0].content)
        assert payload['to'] == ['admin@example.com']
        assert payload['subject'].startswith('FTC deletions processed')

    async def test_http_error_reported(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        requests: List[httpx.Request] = []
        async with _resend_client(requests, status_code=401) as client:
            notifier = ChangeListNotifier(notifying_settings, http_client=client)
            outcome = await notifier.send_email(build_completion_summary(job, result))

        assert outcome['success'] is False
        assert '401' in outcome['error']


# =============================================================================
# Test Class: TestSendSlack
# =============================================================================

@pytest.mark.asyncio
class TestSendSlack:

    async def test_skipped_when_not_configured(self, mock_settings: Settings) -> None:
        sent: List[Dict[str, Any]] = []
        notifier = ChangeListNotifier(mock_settings, webhook_factory=_webhook_factory(sent))

        outcome = await notifier.send_slack({})

        assert outcome['skipped'] is True
        assert sent == []

    async def test_sends_blocks(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        sent: List[Dict[str, Any]] = []
        notifier = ChangeListNotifier(notifying_settings, webhook_factory=_webhook_factory(sent))

        outcome = await notifier.send_slack(build_completion_summary(job, result))

        assert outcome == {'success': True}
        assert sent[0]['url'] == notifying_settings.slack_webhook_url
        assert sent[0]['blocks'][0]['text']['text'] == 'FTC deletions processed'

    async def test_default_client_is_awaited(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        sent: List[str] = []

        async def fake_send(client: AsyncWebhookClient, text: str, blocks: List[Dict[str, Any]]) -> FakeSlackResponse:
            sent.append(client.url)
            return FakeSlackResponse()

        monkeypatch.setattr(AsyncWebhookClient, 'send', fake_send)
        notifier = ChangeListNotifier(notifying_settings)

        outcome = await notifier.send_slack(build_completion_summary(job, result))

        assert outcome == {'success': True}
        assert sent == [notifying_settings.slack_webhook_url]

    async def test_non_200_reported(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        sent: List[Dict[str, Any]] = []
        notifier = ChangeListNotifier(
            notifying_settings,
            webhook_factory=_webhook_factory(sent, status_code=404, body="no_service"),
        )

        outcome = await notifier.send_slack(build_completion_summary(job, result))

        assert outcome['success'] is False
        assert 'no_service' in outcome['error']


# =============================================================================
# Test Class: TestNotifyCompleted
# =============================================================================

@pytest.mark.asyncio
class TestNotifyCompleted:

    async def test_reports_each_channel(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        sent: List[Dict[str, Any]] = []
        requests: List[httpx.Request] = []
        async with _resend_client(requests) as client:
            notifier = ChangeListNotifier(
                notifying_settings,
                http_client=client,
                webhook_factory=_webhook_factory(sent),
            )
            outcome = await notifier.notify_completed(job, result)

        assert outcome['email']['success'] is True
        assert outcome['slack']['success'] is True
        assert len(sent) == 1

    async def test_channel_failures_never_raise(
        self,
        notifying_settings: Settings,
        job: ChangeListJob,
        result: ChangeListRunResult,
    ) -> None:
        def exploding_factory(url: str):
            raise RuntimeError("webhook misconfigured")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = ChangeListNotifier(
                notifying_settings,
                http_client=client,
                webhook_factory=exploding_factory,
            )
            outcome = await notifier.notify_completed(job, result)

        assert outcome['email']['success'] is False
        assert 'connection refused' in outcome['email']['error']
        assert outcome['slack'] == {
            'success': False,
            'error': 'Failed to send Slack message: webhook misconfigured',
        }
