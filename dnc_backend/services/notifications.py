"""
Change-List Completion Notifications

Sends a summary when an FTC change list finishes processing:
- Email through the Resend HTTP API (httpx), when RESEND_API_KEY and
  ADMIN_NOTIFICATION_EMAIL are set
- Slack message through an incoming webhook (slack-sdk), when
  SLACK_WEBHOOK_URL is set

Notification failures are never raised: each channel reports a result dict
with success/skipped/error keys, and the job's outcome is unaffected.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from slack_sdk.webhook.async_client import AsyncWebhookClient

from dnc_backend.core.config import Settings
from dnc_backend.models.enums import ChangeType
from dnc_backend.models.schemas import ChangeListJob, ChangeListRunResult


logger = logging.getLogger(__name__)


RESEND_API_URL: str = "https://api.resend.com/emails"


# =============================================================================
# Message Formatting
# =============================================================================

def build_completion_summary(job: ChangeListJob, result: ChangeListRunResult) -> Dict[str, Any]:
    """
    Collect the fields shown in completion notifications.

    Args:
        job: The change-list job record.
        result: Outcome of the run.

    Returns:
        Dict with change list id, type, area codes, file, release date,
        record counters and duration.
    """
    return {
        'change_list_id': job.id,
        'change_type': ChangeType(job.change_type).value,
        'area_codes': list(job.area_codes),
        'file_name': job.file_name,
        'ftc_file_date': job.ftc_file_date.isoformat() if job.ftc_file_date else None,
        'total_records': result.total_records,
        'processed_records': result.processed_records,
        'failed_records': result.failed_records,
        'skipped_records': result.skipped_records,
        'duration_seconds': round(result.duration_ms / 1000, 1),
        'error_count': len(result.errors),
    }


def format_email_subject(summary: Dict[str, Any]) -> str:
    return (
        f"FTC {summary['change_type']} processed: "
        f"{summary['processed_records']:,} of {summary['total_records']:,} records"
    )


def format_email_text(summary: Dict[str, Any]) -> str:
    lines = [
        f"FTC change list {summary['change_list_id']} finished processing.",
        "",
        f"Type: {summary['change_type']}",
        f"Area codes: {', '.join(summary['area_codes']) or 'all'}",
        f"File: {summary['file_name'] or 'n/a'}",
        f"FTC release date: {summary['ftc_file_date'] or 'n/a'}",
        "",
        f"Total records: {summary['total_records']:,}",
        f"Processed: {summary['processed_records']:,}",
        f"Skipped: {summary['skipped_records']:,}",
        f"Failed: {summary['failed_records']:,}",
        f"Duration: {summary['duration_seconds']}s",
    ]
    if summary['error_count']:
        lines.append(f"Errors recorded: {summary['error_count']}")
    return "\n".join(lines)


def format_slack_blocks(summary: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Build Slack Block Kit blocks for a completion summary."""
    status_emoji = ":white_check_mark:" if summary['failed_records'] == 0 else ":warning:"

    return [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"FTC {summary['change_type']} processed",
                "emoji": True,
            },
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Area codes:*\n{', '.join(summary['area_codes']) or 'all'}"},
                {"type": "mrkdwn", "text": f"*Release date:*\n{summary['ftc_file_date'] or 'n/a'}"},
                {"type": "mrkdwn", "text": f"*Processed:*\n{summary['processed_records']:,} / {summary['total_records']:,}"},
                {"type": "mrkdwn", "text": f"*Skipped / Failed:*\n{summary['skipped_records']:,} / {summary['failed_records']:,}"},
            ],
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": f"{status_emoji} {summary['file_name'] or summary['change_list_id']} in {summary['duration_seconds']}s",
                }
            ],
        },
    ]


# =============================================================================
# Notifier
# =============================================================================


class ChangeListNotifier:
    """
    Sends completion notifications over the configured channels.

    Args:
        settings: Application settings with channel credentials.
        http_client: Optional httpx.AsyncClient for Resend calls.
        webhook_factory: Builds the Slack webhook client from a URL.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        webhook_factory: Callable[[str], AsyncWebhookClient] = AsyncWebhookClient,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._webhook_factory = webhook_factory

    async def send_email(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """
        Email the summary through Resend.

        Returns:
            Dict with success, and skipped/reason or error.
        """
        if not self._settings.resend_api_key or not self._settings.admin_notification_email:
            return {'success': True, 'skipped': True, 'reason': 'Email notifications not configured'}

        payload = {
            "from": self._settings.resend_from_email,
            "to": [self._settings.admin_notification_email],
            "subject": format_email_subject(summary),
            "text": format_email_text(summary),
        }
        headers = {
            "Authorization": f"Bearer {self._settings.resend_api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(RESEND_API_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
                    response = await client.post(RESEND_API_URL, json=payload, headers=headers)
            response.raise_for_status()
            email_id = response.json().get('id')
        except httpx.HTTPStatusError as e:
            logger.warning(f"Resend API returned {e.response.status_code}: {e.response.text}")
            return {'success': False, 'error': f'Resend API returned status {e.response.status_code}'}
        except Exception as e:
            logger.warning(f"Failed to send completion email: {e}")
            return {'success': False, 'error': f'Failed to send email: {e}'}

        return {'success': True, 'id': email_id}

    async def send_slack(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post the summary to Slack.

        Returns:
            Dict with success, and skipped/reason or error.
        """
        if not self._settings.slack_webhook_url:
            return {'success': True, 'skipped': True, 'reason': 'SLACK_WEBHOOK_URL not configured'}

        try:
            client = self._webhook_factory(self._settings.slack_webhook_url)
            response = await client.send(
                text=format_email_subject(summary),
                blocks=format_slack_blocks(summary),
            )
        except Exception as e:
            logger.warning(f"Failed to send Slack message: {e}")
            return {'success': False, 'error': f'Failed to send Slack message: {e}'}

        if response.status_code != 200:
            return {
                'success': False,
                'error': f'Slack API returned status {response.status_code}: {response.body}',
            }

        return {'success': True}

    async def notify_completed(self, job: ChangeListJob, result: ChangeListRunResult) -> Dict[str, Any]:
        """
        Send the completion summary on every configured channel.

        Never raises.

        Returns:
            Dict mapping channel name ('email', 'slack') to its result dict.
        """
        try:
            summary = build_completion_summary(job, result)
        except Exception as e:
            logger.warning(f"Could not build completion summary for {job.id}: {e}")
            return {'error': str(e)}

        results = {
            'email': await self.send_email(summary),
            'slack': await self.send_slack(summary),
        }

        for channel, outcome in results.items():
            if not outcome.get('success'):
                logger.warning(f"{channel} notification for change list {job.id} failed: {outcome.get('error')}")

        return results


__all__ = [
    'RESEND_API_URL',
    'build_completion_summary',
    'format_email_subject',
    'format_email_text',
    'format_slack_blocks',
    'ChangeListNotifier',
]
