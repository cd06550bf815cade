"""
Alert delivery
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

import httpx

from core.config import Settings, settings as default_settings
from core.exceptions import NotificationError
from models.base import AlertSeverity
from schemas.pipeline import Alert

logger = logging.getLogger(__name__)


class Notifier(ABC):

    @abstractmethod
    async def send(self, alerts: List[Alert]) -> None:
        """Deliver alerts; raise NotificationError on failure"""


class LoggingNotifier(Notifier):
    """Writes alerts to the application log. Used when no webhook is configured."""

    async def send(self, alerts: List[Alert]) -> None:
        for alert in alerts:
            level = logging.ERROR if alert.severity == AlertSeverity.ERROR.value else logging.WARNING
            logger.log(level, f"[{alert.type}] {alert.message}")


def build_slack_message(alerts: List[Alert]) -> Dict[str, Any]:
    errors = sum(1 for a in alerts if a.severity == AlertSeverity.ERROR.value)
    warnings = sum(1 for a in alerts if a.severity == AlertSeverity.WARNING.value)

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "🚨 HR ETL Data Quality Alert"},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Errors:* {errors}"},
                {"type": "mrkdwn", "text": f"*Warnings:* {warnings}"},
            ],
        },
    ]
    blocks.extend(
        {"type": "section", "text": {"type": "mrkdwn", "text": f"*{a.type}*: {a.message}"}}
        for a in alerts
    )
    return {"text": "HR ETL Data Quality Alert", "blocks": blocks}


class SlackNotifier(Notifier):
    """Posts a block-formatted summary to a Slack incoming webhook"""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._client = client

    async def send(self, alerts: List[Alert]) -> None:
        if not alerts:
            return

        payload = build_slack_message(alerts)
        try:
            if self._client is not None:
                response = await self._client.post(self.webhook_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(
                "Error sending Slack alert",
                context={"alerts": len(alerts)},
                original_exception=e
            )

        if response.status_code >= 400:
            raise NotificationError(
                f"Slack webhook returned {response.status_code}",
                context={"alerts": len(alerts), "response_body": response.text[:200]}
            )

        logger.info(f"Sent {len(alerts)} alerts to Slack")


def build_notifier(config: Optional[Settings] = None) -> Notifier:
    config = config or default_settings
    if config.SLACK_WEBHOOK_URL:
        return SlackNotifier(config.SLACK_WEBHOOK_URL)
    return LoggingNotifier()
