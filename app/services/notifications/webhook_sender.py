from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.config.settings import settings
from app.db.models import MessageFormat
from app.utils.logging import get_logger

logger = get_logger()


@dataclass
class SendResult:
    success: bool
    error: Optional[str] = None
    skipped: bool = False


def urgency_marker(days_remaining: int) -> str:
    if days_remaining <= 3:
        return "🔴"
    if days_remaining <= 7:
        return "🟡"
    return "🟢"


def describe_days_remaining(days_remaining: int) -> str:
    if days_remaining == 0:
        return "Today"
    if days_remaining < 0:
        return f"Expired {abs(days_remaining)} days ago"
    return f"{days_remaining} days left"


def build_payload(
    title: str,
    content: Optional[str],
    days_remaining: int,
    message_format: MessageFormat = MessageFormat.TEXT,
) -> Dict[str, Any]:
    """
    Build a chat robot message body.

    Markdown messages bold the title and the countdown; text messages carry
    the same lines without markup.
    """
    urgency = urgency_marker(days_remaining)
    day_text = describe_days_remaining(days_remaining)
    body = content or ""

    if message_format == MessageFormat.MARKDOWN:
        return {
            "msgtype": "markdown",
            "markdown": {
                "content": f"{urgency} **{title}**\n\n> **{day_text}**\n\n{body}"
            },
        }

    return {
        "msgtype": "text",
        "text": {"content": f"{urgency} {title}\n{day_text}\n\n{body}".rstrip()},
    }


class WebhookSender:
    """
    Posts reminders to a WeCom style group robot webhook.

    The robot answers HTTP 200 for most failures, so success is decided by
    ``errcode == 0`` in the JSON body. Exceptions never escape ``send``.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.WEBHOOK_TIMEOUT_SECONDS
        self.transport = transport

    async def send(
        self,
        url: str,
        title: str,
        content: Optional[str],
        days_remaining: int,
        message_format: MessageFormat = MessageFormat.TEXT,
    ) -> SendResult:
        payload = build_payload(title, content, days_remaining, message_format)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException:
            return SendResult(
                success=False, error=f"Request timed out after {self.timeout}s"
            )
        except httpx.HTTPError as e:
            return SendResult(success=False, error=str(e) or e.__class__.__name__)

        try:
            data = response.json()
        except ValueError:
            return SendResult(
                success=False,
                error=f"Unexpected response: HTTP {response.status_code}",
            )

        if isinstance(data, dict) and data.get("errcode") == 0:
            return SendResult(success=True)

        errmsg = data.get("errmsg") if isinstance(data, dict) else None
        return SendResult(
            success=False,
            error=errmsg or f"Send failed: HTTP {response.status_code}",
        )


def get_webhook_sender() -> WebhookSender:
    return WebhookSender()
