"""
Dispatcher: send one message to many Slack destinations.

Sends run concurrently under a semaphore; each result lands in the slot of
its input position so the report keeps the request order. A failed send is
recorded on its own result and never stops the others.
"""

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import structlog

from slack_relay.config import settings
from slack_relay.dispatch.base import DispatchReport, DispatchResult
from slack_relay.errors import DispatchValidationError, UpstreamError
from slack_relay.slack.client import SlackClient, slack_client

logger = structlog.get_logger()


def render_text(message: str, template: str | None = None, tz: str | None = None) -> str:
    """Fill the outgoing text template.

    Placeholders: ``{message}`` and ``{sent_at}`` (local time in ``tz``).
    """
    template = template or settings.DISPATCH_TEXT_TEMPLATE
    if "{sent_at}" not in template:
        return template.format(message=message)
    sent_at = datetime.now(ZoneInfo(tz or settings.DISPATCH_TIMEZONE))
    return template.format(message=message, sent_at=sent_at.strftime("%Y-%m-%d %H:%M:%S %Z"))


def validate_request(message: str | None, destinations: list[str] | None) -> None:
    if not message or not message.strip():
        raise DispatchValidationError("Missing message")
    if not destinations:
        raise DispatchValidationError("Missing destinations")


class Dispatcher:
    def __init__(
        self,
        client: SlackClient,
        concurrency: int | None = None,
        template: str | None = None,
        username: str | None = None,
    ):
        self.client = client
        self.concurrency = max(1, concurrency or settings.DISPATCH_CONCURRENCY)
        self.template = template
        self.username = username if username is not None else settings.DISPATCH_USERNAME

    async def dispatch(self, message: str | None, destinations: list[str] | None) -> DispatchReport:
        """Send ``message`` to every destination id, in order.

        Args:
            message: Text to send. Empty or whitespace-only is rejected.
            destinations: Slack channel/DM/user ids. Not checked against the
                directory; unknown ids simply fail at send time.

        Raises:
            DispatchValidationError: before any upstream call, on bad input.
        """
        validate_request(message, destinations)

        text = render_text(message, self.template)
        semaphore = asyncio.Semaphore(self.concurrency)
        slots: list[DispatchResult | None] = [None] * len(destinations)

        async def send(index: int, destination_id: str):
            async with semaphore:
                slots[index] = await self._send_one(destination_id, text)

        logger.info("dispatch.started", total=len(destinations), concurrency=self.concurrency)
        await asyncio.gather(*(send(i, d) for i, d in enumerate(destinations)))

        report = DispatchReport(results=slots)
        logger.info(
            "dispatch.completed",
            successful=report.successful,
            failed=report.failed,
            total=report.total,
        )
        return report

    async def _send_one(self, destination_id: str, text: str) -> DispatchResult:
        try:
            await self.client.post_message(destination_id, text, username=self.username or None)
        except UpstreamError as e:
            logger.warning("dispatch.failed", destination=destination_id, error=e.message)
            return DispatchResult(destination_id=destination_id, success=False, error=e.message)
        except Exception as e:
            logger.exception("dispatch.send_crashed", destination=destination_id)
            return DispatchResult(
                destination_id=destination_id,
                success=False,
                error=str(e) or type(e).__name__,
            )

        logger.info("dispatch.sent", destination=destination_id)
        return DispatchResult(destination_id=destination_id, success=True)


dispatcher = Dispatcher(slack_client)
