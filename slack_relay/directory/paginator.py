"""
Cursor-driven pagination over conversations.list.

``iter_conversation_pages`` is a lazy async generator of pages: the first call
has no cursor, each following call passes the previous ``next_cursor``, and
the sequence ends on an empty cursor. A hard page cap guards against an
upstream that never stops handing out cursors.

``collect_conversations`` drains the generator and keeps whatever was fetched
if a page ultimately fails, recording the error instead of raising it.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import structlog

from slack_relay.config import settings
from slack_relay.errors import PaginationLimitExceeded, UpstreamError
from slack_relay.slack.client import SlackClient
from slack_relay.slack.retry import call_with_retry

logger = structlog.get_logger()

METHOD = "conversations.list"


@dataclass
class Page:
    number: int  # 1-based
    records: list[dict]
    next_cursor: str


@dataclass
class PaginationResult:
    records: list[dict] = field(default_factory=list)
    pages: int = 0
    error: UpstreamError | None = None

    @property
    def complete(self) -> bool:
        return self.error is None


async def iter_conversation_pages(
    client: SlackClient,
    types: str | None = None,
    limit: int | None = None,
    max_pages: int | None = None,
    max_attempts: int | None = None,
    retry_wait: float | None = None,
) -> AsyncIterator[Page]:
    """Yield conversations.list pages until the cursor runs out.

    Raises:
        UpstreamError: a page failed (after retries for transient failures).
        PaginationLimitExceeded: more than ``max_pages`` pages were needed.
    """
    max_pages = max_pages or settings.SLACK_MAX_PAGES
    cursor: str | None = None

    for number in range(1, max_pages + 1):
        data = await call_with_retry(
            lambda: client.list_conversations(cursor=cursor, types=types, limit=limit),
            max_attempts=max_attempts,
            wait_seconds=retry_wait,
        )
        records = data.get("channels") or []
        cursor = (data.get("response_metadata") or {}).get("next_cursor") or ""
        yield Page(number=number, records=records, next_cursor=cursor)
        if not cursor:
            return

    raise PaginationLimitExceeded(METHOD, max_pages)


async def collect_conversations(
    client: SlackClient,
    types: str | None = None,
    limit: int | None = None,
    max_pages: int | None = None,
    max_attempts: int | None = None,
    retry_wait: float | None = None,
) -> PaginationResult:
    """Accumulate every conversation record across all pages.

    A failing page stops pagination; records from earlier pages are kept and
    the error is returned on the result. Hitting the page cap is not tolerated
    and propagates as PaginationLimitExceeded.
    """
    result = PaginationResult()
    pages = iter_conversation_pages(
        client,
        types=types,
        limit=limit,
        max_pages=max_pages,
        max_attempts=max_attempts,
        retry_wait=retry_wait,
    )
    try:
        async for page in pages:
            result.records.extend(page.records)
            result.pages = page.number
            logger.debug(
                "slack.page_fetched",
                page=page.number,
                count=len(page.records),
                total=len(result.records),
            )
    except PaginationLimitExceeded:
        logger.error("slack.pagination_limit_exceeded", pages=result.pages)
        raise
    except UpstreamError as e:
        logger.warning(
            "slack.pagination_stopped",
            error=str(e),
            pages=result.pages,
            fetched=len(result.records),
        )
        result.error = e

    logger.info("slack.conversations_fetched", pages=result.pages, total=len(result.records))
    return result
