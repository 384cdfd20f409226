"""
Directory service: serves the merged channel+user directory through the TTL cache.

On a cache miss it paginates conversations.list, fetches users.list once,
merges the two and caches the result. Concurrent misses are collapsed into a
single upstream fetch.
"""

import asyncio

import structlog

from slack_relay.config import settings
from slack_relay.directory.cache import DirectoryCache
from slack_relay.directory.merger import Directory, merge_directory
from slack_relay.directory.paginator import PaginationResult, collect_conversations
from slack_relay.errors import DirectoryFetchError, UpstreamError
from slack_relay.slack.client import SlackClient, slack_client
from slack_relay.slack.retry import call_with_retry

logger = structlog.get_logger()


class DirectoryService:
    def __init__(
        self,
        client: SlackClient,
        cache: DirectoryCache,
        allow_partial: bool | None = None,
        max_pages: int | None = None,
        max_attempts: int | None = None,
        retry_wait: float | None = None,
    ):
        self.client = client
        self.cache = cache
        self.allow_partial = (
            settings.DIRECTORY_ALLOW_PARTIAL if allow_partial is None else allow_partial
        )
        self._max_pages = max_pages
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait
        self._refresh_lock = asyncio.Lock()

    async def get_directory(self) -> Directory:
        """Return the cached directory, fetching a fresh one on a miss.

        Raises:
            DirectoryFetchError: users.list failed and there is nothing to serve.
            PaginationLimitExceeded: conversations.list never ran out of cursors.
        """
        cached = self.cache.get()
        if cached is not None:
            logger.debug("directory.cache_hit", size=len(cached))
            return cached

        async with self._refresh_lock:
            # Double-check after acquiring lock
            cached = self.cache.get()
            if cached is not None:
                return cached
            logger.info("directory.cache_miss")
            return await self._fetch()

    async def _fetch(self) -> Directory:
        channels = await collect_conversations(
            self.client,
            max_pages=self._max_pages,
            max_attempts=self._max_attempts,
            retry_wait=self._retry_wait,
        )

        try:
            data = await call_with_retry(
                self.client.list_users,
                max_attempts=self._max_attempts,
                wait_seconds=self._retry_wait,
            )
        except UpstreamError as e:
            return self._without_users(channels, e)

        users = data.get("members") or []
        directory = merge_directory(channels.records, users)
        logger.info(
            "directory.merged",
            channels=len(channels.records),
            users=len(users),
            size=len(directory),
        )

        if channels.complete:
            self.cache.put(directory)
        else:
            logger.warning("directory.partial_not_cached", channels_error=str(channels.error))
        return directory

    def _without_users(self, channels: PaginationResult, users_error: UpstreamError) -> Directory:
        """Apply the failure policy when users.list could not be fetched."""
        if channels.records and self.allow_partial:
            logger.warning(
                "directory.serving_channels_only",
                channels=len(channels.records),
                users_error=str(users_error),
            )
            return merge_directory(channels.records, [])

        if channels.error is not None:
            channels_status = channels.error.message
        elif not channels.records:
            channels_status = "No channels returned"
        else:
            channels_status = "OK"
        details = {"channels": channels_status, "users": users_error.message}
        logger.error("directory.fetch_failed", **details)
        raise DirectoryFetchError(details)


directory_service = DirectoryService(
    slack_client,
    DirectoryCache(ttl_seconds=settings.DIRECTORY_CACHE_TTL_SECONDS),
)
