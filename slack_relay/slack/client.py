"""
Slack Web API client: singleton, initialized and shut down by the app lifespan.

Handles:
- bearer-token auth on every call
- failure classification: transport/throttling -> UpstreamUnavailable,
  ``ok: false`` -> UpstreamRejected
- conversations.list, users.list, auth.test, chat.postMessage
"""

import httpx
import structlog

from slack_relay.config import settings
from slack_relay.errors import UpstreamRejected, UpstreamUnavailable

logger = structlog.get_logger()


class SlackClient:
    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._token = token
        self._base_url = base_url
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = None

    @property
    def token(self) -> str:
        return self._token if self._token is not None else settings.SLACK_BOT_TOKEN

    async def initialize(self, transport: httpx.AsyncBaseTransport | None = None):
        """Create the httpx client. ``transport`` is only overridden in tests."""
        self._http = httpx.AsyncClient(
            base_url=self._base_url or settings.SLACK_API_BASE,
            timeout=self._timeout or settings.SLACK_TIMEOUT_SECONDS,
            transport=transport,
        )
        if not self.token:
            logger.warning("slack.token_missing")
        logger.info("slack.initialized", token_configured=bool(self.token))

    async def shutdown(self):
        """Close httpx client."""
        if self._http:
            await self._http.aclose()
            self._http = None
        logger.info("slack.shutdown")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _authed_request(
        self,
        http_method: str,
        api_method: str,
        raise_on_error: bool = True,
        **kwargs,
    ) -> dict:
        """Call a Slack API method and return the decoded payload."""
        if self._http is None:
            raise RuntimeError("SlackClient is not initialized")

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = await self._http.request(http_method, api_method, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Timed out calling {api_method}", api_method) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(str(e) or type(e).__name__, api_method) from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise UpstreamUnavailable(
                f"HTTP {resp.status_code}",
                api_method,
                context={
                    "status_code": resp.status_code,
                    "retry_after": resp.headers.get("Retry-After"),
                },
            )

        try:
            data = resp.json()
        except ValueError as e:
            if 400 <= resp.status_code < 500:
                raise UpstreamRejected(
                    f"HTTP {resp.status_code}", api_method, status_code=resp.status_code
                ) from e
            raise UpstreamUnavailable("Invalid JSON in response", api_method) from e

        if not isinstance(data, dict):
            logger.warning("slack.unexpected_payload", method=api_method, type=type(data).__name__)
            raise UpstreamRejected("Unexpected response payload", api_method)

        if raise_on_error and not data.get("ok"):
            error = data.get("error") or f"HTTP {resp.status_code}"
            status_code = resp.status_code if resp.status_code != 200 else None
            logger.warning("slack.api_error", method=api_method, error=error)
            raise UpstreamRejected(error, api_method, status_code=status_code)
        return data

    # ------------------------------------------------------------------
    # Web API methods
    # ------------------------------------------------------------------

    async def list_conversations(
        self,
        cursor: str | None = None,
        types: str | None = None,
        limit: int | None = None,
        exclude_archived: bool | None = None,
    ) -> dict:
        """Fetch one page of conversations.list.

        Returns the raw payload; the next cursor lives under
        ``response_metadata.next_cursor``.
        """
        if exclude_archived is None:
            exclude_archived = settings.SLACK_EXCLUDE_ARCHIVED
        params = {
            "types": types or settings.SLACK_CONVERSATION_TYPES,
            "limit": limit or settings.SLACK_PAGE_LIMIT,
            "exclude_archived": "true" if exclude_archived else "false",
        }
        if cursor:
            params["cursor"] = cursor
        return await self._authed_request("GET", "conversations.list", params=params)

    async def list_users(self) -> dict:
        """Fetch users.list in a single call."""
        return await self._authed_request("GET", "users.list")

    async def auth_test(self) -> dict:
        """Return the raw auth.test payload, including ``ok: false`` answers."""
        return await self._authed_request("GET", "auth.test", raise_on_error=False)

    async def post_message(self, channel: str, text: str, username: str | None = None) -> dict:
        """Post a text message to a channel, DM or user id."""
        payload = {"channel": channel, "text": text}
        if username:
            payload["username"] = username
        return await self._authed_request("POST", "chat.postMessage", json=payload)


# Singleton instance
slack_client = SlackClient()
