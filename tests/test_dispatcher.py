import asyncio
import json

import httpx
import pytest

from slack_relay.dispatch.dispatcher import Dispatcher, render_text
from slack_relay.errors import DispatchValidationError, UpstreamRejected


def post_handler(failing: dict[str, str]):
    def handler(request):
        channel = json.loads(request.content)["channel"]
        if channel in failing:
            return {"ok": False, "error": failing[channel]}
        return {"ok": True, "channel": channel, "ts": "1.0"}

    return handler


@pytest.mark.asyncio
async def test_failure_is_isolated_and_order_preserved(slack, fake_slack):
    fake_slack.on("chat.postMessage", post_handler({"B": "channel_not_found"}))
    dispatcher = Dispatcher(slack, concurrency=5, template="{message}", username="")

    report = await dispatcher.dispatch("hello", ["A", "B", "C"])

    assert (report.total, report.successful, report.failed) == (3, 2, 1)
    assert [r.destination_id for r in report.results] == ["A", "B", "C"]
    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].error == "channel_not_found"
    assert report.results[0].error is None


@pytest.mark.asyncio
async def test_transport_failure_is_reported_not_raised(slack, fake_slack):
    def handler(request):
        if json.loads(request.content)["channel"] == "C2":
            raise httpx.ConnectError("reset by peer", request=request)
        return {"ok": True}

    fake_slack.on("chat.postMessage", handler)
    dispatcher = Dispatcher(slack, template="{message}")

    report = await dispatcher.dispatch("hi", ["C1", "C2", "C3"])

    assert report.failed == 1
    assert report.results[1].error == "reset by peer"


@pytest.mark.asyncio
async def test_sends_are_not_retried(slack, fake_slack):
    fake_slack.on("chat.postMessage", lambda request: httpx.Response(503))
    dispatcher = Dispatcher(slack, template="{message}")

    report = await dispatcher.dispatch("hi", ["C1"])

    assert report.failed == 1
    assert len(fake_slack.calls_to("chat.postMessage")) == 1


@pytest.mark.asyncio
async def test_duplicate_ids_count_toward_total(slack, fake_slack):
    fake_slack.on("chat.postMessage", post_handler({}))
    dispatcher = Dispatcher(slack, template="{message}")

    report = await dispatcher.dispatch("hi", ["C1", "C1", "C2"])

    assert report.total == 3
    assert report.successful + report.failed == report.total
    assert len(fake_slack.calls_to("chat.postMessage")) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message,destinations",
    [
        ("", ["C1"]),
        ("   ", ["C1"]),
        (None, ["C1"]),
        ("hello", []),
        ("hello", None),
    ],
)
async def test_invalid_input_rejected_before_any_call(slack, fake_slack, message, destinations):
    fake_slack.on("chat.postMessage", post_handler({}))
    dispatcher = Dispatcher(slack, template="{message}")

    with pytest.raises(DispatchValidationError):
        await dispatcher.dispatch(message, destinations)

    assert fake_slack.calls == []


@pytest.mark.asyncio
async def test_text_template_and_username_are_applied(slack, fake_slack):
    fake_slack.on("chat.postMessage", post_handler({}))
    dispatcher = Dispatcher(slack, template="[test] {message}", username="Scheduler")

    await dispatcher.dispatch("deploy done", ["C1"])

    body = json.loads(fake_slack.calls_to("chat.postMessage")[0].content)
    assert body == {"channel": "C1", "text": "[test] deploy done", "username": "Scheduler"}


def test_render_text_leaves_braces_in_message_alone():
    assert render_text("use {x}", template="{message}!") == "use {x}!"


def test_render_text_fills_sent_at():
    text = render_text("hi", template="{message} @ {sent_at}", tz="UTC")

    assert text.startswith("hi @ ")
    assert text.endswith("UTC")


class SlowClient:
    """Duck-typed client that finishes sends out of order and tracks overlap."""

    def __init__(self, delays: dict[str, float], failing: set[str] = frozenset()):
        self.delays = delays
        self.failing = failing
        self.in_flight = 0
        self.max_in_flight = 0

    async def post_message(self, channel, text, username=None):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(channel, 0))
            if channel in self.failing:
                raise UpstreamRejected("is_archived", "chat.postMessage")
            return {"ok": True}
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_results_follow_input_order_under_concurrency():
    ids = [f"C{i}" for i in range(8)]
    delays = {cid: 0.01 * (len(ids) - i) for i, cid in enumerate(ids)}
    client = SlowClient(delays, failing={"C3"})
    dispatcher = Dispatcher(client, concurrency=8, template="{message}")

    report = await dispatcher.dispatch("hi", ids)

    assert [r.destination_id for r in report.results] == ids
    assert [r.success for r in report.results] == [cid != "C3" for cid in ids]
    assert client.max_in_flight > 1


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    ids = [f"C{i}" for i in range(10)]
    client = SlowClient({cid: 0.01 for cid in ids})
    dispatcher = Dispatcher(client, concurrency=3, template="{message}")

    report = await dispatcher.dispatch("hi", ids)

    assert report.successful == 10
    assert client.max_in_flight <= 3


@pytest.mark.asyncio
async def test_corrupt_body_on_one_send_is_reported(slack, fake_slack):
    def handler(request):
        if json.loads(request.content)["channel"] == "B":
            raise httpx.DecodingError("bad gzip", request=request)
        return {"ok": True}

    fake_slack.on("chat.postMessage", handler)
    dispatcher = Dispatcher(slack, template="{message}")

    report = await dispatcher.dispatch("hi", ["A", "B", "C"])

    assert (report.total, report.successful, report.failed) == (3, 2, 1)
    assert report.results[1].error == "bad gzip"


@pytest.mark.asyncio
async def test_non_object_reply_on_one_send_is_reported(slack, fake_slack):
    def handler(request):
        if json.loads(request.content)["channel"] == "B":
            return httpx.Response(200, json=["unexpected"])
        return {"ok": True}

    fake_slack.on("chat.postMessage", handler)
    dispatcher = Dispatcher(slack, template="{message}")

    report = await dispatcher.dispatch("hi", ["A", "B", "C"])

    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].error == "Unexpected response payload"


class BrokenClient:
    async def post_message(self, channel, text, username=None):
        if channel == "B":
            raise KeyError("channel")
        return {"ok": True}


@pytest.mark.asyncio
async def test_unexpected_exception_does_not_abort_other_sends():
    dispatcher = Dispatcher(BrokenClient(), template="{message}")

    report = await dispatcher.dispatch("hi", ["A", "B", "C"])

    assert [r.destination_id for r in report.results] == ["A", "B", "C"]
    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].error
