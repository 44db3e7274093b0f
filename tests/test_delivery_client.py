"""Tests for the retrying delivery client."""

import asyncio

import pytest

from hubsend.common.errors import InvalidUrl, RetriesExhausted, TransportError
from hubsend.delivery.client import (
    DeliveryClient,
    backoff_delay,
    classify_failure,
    validate_url,
)
from hubsend.delivery.signature import sign_payload
from hubsend.delivery.transport import TransportResponse

URL = "https://hooks.example.com/deploy"


class TestValidateUrl:
    @pytest.mark.parametrize(
        "url", ["http://x", "https://example.com/hook?a=1", "HTTPS://EXAMPLE.COM"]
    )
    def test_accepts_http_and_https(self, url):
        validate_url(url)

    @pytest.mark.parametrize("url", ["ftp://x", "file:///etc/passwd", "ws://example.com"])
    def test_rejects_other_schemes(self, url):
        with pytest.raises(InvalidUrl) as exc_info:
            validate_url(url)
        assert exc_info.value.message == "URL must use http or https protocol."

    @pytest.mark.parametrize("url", ["", "not a url", "example.com/hook", "http://", "http://[::1"])
    def test_rejects_malformed(self, url):
        with pytest.raises(InvalidUrl) as exc_info:
            validate_url(url)
        assert exc_info.value.message == "Invalid URL provided."


class TestBackoff:
    def test_linear_delay(self):
        assert [backoff_delay(i) for i in (1, 2, 3, 4)] == [1.0, 2.0, 3.0, 4.0]


class TestClassifyFailure:
    def test_status_wins(self):
        exc = TransportError("Bad Gateway", status=502, code="ERR_BAD_RESPONSE")
        assert classify_failure(exc) == "status code 502"

    def test_code_before_message(self):
        assert classify_failure(TransportError("boom", code="ECONNRESET")) == "ECONNRESET"

    def test_message_fallback(self):
        assert classify_failure(TransportError("socket hang up")) == "socket hang up"


class TestDeliver:
    @pytest.fixture
    def make_client(self, secret, fake_sleep):
        def _make(transport):
            return DeliveryClient(transport, secret=secret, revision="a1b2c3d4", sleep=fake_sleep)

        return _make

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_calls(self, make_transport, make_client, ok_response):
        transport = make_transport(ok_response)
        client = make_client(transport)

        with pytest.raises(InvalidUrl):
            await client.deliver("ftp://x", {"a": 1}, {}, timeout=1.0, max_retries=3)

        transport.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, make_transport, make_client, ok_response, sleeps):
        transport = make_transport(ok_response)
        result = await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=5.0, max_retries=3)

        assert result.ok is True
        assert result.status == 200
        assert result.body == {"accepted": True}
        assert result.attempt_count == 1
        assert sleeps == []
        result.raise_for_outcome()

    @pytest.mark.asyncio
    async def test_always_failing_network(self, make_transport, make_client, network_error, sleeps):
        transport = make_transport(network_error, network_error, network_error)
        result = await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=5.0, max_retries=3)

        assert transport.post.await_count == 3
        assert sleeps == [1.0, 2.0]
        assert result.ok is False
        assert result.cause == "ECONNREFUSED"
        assert [a.index for a in result.attempts] == [1, 2, 3]
        assert [a.delay for a in result.attempts] == [1.0, 2.0, 0.0]

        with pytest.raises(RetriesExhausted) as exc_info:
            result.raise_for_outcome()
        assert str(exc_info.value) == "Request failed after 3 attempts: ECONNREFUSED"

    @pytest.mark.asyncio
    async def test_success_on_second_attempt(
        self, make_transport, make_client, network_error, sleeps
    ):
        second = TransportResponse(status=201, body="created")
        transport = make_transport(network_error, second, TransportResponse(status=200, body=""))
        result = await make_client(transport).deliver(URL, "hi", {}, timeout=5.0, max_retries=3)

        assert transport.post.await_count == 2
        assert sleeps == [1.0]
        assert result.ok is True
        assert result.status == 201
        assert result.body == "created"
        assert [a.succeeded for a in result.attempts] == [False, True]

    @pytest.mark.asyncio
    async def test_server_error_response_is_success(self, make_transport, make_client, sleeps):
        transport = make_transport(TransportResponse(status=500, body={"error": "boom"}))
        result = await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=5.0, max_retries=3)

        assert transport.post.await_count == 1
        assert result.ok is True
        assert result.status == 500
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_last_cause_is_reported(self, make_transport, make_client, network_error):
        transport = make_transport(network_error, TransportError("Service Unavailable", status=503))
        result = await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=5.0, max_retries=2)

        assert result.cause == "status code 503"
        assert result.attempts[0].cause == "ECONNREFUSED"

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(
        self, make_transport, make_client, network_error, sleeps
    ):
        transport = make_transport(network_error)
        result = await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=5.0, max_retries=1)

        assert result.ok is False
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_rejects_zero_retries(self, make_transport, make_client, ok_response):
        with pytest.raises(ValueError):
            await make_client(make_transport(ok_response)).deliver(URL, {}, {}, 1.0, 0)

    @pytest.mark.asyncio
    async def test_request_shape(self, make_transport, make_client, secret, ok_response):
        transport = make_transport(ok_response)
        await make_client(transport).deliver(
            URL,
            {"event": "deploy"},
            {"X-Custom": "1"},
            timeout=2.5,
            max_retries=3,
        )

        url, body, headers, timeout = transport.post.await_args.args
        signature = sign_payload(secret, {"event": "deploy"})
        assert url == URL
        assert body == b'{"event":"deploy"}'
        assert timeout == 2.5
        assert headers == {
            "Content-Type": "application/json",
            "X-Hub-Signature": signature,
            "X-Hub-Signature-256": f"sha256={signature}",
            "X-Hub-SHA": "a1b2c3d4",
            "X-Custom": "1",
        }

    @pytest.mark.asyncio
    async def test_user_headers_override_computed(self, make_transport, make_client, ok_response):
        transport = make_transport(ok_response)
        await make_client(transport).deliver(
            URL,
            {"a": 1},
            {"X-Hub-SHA": "override", "Content-Type": "text/plain"},
            timeout=1.0,
            max_retries=1,
        )

        headers = transport.post.await_args.args[2]
        assert headers["X-Hub-SHA"] == "override"
        assert headers["Content-Type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_headers_unchanged_across_retries(
        self, make_transport, make_client, network_error, ok_response
    ):
        transport = make_transport(network_error, network_error, ok_response)
        await make_client(transport).deliver(URL, {"a": 1}, {}, timeout=1.0, max_retries=3)

        sent = [call.args[2] for call in transport.post.await_args_list]
        assert sent[0] == sent[1] == sent[2]

    @pytest.mark.asyncio
    async def test_empty_payload_sends_no_body(
        self, make_transport, make_client, secret, ok_response
    ):
        transport = make_transport(ok_response)
        await make_client(transport).deliver(URL, "", {}, timeout=1.0, max_retries=1)

        _, body, headers, _ = transport.post.await_args.args
        assert body == b""
        assert headers["X-Hub-Signature"] == sign_payload(secret, "")

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff(self, make_transport, secret, network_error):
        transport = make_transport(network_error, network_error)

        async def _blocking_sleep(_delay: float) -> None:
            await asyncio.Event().wait()

        client = DeliveryClient(transport, secret=secret, sleep=_blocking_sleep)
        task = asyncio.create_task(client.deliver(URL, {}, {}, timeout=1.0, max_retries=2))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert transport.post.await_count == 1
