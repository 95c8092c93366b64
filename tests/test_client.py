import asyncio
import json

import httpx
import pytest

from handoff_snapshot.client import PylonClient, parse_retry_after
from handoff_snapshot.exceptions import PublishError, RateLimitedError, UpstreamError
from handoff_snapshot.slack import SlackPublisher
from helpers import build_issue


def _client(handler) -> PylonClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PylonClient(token="secret", base_url="https://api.test", http_client=http)


def test_search_issues_sends_cursor_and_parses_page():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "data": [build_issue("a", priority="urgent"), build_issue("b")],
                "pagination": {"has_next_page": True, "cursor": "next-1"},
            },
        )

    page = asyncio.run(_client(handler).search_issues("cur-0", 50))

    [request] = requests
    assert request.url.path == "/issues/search"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"limit": 50, "cursor": "cur-0"}
    assert [t.id for t in page.items] == ["a", "b"]
    assert page.has_next_page is True
    assert page.next_cursor == "next-1"


def test_first_page_omits_cursor():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"data": [], "pagination": {}})

    page = asyncio.run(_client(handler).search_issues(None, 200))

    assert bodies == [{"limit": 200}]
    assert page.items == []
    assert page.has_next_page is False


def test_null_data_is_an_empty_page():
    page = asyncio.run(
        _client(lambda r: httpx.Response(200, json={"data": None})).search_issues()
    )
    assert page.items == []


def test_rate_limit_carries_retry_after():
    def handler(request):
        return httpx.Response(429, headers={"retry-after": "3"}, text="slow down")

    with pytest.raises(RateLimitedError) as excinfo:
        asyncio.run(_client(handler).search_issues())

    assert excinfo.value.retry_after == 3.0


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"message": "boom"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"errors": [{"message": "bad query"}]}),
        httpx.Response(200, json={"data": "not-a-list"}),
    ],
)
def test_malformed_or_failed_responses_are_fatal(response):
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(_client(lambda r: response).search_issues())
    assert not isinstance(excinfo.value, RateLimitedError)


def test_transport_errors_become_upstream_errors():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search_issues())


@pytest.mark.parametrize(
    "value, expected",
    [("2", 2.0), ("0.5", 0.5), (None, None), ("Wed, 21 Oct 2026 07:28:00 GMT", None), ("-1", None)],
)
def test_parse_retry_after(value, expected):
    assert parse_retry_after(value) == expected


def test_user_directory_prefers_name_then_email_then_id():
    def handler(request):
        assert request.url.path == "/users"
        return httpx.Response(
            200,
            json={
                "data": [
                    {"id": "u1", "name": "Dylan Bonar", "email": "dylan@example.com"},
                    {"id": "u2", "name": "  ", "email": "tommy@example.com"},
                    {"id": "u3"},
                    {"name": "No Id"},
                ]
            },
        )

    directory = asyncio.run(_client(handler).fetch_user_directory())

    assert directory == {"u1": "Dylan Bonar", "u2": "tommy@example.com", "u3": "u3"}


def test_user_directory_failure_degrades_to_empty():
    directory = asyncio.run(
        _client(lambda r: httpx.Response(403, json={"error": "forbidden"})).fetch_user_directory()
    )
    assert directory == {}


def test_slack_publisher_posts_message():
    payloads = []

    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    publisher = SlackPublisher(
        token="xoxb",
        channel="#handoff",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    asyncio.run(publisher.publish("hello"))

    assert payloads == [
        {"channel": "#handoff", "text": "hello", "unfurl_links": False, "unfurl_media": False}
    ]


def test_slack_publisher_raises_on_error():
    publisher = SlackPublisher(
        token="xoxb",
        channel="#handoff",
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json={"ok": False, "error": "channel_not_found"})
            )
        ),
    )

    with pytest.raises(PublishError, match="channel_not_found"):
        asyncio.run(publisher.publish("hello"))
