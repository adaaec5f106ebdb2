"""
Tests for the client-side vote results cache, against a mocked HTTP API.
"""

import json
import subprocess
import sys
from pathlib import Path

import httpx
import pytest

from flashvote.client import VoteRejected, VoteResultsCache

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class FakeApi:
    """Serves /votes/batch from a mutable table and records every request."""

    def __init__(self, counts=None):
        self.counts = counts or {}
        self.requests = []
        self.fail = False
        self.vote_response = httpx.Response(201, json={"id": "vote-1", "choice": True})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/v1/votes/batch":
            if self.fail:
                return httpx.Response(500, json={"message": "An unexpected error occurred"})
            body = json.loads(request.content)
            results = {
                sid: self.counts.get(sid, {"positive": 0, "negative": 0}) for sid in body["subject_ids"]
            }
            return httpx.Response(200, json={"results": results})
        if request.url.path == "/api/v1/votes":
            return self.vote_response
        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url="http://test/api/v1")


@pytest.fixture
def api():
    return FakeApi({"s1": {"positive": 2, "negative": 1}})


@pytest.mark.asyncio
async def test_refresh_replaces_snapshot(api):
    cache = VoteResultsCache(["s1", "s2"], http_client=api.client())
    assert cache.state("s1") == "loading"

    await cache.refresh()
    assert cache.get("s1") == {"positive": 2, "negative": 1}
    assert cache.get("s2") == {"positive": 0, "negative": 0}
    assert cache.state("s1") == "ready"
    assert cache.error is None

    sent = json.loads(api.requests[0].content)
    assert sent == {"subject_ids": ["s1", "s2"]}


@pytest.mark.asyncio
async def test_location_filter_is_sent(api):
    cache = VoteResultsCache(["s1"], location_id="loc-1", http_client=api.client())
    await cache.refresh()
    assert json.loads(api.requests[0].content) == {"subject_ids": ["s1"], "location_id": "loc-1"}


@pytest.mark.asyncio
async def test_optimistic_vote_overwritten_by_refresh(api):
    cache = VoteResultsCache(["s1"], http_client=api.client())
    await cache.refresh()

    cache.optimistic_vote("s1", True)
    assert cache.get("s1") == {"positive": 3, "negative": 1}
    assert cache.state("s1") == "provisional"

    # The server never saw that vote: the refresh wins
    await cache.refresh()
    assert cache.get("s1") == {"positive": 2, "negative": 1}
    assert cache.state("s1") == "ready"


def test_optimistic_vote_on_unknown_subject():
    cache = VoteResultsCache(["s1"], base_url="http://test/api/v1")
    cache.optimistic_vote("s9", False)
    assert cache.get("s9") == {"positive": 0, "negative": 1}


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_snapshot(api):
    cache = VoteResultsCache(["s1"], http_client=api.client())
    await cache.refresh()

    api.fail = True
    api.counts["s1"] = {"positive": 99, "negative": 0}
    await cache.refresh()
    assert cache.error == "Failed to load voting results"
    assert cache.get("s1") == {"positive": 2, "negative": 1}

    api.fail = False
    await cache.refresh()
    assert cache.error is None
    assert cache.get("s1") == {"positive": 99, "negative": 0}


@pytest.mark.asyncio
async def test_summary_percentages(api):
    api.counts["s1"] = {"positive": 3, "negative": 1}
    cache = VoteResultsCache(["s1", "s2"], http_client=api.client())
    await cache.refresh()

    assert cache.summary("s1") == {
        "positive": 3, "negative": 1, "total": 4, "positive_pct": 75, "negative_pct": 25,
    }
    assert cache.summary("s2")["positive_pct"] == 50
    assert cache.summary("s2")["negative_pct"] == 50


@pytest.mark.asyncio
async def test_empty_subject_set_makes_no_request(api):
    cache = VoteResultsCache([], http_client=api.client())
    await cache.refresh()
    assert api.requests == []
    assert cache.get("anything") == {"positive": 0, "negative": 0}


@pytest.mark.asyncio
async def test_cast_vote_success(api):
    cache = VoteResultsCache(["s1"], http_client=api.client(), token="abc")
    await cache.refresh()

    vote = await cache.cast_vote("s1", True)
    assert vote["id"] == "vote-1"
    assert cache.get("s1") == {"positive": 3, "negative": 1}

    request = api.requests[-1]
    assert request.headers["Authorization"] == "Bearer abc"
    assert json.loads(request.content) == {"subject_id": "s1", "location_id": None, "choice": True}


@pytest.mark.asyncio
async def test_cast_vote_rate_limited(api):
    api.vote_response = httpx.Response(
        429,
        json={"message": "Rate limit exceeded. Please wait 42 seconds before voting again."},
        headers={"Retry-After": "42"},
    )
    cache = VoteResultsCache(["s1"], http_client=api.client())

    with pytest.raises(VoteRejected) as exc_info:
        await cache.cast_vote("s1", False)

    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 42
    assert "42 seconds" in exc_info.value.message


@pytest.mark.asyncio
async def test_handle_change_refreshes_matching_subject(api):
    cache = VoteResultsCache(["s1"], http_client=api.client())

    assert cache.handle_change({"type": "vote", "subject_id": "other", "location_id": None}) is None

    task = cache.handle_change({"type": "vote", "subject_id": "s1", "location_id": None})
    assert task is not None
    await task
    assert cache.get("s1") == {"positive": 2, "negative": 1}


@pytest.mark.asyncio
async def test_handle_change_respects_location_filter(api):
    cache = VoteResultsCache(["s1"], location_id="loc-1", http_client=api.client())
    assert cache.handle_change({"subject_id": "s1", "location_id": "loc-2"}) is None
    assert cache.handle_change({"subject_id": "s1", "location_id": "loc-1"}) is not None
    await cache.close()


@pytest.mark.asyncio
async def test_close_drops_later_results(api):
    cache = VoteResultsCache(["s1"], http_client=api.client())
    await cache.close()
    await cache.refresh()
    assert api.requests == []
    assert cache.state("s1") == "loading"


def test_requires_endpoint():
    with pytest.raises(ValueError):
        VoteResultsCache(["s1"])


def test_client_import_does_not_load_server_stack():
    code = (
        "import sys, flashvote.client; "
        "loaded = [m for m in ('fastapi', 'sqlalchemy', 'flashvote.services.vote_service') if m in sys.modules]; "
        "print(','.join(loaded))"
    )
    result = subprocess.run(
        [sys.executable, "-c", code], cwd=PROJECT_ROOT, capture_output=True, text=True, check=True
    )
    assert result.stdout.strip() == ""
