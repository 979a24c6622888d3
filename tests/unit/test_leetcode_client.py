"""LeetCode client: parsing and failure mapping, over httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import httpx
import pytest

from spt.sync.client import LeetCodeClient, SyncError, parse_submission_calendar

URL = "https://leetcode.test/graphql"


def _client(handler) -> LeetCodeClient:
    return LeetCodeClient(URL, transport=httpx.MockTransport(handler))


class TestParseCalendar:
    def test_json_string(self):
        ts = int(datetime(2026, 10, 1, 15, tzinfo=timezone.utc).timestamp())
        assert parse_submission_calendar(json.dumps({str(ts): 4})) == {date(2026, 10, 1): 4}

    def test_empty(self):
        assert parse_submission_calendar(None) == {}
        assert parse_submission_calendar("") == {}


class TestFetchProfile:
    @pytest.mark.asyncio
    async def test_parses_profile(self, payload_factory):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=payload_factory(
                    "alice",
                    easy=40,
                    medium=30,
                    hard=5,
                    avatar="https://img.test/a.png",
                    calendar={datetime(2026, 10, 1, tzinfo=timezone.utc): 3},
                    streak=2,
                ),
            )

        async with _client(handler) as client:
            profile = await client.fetch_profile("alice")

        assert seen["body"]["variables"] == {"username": "alice"}
        assert profile.total_solved == 75
        assert (profile.easy_solved, profile.medium_solved, profile.hard_solved) == (40, 30, 5)
        assert profile.total_submissions == 150
        assert profile.avatar_url == "https://img.test/a.png"
        assert profile.streak == 2
        assert profile.calendar == {date(2026, 10, 1): 3}

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        async with _client(lambda r: httpx.Response(200, json={"data": {"matchedUser": None}})) as client:
            with pytest.raises(SyncError) as excinfo:
                await client.fetch_profile("ghost")
        assert excinfo.value.username == "ghost"
        assert "not found" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_graphql_error(self):
        body = {"errors": [{"message": "That user does not exist."}], "data": None}
        async with _client(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(SyncError, match="does not exist"):
                await client.fetch_profile("ghost")

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with _client(lambda r: httpx.Response(503, text="busy")) as client:
            with pytest.raises(SyncError, match="HTTP 503"):
                await client.fetch_profile("alice")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with _client(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(SyncError, match="JSON"):
                await client.fetch_profile("alice")

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(SyncError, match="unreachable"):
                await client.fetch_profile("alice")

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        body = {"data": {"matchedUser": {"submitStats": {"acSubmissionNum": "oops"}}}}
        async with _client(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(SyncError, match="malformed"):
                await client.fetch_profile("alice")
