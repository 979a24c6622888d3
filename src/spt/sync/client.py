"""LeetCode GraphQL client.

One request per student pulls profile, solve counts, submission totals and
the submission calendar. Any failure (network, HTTP status, GraphQL error,
unknown user, malformed payload) surfaces as ``SyncError``; retrying is left
to the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

import httpx
import structlog

if TYPE_CHECKING:
    from spt.config import Settings

logger = structlog.get_logger()

PROFILE_QUERY = """
query studentProgress($username: String!) {
  matchedUser(username: $username) {
    username
    profile {
      ranking
      userAvatar
      realName
    }
    submitStats {
      acSubmissionNum {
        difficulty
        count
        submissions
      }
      totalSubmissionNum {
        difficulty
        count
        submissions
      }
    }
    userCalendar {
      streak
      totalActiveDays
      submissionCalendar
    }
  }
}
"""


class SyncError(Exception):
    """The platform could not be reached or returned unusable data."""

    def __init__(self, username: str, message: str) -> None:
        super().__init__(f"Sync failed for {username}: {message}")
        self.username = username
        self.message = message


@dataclass(frozen=True)
class PlatformProfile:
    """Normalized statistics for one LeetCode user."""

    username: str
    total_solved: int
    easy_solved: int
    medium_solved: int
    hard_solved: int
    total_submissions: int
    total_accepted: int
    ranking: int
    avatar_url: str | None = None
    streak: int = 0
    total_active_days: int = 0
    calendar: dict[date, int] = field(default_factory=dict)


def parse_submission_calendar(raw: str | dict[str, Any] | None) -> dict[date, int]:
    """Convert ``{"<unix seconds>": count}`` (often JSON-encoded) to UTC dates."""
    if not raw:
        return {}
    data = json.loads(raw) if isinstance(raw, str) else raw
    calendar: dict[date, int] = {}
    for ts, count in data.items():
        day = datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
        calendar[day] = calendar.get(day, 0) + int(count)
    return calendar


def _by_difficulty(rows: list[dict[str, Any]] | None, key: str) -> dict[str, int]:
    return {row["difficulty"]: int(row.get(key) or 0) for row in rows or [] if row.get("difficulty")}


def parse_profile(username: str, payload: dict[str, Any]) -> PlatformProfile:
    """Build a ``PlatformProfile`` from a GraphQL response body."""
    if payload.get("errors"):
        message = payload["errors"][0].get("message", "GraphQL error")
        raise SyncError(username, message)

    user = (payload.get("data") or {}).get("matchedUser")
    if not user:
        raise SyncError(username, "user not found on LeetCode")

    try:
        stats = user.get("submitStats") or {}
        solved = _by_difficulty(stats.get("acSubmissionNum"), "count")
        accepted = _by_difficulty(stats.get("acSubmissionNum"), "submissions")
        submitted = _by_difficulty(stats.get("totalSubmissionNum"), "submissions")
        profile = user.get("profile") or {}
        calendar = user.get("userCalendar") or {}

        easy, medium, hard = solved.get("Easy", 0), solved.get("Medium", 0), solved.get("Hard", 0)
        return PlatformProfile(
            username=user.get("username") or username,
            total_solved=solved.get("All", easy + medium + hard),
            easy_solved=easy,
            medium_solved=medium,
            hard_solved=hard,
            total_submissions=submitted.get("All", 0),
            total_accepted=accepted.get("All", 0),
            ranking=int(profile.get("ranking") or 0),
            avatar_url=profile.get("userAvatar") or None,
            streak=int(calendar.get("streak") or 0),
            total_active_days=int(calendar.get("totalActiveDays") or 0),
            calendar=parse_submission_calendar(calendar.get("submissionCalendar")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SyncError(username, f"malformed response ({exc})") from exc


class LeetCodeClient:
    """Thin async wrapper around the LeetCode GraphQL endpoint."""

    def __init__(
        self,
        graphql_url: str,
        timeout: float = 15.0,
        user_agent: str = "student-progress-tracker",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.graphql_url = graphql_url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "User-Agent": user_agent,
                "Referer": "https://leetcode.com",
            },
        )

    async def __aenter__(self) -> LeetCodeClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_profile(self, username: str) -> PlatformProfile:
        """Fetch and normalize one user's statistics."""
        try:
            response = await self._client.post(
                self.graphql_url,
                json={"query": PROFILE_QUERY, "variables": {"username": username}},
            )
        except httpx.HTTPError as exc:
            logger.warning("leetcode_request_failed", username=username, error=str(exc))
            raise SyncError(username, f"LeetCode unreachable ({exc.__class__.__name__})") from exc

        if response.status_code != 200:
            raise SyncError(username, f"LeetCode returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise SyncError(username, "response was not valid JSON") from exc

        return parse_profile(username, payload)


def client_from_settings(settings: Settings) -> LeetCodeClient:
    return LeetCodeClient(
        settings.leetcode_graphql_url,
        timeout=settings.sync_timeout_seconds,
        user_agent=settings.leetcode_user_agent,
    )
