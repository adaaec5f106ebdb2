"""
Client-side read model for live vote results.

VoteResultsCache keeps two layers per subject:

  - the snapshot: the last counts returned by POST /votes/batch, replaced
    wholesale on every successful refresh
  - provisional deltas: local optimistic bumps applied on top of the
    snapshot until the next successful refresh clears them

Reads never raise. A subject the server has not reported yet reads as
{positive: 0, negative: 0}.

Refreshes are not sequenced: when two overlap, whichever resolves last
wins. After close() late results are dropped.
"""

import asyncio
import json
from typing import Iterable, Optional

import aiohttp
import httpx

from flashvote.core.logging import get_logger
from flashvote.utils.percentages import vote_percentages

logger = get_logger(__name__)

LOAD_ERROR = "Failed to load voting results"

STATE_LOADING = "loading"
STATE_READY = "ready"
STATE_PROVISIONAL = "provisional"


class VoteRejected(Exception):
    """The server refused a vote (rate limit, validation, closed event...)."""

    def __init__(self, status_code: int, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.retry_after = retry_after


def _zero() -> dict[str, int]:
    return {"positive": 0, "negative": 0}


class VoteResultsCache:
    def __init__(
        self,
        subject_ids: Iterable[str],
        location_id: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
    ):
        if http_client is None and base_url is None:
            raise ValueError("base_url or http_client is required")

        self.subject_ids = list(dict.fromkeys(subject_ids))
        self.location_id = location_id
        self.error: Optional[str] = None

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=10.0)
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

        self._snapshot: dict[str, dict[str, int]] = {}
        self._deltas: dict[str, dict[str, int]] = {}
        self._loaded = False
        self._closed = False
        self._pending: set[asyncio.Task] = set()

    # -- reads ---------------------------------------------------------------

    def get(self, subject_id: str) -> dict[str, int]:
        counts = dict(self._snapshot.get(subject_id) or _zero())
        delta = self._deltas.get(subject_id)
        if delta:
            counts["positive"] += delta["positive"]
            counts["negative"] += delta["negative"]
        return counts

    def summary(self, subject_id: str) -> dict[str, int]:
        counts = self.get(subject_id)
        positive_pct, negative_pct = vote_percentages(counts["positive"], counts["negative"])
        return {
            **counts,
            "total": counts["positive"] + counts["negative"],
            "positive_pct": positive_pct,
            "negative_pct": negative_pct,
        }

    def state(self, subject_id: str) -> str:
        if subject_id in self._deltas:
            return STATE_PROVISIONAL
        return STATE_READY if self._loaded else STATE_LOADING

    # -- writes --------------------------------------------------------------

    async def refresh(self) -> None:
        """Replace the snapshot with fresh server counts."""
        if self._closed:
            return
        if not self.subject_ids:
            self._snapshot = {}
            self._deltas = {}
            self._loaded = True
            self.error = None
            return

        payload = {"subject_ids": self.subject_ids}
        if self.location_id:
            payload["location_id"] = self.location_id

        try:
            response = await self._client.post("/votes/batch", json=payload, headers=self._headers)
            response.raise_for_status()
            results = response.json()["results"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning("vote_results_refresh_failed", subjects=len(self.subject_ids), error=str(e))
            if not self._closed:
                self.error = LOAD_ERROR
            return

        if self._closed:
            return
        self._snapshot = {
            subject_id: {"positive": int(counts["positive"]), "negative": int(counts["negative"])}
            for subject_id, counts in results.items()
        }
        self._deltas = {}
        self._loaded = True
        self.error = None

    def optimistic_vote(self, subject_id: str, choice: bool) -> None:
        delta = self._deltas.setdefault(subject_id, _zero())
        delta["positive" if choice else "negative"] += 1

    async def cast_vote(self, subject_id: str, choice: bool) -> dict:
        """
        Bump the local counts, then submit the vote.

        Returns the stored vote. Raises VoteRejected with the server's status,
        message and Retry-After when the vote is refused. The bump stays
        until the next refresh either way.
        """
        self.optimistic_vote(subject_id, choice)
        response = await self._client.post(
            "/votes",
            json={"subject_id": subject_id, "location_id": self.location_id, "choice": choice},
            headers=self._headers,
        )
        if response.status_code == 201:
            return response.json()

        try:
            message = response.json().get("message") or response.text
        except ValueError:
            message = response.text
        retry_after = response.headers.get("Retry-After")
        raise VoteRejected(
            response.status_code,
            message,
            int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    # -- change feed ---------------------------------------------------------

    def handle_change(self, notification: dict) -> Optional[asyncio.Task]:
        """Schedule a refresh when the notification concerns this cache."""
        if self._closed or notification.get("subject_id") not in self.subject_ids:
            return None
        if self.location_id and notification.get("location_id") != self.location_id:
            return None

        task = asyncio.create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def watch(self, ws_url: str) -> None:
        """Follow the WebSocket change feed until it closes or close() is called."""
        async with aiohttp.ClientSession() as session:
            async with session.ws_connect(ws_url, heartbeat=30) as ws:
                logger.info("vote_feed_connected", url=ws_url)
                async for message in ws:
                    if self._closed:
                        break
                    if message.type == aiohttp.WSMsgType.TEXT:
                        try:
                            notification = json.loads(message.data)
                        except ValueError:
                            logger.warning("vote_feed_bad_message", data=message.data[:200])
                            continue
                        self.handle_change(notification)
                    elif message.type == aiohttp.WSMsgType.ERROR:
                        logger.warning("vote_feed_error", error=str(ws.exception()))
                        break
        logger.info("vote_feed_closed", url=ws_url)

    async def close(self) -> None:
        self._closed = True
        for task in list(self._pending):
            task.cancel()
        if self._owns_client:
            await self._client.aclose()
