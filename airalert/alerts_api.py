from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, List, Optional

import httpx

from .models import Observation, RegionRecord, observation_from_record

log = logging.getLogger("airalert.api")


DEFAULT_UA = "airalert/1.0 (air raid alert monitor)"


class SourceUnavailable(RuntimeError):
    pass


class EmptySource(RuntimeError):
    pass


class AlertsApi:
    """
    Client for the regional alerts endpoint.

    The endpoint returns a JSON list of region records; only the first one is
    used to build the observation for a poll.
    """

    def __init__(
        self,
        url: str,
        auth_header: str = "",
        *,
        timeout: float = 10.0,
        tries: int = 2,
        user_agent: str = DEFAULT_UA,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.tries = max(1, int(tries))
        headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        if auth_header:
            headers["Authorization"] = auth_header
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self) -> Any:
        last_exc: Exception | None = None
        backoff = 0.5
        for attempt in range(1, self.tries + 1):
            try:
                r = await self._client.get(self.url)
                r.raise_for_status()
                return r.json()
            except (httpx.HTTPError, ValueError) as e:
                last_exc = e
                if attempt >= self.tries:
                    break
                sleep_s = backoff + random.random() * 0.25
                log.warning("Alerts fetch failed (try %d/%d): %s; sleeping %.2fs", attempt, self.tries, e, sleep_s)
                await asyncio.sleep(sleep_s)
                backoff *= 2.0
        raise SourceUnavailable(f"alerts request failed: {last_exc}") from last_exc

    async def fetch_records(self) -> List[RegionRecord]:
        data = await self._get_json()
        if not isinstance(data, list):
            raise SourceUnavailable(f"alerts response is not a JSON list (got {type(data).__name__})")
        return [RegionRecord.from_json(obj) for obj in data if isinstance(obj, dict)]

    async def fetch_observation(self) -> Observation:
        records = await self.fetch_records()
        if not records:
            raise EmptySource("alerts API returned no records")
        return observation_from_record(records[0])
