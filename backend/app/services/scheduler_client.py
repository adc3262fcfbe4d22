"""Client for the external scheduler that delivers notification jobs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import InternalError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class SchedulerClient:
    """POSTs ``{type, data}`` jobs with a fixed-delay, bounded retry.

    Transport errors and 5xx answers are retried; 4xx answers are not.
    """

    def __init__(
        self,
        base_url: str,
        *,
        attempts: int = 5,
        delay_seconds: float = 2.0,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._attempts = max(1, int(attempts))
        self._delay_seconds = max(0.0, float(delay_seconds))
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def attempts(self) -> int:
        return self._attempts

    async def submit_job(self, job: dict[str, Any]) -> Any:
        last_error = ""
        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            for attempt in range(1, self._attempts + 1):
                try:
                    resp = await client.post(self._base_url, json=job)
                except httpx.TransportError as exc:
                    last_error = f"{type(exc).__name__}: {exc}"
                else:
                    if resp.status_code < 400:
                        logger.info("Scheduler accepted %s job (attempt %s)", job.get("type"), attempt)
                        return _response_body(resp)
                    if resp.status_code < 500:
                        logger.error("Scheduler rejected %s job: HTTP %s", job.get("type"), resp.status_code)
                        raise InternalError(f"Scheduler rejected job with HTTP {resp.status_code}")
                    last_error = f"HTTP {resp.status_code}"

                logger.warning(
                    "Scheduler submission failed attempt=%s/%s error=%s",
                    attempt,
                    self._attempts,
                    last_error,
                )
                if attempt < self._attempts and self._delay_seconds:
                    await asyncio.sleep(self._delay_seconds)

        logger.error("Scheduler unreachable after %s attempts: %s", self._attempts, last_error)
        raise ServiceUnavailableError("Scheduler is unavailable")

    async def submit_jobs(self, jobs: list[dict[str, Any]]) -> list[Any]:
        return [await self.submit_job(job) for job in jobs]


def _response_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def get_scheduler_client(settings: Optional[Settings] = None) -> Optional[SchedulerClient]:
    settings = settings or get_settings()
    if not settings.scheduler_url:
        return None
    attempts, delay_seconds = settings.scheduler_retry_policy
    return SchedulerClient(
        settings.scheduler_url,
        attempts=attempts,
        delay_seconds=delay_seconds,
        timeout_seconds=settings.scheduler_timeout_seconds,
    )
