"""
Orchestrator — fans a report out over many GA4 properties.

Properties are fetched in fixed-size batches: everything inside a batch runs
concurrently, and the next batch starts only once the current one has fully
settled.  Every property ends up with its own success or failure entry; one
property's error never affects another.  After the first pass, transient
failures get exactly one more attempt.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from core.error_policy import classify_error
from utils.exceptions import RemoteApiError
from utils.schemas import (
    DateRange,
    ErrorClass,
    FetchFailure,
    FetchResult,
    FetchSuccess,
    PropertyReport,
    ReportEnvelope,
    ResourceDescriptor,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportOrchestrator:
    def __init__(
        self,
        fetcher: Any,
        *,
        batch_size: int = 5,
        retry_delay: float = 2.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Parameters
        ----------
        fetcher     : object with ``async fetch(resource_id, date_range, access_token)``
                      returning a ``PropertyReport`` (usually ``ReportFetcher``)
        batch_size  : max properties fetched concurrently
        retry_delay : seconds to wait before the transient-failure retry pass
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.fetcher = fetcher
        self.batch_size = batch_size
        self.retry_delay = retry_delay
        self._clock = clock

    # ── public entry point ──────────────────────────────────────────────

    async def run_report(
        self,
        access_token: str,
        resources: Sequence[ResourceDescriptor],
        date_range: DateRange,
    ) -> ReportEnvelope:
        """Fetch every property and return the results in input order."""
        resources = list(resources)
        results: List[Optional[FetchResult]] = [None] * len(resources)

        logger.info(
            "[Orchestrator] Fetching %d properties (%s) in batches of %d",
            len(resources), date_range.value, self.batch_size,
        )
        await self._run_pass(list(range(len(resources))), resources, results, access_token, date_range)

        retry_indices = [
            i for i, r in enumerate(results)
            if isinstance(r, FetchFailure) and r.error_class is ErrorClass.TRANSIENT
        ]
        if retry_indices:
            logger.info(
                "[Orchestrator] Retrying %d transient failure(s) after %.1fs",
                len(retry_indices), self.retry_delay,
            )
            await asyncio.sleep(self.retry_delay)
            await self._run_pass(retry_indices, resources, results, access_token, date_range)

        envelope = ReportEnvelope(
            generated_at=self._clock(),
            date_range=date_range,
            results=results,
        )
        logger.info(
            "[Orchestrator] Done: %d succeeded, %d failed",
            envelope.success_count, envelope.error_count,
        )
        return envelope

    # ── batch execution ─────────────────────────────────────────────────

    async def _run_pass(
        self,
        indices: List[int],
        resources: List[ResourceDescriptor],
        results: List[Optional[FetchResult]],
        access_token: str,
        date_range: DateRange,
    ) -> None:
        for batch_num, start in enumerate(range(0, len(indices), self.batch_size), start=1):
            batch = indices[start:start + self.batch_size]
            logger.debug("Batch %d: fetching %d propert(ies)", batch_num, len(batch))

            outcomes = await asyncio.gather(
                *[self._fetch_one(resources[i], access_token, date_range) for i in batch],
                return_exceptions=True,
            )
            for idx, outcome in zip(batch, outcomes):
                results[idx] = self._to_result(resources[idx], outcome)

    async def _fetch_one(
        self,
        resource: ResourceDescriptor,
        access_token: str,
        date_range: DateRange,
    ) -> PropertyReport:
        return await self.fetcher.fetch(resource.resource_id, date_range, access_token)

    @staticmethod
    def _to_result(resource: ResourceDescriptor, outcome: Any) -> FetchResult:
        if not isinstance(outcome, BaseException):
            return FetchSuccess(
                resource_id=resource.resource_id,
                display_name=resource.display_name,
                data=outcome,
            )
        if not isinstance(outcome, Exception):
            # Cancellation and interpreter exits are not per-property failures.
            raise outcome

        if isinstance(outcome, RemoteApiError):
            message = outcome.message
            status_code: Optional[int] = outcome.status_code
        else:
            message = str(outcome) or type(outcome).__name__
            status_code = None

        error_class = classify_error(message, status_code)
        logger.warning(
            "Property %s (%s) failed [%s]: %s",
            resource.resource_id, resource.display_name, error_class.value, message,
        )
        return FetchFailure(
            resource_id=resource.resource_id,
            display_name=resource.display_name,
            error=message,
            error_class=error_class,
            status_code=status_code,
        )
