"""
Readiness polling for the secured Elasticsearch REST endpoint.

Elasticsearch is launched by exec right after the background unit starts,
so the first attempts are expected to fail with connection errors until
the node binds its HTTP port and Search Guard finishes initializing.
"""

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from esboot.core.constants import READINESS_STATUS_CODE
from esboot.core.errors import ReadinessTimeoutError
from esboot.core.models import PollState
from esboot.transport import describe_response

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class ReadinessPoller:
    """
    Repeatedly HEADs the REST endpoint until it answers 200.

    The per-request timeout is the whole retry budget
    (retry_count * retry_interval), so a single hanging attempt may consume
    all of it. That mirrors the deployed behavior and is kept on purpose.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        retry_count: int,
        retry_interval: int,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if retry_count < 1:
            raise ValueError(f"retry_count must be at least 1, got {retry_count}")
        self._client = client
        self._base_url = base_url
        self._retry_count = retry_count
        self._retry_interval = retry_interval
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _attempt(self, state: PollState) -> bool:
        """Issue one HEAD request. Records the failure in state.last_response."""
        timeout = state.max_total_seconds or None  # 0 means no limit, as with curl
        try:
            response = await self._client.head(self._base_url, timeout=timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            state.last_response = f"{type(e).__name__}: {e}"
            logger.debug(f"Attempt {state.attempts_made} failed: {state.last_response}")
            return False

        if response.status_code == READINESS_STATUS_CODE:
            return True

        state.last_response = describe_response(response)
        logger.debug(f"Attempt {state.attempts_made} answered {response.status_code}")
        return False

    async def wait_until_ready(self) -> PollState:
        """
        Block until Elasticsearch answers 200 or the retry budget is spent.

        Returns:
            The final PollState, with ready=True

        Raises:
            ReadinessTimeoutError: every attempt failed
        """
        state = PollState(retry_count=self._retry_count, interval_seconds=self._retry_interval)
        logger.info(f"Checking if Elasticsearch is ready on {self._base_url}")

        while True:
            state.attempts_made += 1
            if await self._attempt(state):
                state.ready = True
                state.last_response = None
                logger.info(f"Elasticsearch is ready and listening at {self._base_url}")
                return state

            await self._sleep(self._retry_interval)
            state.slept_seconds += self._retry_interval
            state.attempts_remaining -= 1
            if state.exhausted:
                break

        logger.error("Timed out waiting for Elasticsearch to be ready")
        if state.last_response:
            logger.error(state.last_response)
        raise ReadinessTimeoutError(self._base_url, state.attempts_made, state.last_response)


async def wait_for_cluster_health(
    client: httpx.AsyncClient,
    base_url: str,
    status: str,
    timeout_seconds: int,
) -> bool:
    """
    Wait for the cluster to reach the given health status.

    Gives up on timeout or error and lets the caller continue.

    Returns:
        True if the status was reached
    """
    url = f"{base_url}/_cluster/health"
    params = {"wait_for_status": status, "timeout": f"{timeout_seconds}s"}
    logger.info(f"Waiting up to {timeout_seconds}s for cluster status '{status}'")
    try:
        response = await client.get(url, params=params, timeout=(timeout_seconds or None))
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.warning(f"Cluster health check failed, continuing: {e}")
        return False

    if data.get("timed_out"):
        logger.warning(f"Cluster did not reach '{status}' in time (currently '{data.get('status')}'), continuing")
        return False
    logger.info(f"Cluster status is '{data.get('status')}'")
    return True
