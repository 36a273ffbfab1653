"""
Batch Monitor - Drives a submitted batch to a terminal state.

SUBMITTED -> POLLING -> {COMPLETED, FAILED, EXPIRED, CANCELLED, ERROR}
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..schemas.job import BatchHandle, BatchStatus, MonitorOutcome, MonitorState
from ..translation.batch_client import JobService

logger = logging.getLogger(__name__)

_STATE_FOR_STATUS = {
    BatchStatus.COMPLETED: MonitorState.COMPLETED,
    BatchStatus.FAILED: MonitorState.FAILED,
    BatchStatus.EXPIRED: MonitorState.EXPIRED,
    BatchStatus.CANCELLED: MonitorState.CANCELLED,
}


class BatchMonitor:
    """
    Polls one batch at a fixed interval until it stops.

    Faults never escape ``monitor``; they end in the ERROR state so sibling
    documents keep running.
    """

    def __init__(self, service: JobService, poll_interval: float = 60.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.service = service
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def monitor(self, handle: BatchHandle) -> MonitorOutcome:
        """
        Wait for a batch to finish.

        Args:
            handle: Submitted batch

        Returns:
            MonitorOutcome with the raw output text when COMPLETED
        """
        state = MonitorState.SUBMITTED
        label = f"{handle.target_language} ({handle.batch_id})"

        try:
            state = MonitorState.POLLING
            status: Optional[BatchStatus] = None
            while status is None or not status.is_terminal:
                await self._sleep(self.poll_interval)
                status = BatchStatus(await self.service.poll_status(handle.batch_id))
                logger.info(f"Batch status for {label}: {status.value}")

            state = _STATE_FOR_STATUS[status]
            elapsed = datetime.now(timezone.utc) - handle.submitted_at
            logger.info(f"Batch for {label} finished as {status.value} after {elapsed}")
            if state is not MonitorState.COMPLETED:
                return MonitorOutcome(state=state)

            text = await self.service.fetch_result(handle.batch_id)
            return MonitorOutcome(state=state, text=text)

        except Exception as e:
            logger.error(f"Error monitoring batch for {label} while {state.value}: {e}")
            return MonitorOutcome(state=MonitorState.ERROR, error=str(e))
