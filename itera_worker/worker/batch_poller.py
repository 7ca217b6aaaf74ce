import asyncio
import time
from collections.abc import Sequence
from uuid import UUID

from itera_worker.config.settings import Settings
from itera_worker.logging.logger import Log
from itera_worker.processor.models import BatchResult
from itera_worker.processor.orchestrator import DocumentOrchestrator


class BatchPoller:
    """Process a batch, then poll still-processing documents until done or timed out."""

    def __init__(self, orchestrator: DocumentOrchestrator, settings: Settings) -> None:
        self._orchestrator = orchestrator
        self._settings = settings

    async def run(
        self,
        document_ids: Sequence[UUID],
        wait_for_completion: bool | None = None,
        timeout_seconds: float | None = None,
        polling_interval_seconds: float | None = None,
    ) -> BatchResult:
        """Upload the documents and optionally wait for Itera to finish them.

        The timeout bounds the total wait; a round already in flight when it
        elapses is allowed to finish.
        """
        if wait_for_completion is None:
            wait_for_completion = self._settings.batch_wait_for_completion
        if timeout_seconds is None:
            timeout_seconds = self._settings.batch_timeout_seconds
        if polling_interval_seconds is None:
            polling_interval_seconds = self._settings.batch_polling_interval_seconds

        result = await self._orchestrator.process_batch(document_ids)
        if not wait_for_completion or result.processing_count == 0:
            return result

        deadline = time.monotonic() + timeout_seconds
        while time.monotonic() < deadline:
            await asyncio.sleep(polling_interval_seconds)
            await self._poll_round(result)
            if result.processing_count == 0:
                break
        else:
            Log.warning(
                f"Batch polling timed out after {timeout_seconds}s with "
                f"{result.processing_count} documents still processing"
            )

        result.message = (
            f"Processing finished: {result.success_count} succeeded, "
            f"{result.error_count} failed, {result.processing_count} still processing."
        )
        return result

    async def _poll_round(self, result: BatchResult) -> None:
        pending = [
            (index, status)
            for index, status in enumerate(result.document_statuses)
            if status.is_processing
        ]
        Log.debug(f"Polling {len(pending)} documents")
        updates = await asyncio.gather(
            *(
                self._orchestrator.check_and_update_status(status.document_id)
                for _, status in pending
            )
        )
        for (index, _), current in zip(pending, updates):
            result.document_statuses[index] = current
            if current.is_processing:
                continue
            result.processing_count -= 1
            if current.is_success:
                result.success_count += 1
            else:
                result.error_count += 1
