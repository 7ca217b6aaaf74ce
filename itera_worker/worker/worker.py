import asyncio

from itera_worker.config.settings import Settings
from itera_worker.database.models import DocumentRecord
from itera_worker.logging.logger import Log
from itera_worker.processor.orchestrator import DocumentOrchestrator
from itera_worker.worker.batch_poller import BatchPoller


class Worker:
    """Poll loop: load pending documents -> upload or refresh -> sleep."""

    def __init__(
        self,
        orchestrator: DocumentOrchestrator,
        poller: BatchPoller,
        settings: Settings,
    ) -> None:
        self._orchestrator = orchestrator
        self._poller = poller
        self._settings = settings

    async def run(self, max_rounds: int | None = None) -> None:
        """Main poll loop. Runs forever until cancelled.

        If max_rounds is set, stop after that many rounds (for testing).
        """
        Log.info("Worker started, polling for pending documents")
        rounds = 0
        try:
            while max_rounds is None or rounds < max_rounds:
                documents = await self._try_load_pending()
                if documents:
                    try:
                        await self._run_round(documents)
                    except Exception as exc:
                        Log.error(f"Worker round failed, will retry: {exc}")
                else:
                    Log.debug("No pending documents")
                rounds += 1
                if max_rounds is not None and rounds >= max_rounds:
                    break
                await asyncio.sleep(self._settings.worker_poll_interval_seconds)
        except asyncio.CancelledError:
            Log.info("Worker shutting down gracefully")
            raise

    async def _run_round(self, documents: list[DocumentRecord]) -> None:
        # Accepted uploads without an Itera id cannot be polled; leave them alone
        not_uploaded = [
            d.id for d in documents if d.itera_document_id is None and d.itera_status is None
        ]
        uploaded = [d.id for d in documents if d.itera_document_id is not None]

        if not_uploaded:
            result = await self._poller.run(not_uploaded, wait_for_completion=False)
            Log.info(result.message)
        for document_id in uploaded:
            status = await self._orchestrator.check_and_update_status(document_id)
            Log.debug(f"Document {document_id}: {status.status}")

    async def _try_load_pending(self) -> list[DocumentRecord]:
        """Load documents awaiting processing. Gracefully handle DB errors."""
        try:
            return await self._orchestrator.pending_documents()
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return []
