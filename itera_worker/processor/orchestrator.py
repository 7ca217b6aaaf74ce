import re
from collections.abc import Sequence
from uuid import UUID

from itera_worker.database.models import DocumentRecord, NewDocument
from itera_worker.database.repositories.document_repository import DocumentRepository
from itera_worker.database.repositories.export_row_repository import ExportRowRepository
from itera_worker.itera.base import BaseIteraClient
from itera_worker.logging.logger import Log
from itera_worker.processor.exceptions import InvalidTaxIdError, NotFoundError
from itera_worker.processor.models import (
    BatchResult,
    DocumentProcessingStatus,
    ExportResult,
)
from itera_worker.processor.status_classifier import StatusClassifier, StatusOutcome

STATUS_UPLOADED = "Uploaded"
STATUS_NOT_FOUND = "NotFound"
STATUS_NOT_UPLOADED = "NotUploaded"
STATUS_ERROR = "Error"


def cnpj_to_int(cnpj: str) -> int:
    """Strip formatting from a CNPJ and return it as the integer Itera exports by.

    Raises:
        InvalidTaxIdError: if the CNPJ contains no digits.
    """
    digits = re.sub(r"\D", "", cnpj or "")
    if not digits:
        raise InvalidTaxIdError(f"Invalid CNPJ for export: {cnpj!r}")
    return int(digits)


class DocumentOrchestrator:
    """Drives documents through Itera: upload -> poll status -> store export rows.

    Per-document failures are recorded on the document and reported in the
    returned status; they never abort the rest of a batch.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        export_repo: ExportRowRepository,
        client: BaseIteraClient,
        classifier: StatusClassifier | None = None,
    ) -> None:
        self._doc_repo = doc_repo
        self._export_repo = export_repo
        self._client = client
        self._classifier = classifier if classifier is not None else StatusClassifier()

    async def add_document(self, document: NewDocument) -> DocumentRecord:
        record = await self._doc_repo.add(document)
        Log.info(f"Stored document {record.id} ({record.file_name})")
        return record

    async def add_documents(self, documents: Sequence[NewDocument]) -> list[DocumentRecord]:
        records = await self._doc_repo.add_many(documents)
        Log.info(f"Stored {len(records)} documents")
        return records

    async def pending_documents(self) -> list[DocumentRecord]:
        return await self._doc_repo.get_pending()

    async def list_documents(self, cnpj: str | None = None) -> list[DocumentRecord]:
        """All stored documents, optionally only those of one CNPJ."""
        if cnpj:
            return await self._doc_repo.get_by_cnpj(cnpj)
        return await self._doc_repo.get_all()

    async def get_document(self, document_id: UUID) -> DocumentRecord:
        """Load a single stored document.

        Raises:
            NotFoundError: if the document does not exist.
        """
        document = await self._doc_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    async def process_batch(self, document_ids: Sequence[UUID]) -> BatchResult:
        """Upload each found document to Itera and report which ones are now processing."""
        result = BatchResult(total_documents=len(document_ids))
        Log.info(f"Starting processing of {len(document_ids)} documents")

        documents = await self._doc_repo.get_by_ids(document_ids)
        if not documents:
            result.message = "No documents found for the given ids."
            return result

        for document in documents:
            status = await self._upload(document)
            if status.is_processing:
                result.processing_count += 1
            else:
                result.error_count += 1
            result.document_statuses.append(status)

        result.message = (
            f"Processing started: {result.processing_count} processing, "
            f"{result.error_count} with errors."
        )
        return result

    async def check_and_update_status(self, document_id: UUID) -> DocumentProcessingStatus:
        """Refresh a document's status from Itera and persist the outcome.

        Never raises: failures are reported as status "Error".
        """
        status = DocumentProcessingStatus(document_id=document_id)
        try:
            document = await self._doc_repo.get_by_id(document_id)
            if document is None:
                status.status = STATUS_NOT_FOUND
                status.error_message = "Document not found."
                return status

            status.file_name = document.file_name
            status.itera_document_id = document.itera_document_id
            if document.itera_document_id is None:
                status.status = STATUS_NOT_UPLOADED
                status.error_message = "Document has not been uploaded to Itera yet."
                return status

            await self._refresh(document, document.itera_document_id, status)
        except Exception as exc:
            Log.error(f"Failed to check status of document {document_id}: {exc}")
            status.status = STATUS_ERROR
            status.is_success = False
            status.is_processing = False
            status.error_message = str(exc)
        return status

    async def get_export_results(self, document_id: UUID) -> ExportResult:
        result = ExportResult(document_id=document_id)

        document = await self._doc_repo.get_by_id(document_id)
        if document is None:
            result.error_message = "Document not found."
            return result

        result.cnpj = document.cnpj
        records = await self._export_repo.get_by_document_id(document_id)
        if not records:
            result.error_message = "No export results found for this document."
            return result

        result.is_success = True
        result.records_count = len(records)
        result.data = [record.row for record in records]
        return result

    async def get_mapping(self, document_id: UUID) -> str | None:
        """Return Itera's De-Para mapping for a document, or None if not uploaded yet.

        Raises:
            NotFoundError: if the document does not exist.
            RemoteError: if Itera fails to return the mapping.
        """
        document = await self._doc_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        if document.itera_document_id is None:
            return None
        return await self._client.get_mapping(document.itera_document_id)

    async def _upload(self, document: DocumentRecord) -> DocumentProcessingStatus:
        status = DocumentProcessingStatus(document_id=document.id, file_name=document.file_name)
        try:
            Log.info(f"Uploading document {document.id} to Itera")
            upload = await self._client.upload_document(
                document.content,
                document.file_name,
                document.content_type,
                document.cnpj,
                document.source,
                document.description,
            )
            remote_id = upload.remote_id
            if remote_id is not None:
                await self._doc_repo.reset_for_upload(document.id, remote_id, STATUS_UPLOADED)
                status.itera_document_id = remote_id
                status.status = STATUS_UPLOADED
                Log.info(f"Document {document.id} uploaded, Itera id {remote_id}")
            else:
                # Upload accepted without a usable id; keep polling-capable state
                await self._doc_repo.reset_for_upload(document.id, None, upload.status)
                status.status = upload.status
                Log.warning(f"Document {document.id} uploaded without an Itera id")
            status.is_processing = True
        except Exception as exc:
            Log.error(f"Failed to upload document {document.id}: {exc}")
            status.status = STATUS_ERROR
            status.is_success = False
            status.error_message = str(exc)
            await self._record_error(document.id, str(exc))
        return status

    async def _refresh(
        self,
        document: DocumentRecord,
        remote_id: UUID,
        status: DocumentProcessingStatus,
    ) -> None:
        info = await self._client.get_status(remote_id)
        status.status = info.status
        await self._doc_repo.update_itera_status(document.id, remote_id, info.status)

        outcome = self._classifier.classify(info.status)
        if outcome is StatusOutcome.SUCCESS:
            count = await self._store_export(document)
            await self._doc_repo.mark_processed(document.id)
            status.is_success = True
            status.is_processing = False
            status.exported_results_count = count
            Log.info(f"Document {document.id} processed, {count} export rows stored")
        elif outcome is StatusOutcome.ERROR:
            message = f"Itera processing failed: {info.status}"
            await self._doc_repo.mark_error(document.id, message)
            status.is_success = False
            status.is_processing = False
            status.error_message = message
            Log.warning(f"Document {document.id} failed on Itera: {info.status}")
        else:
            status.is_processing = True

    async def _store_export(self, document: DocumentRecord) -> int:
        rows = await self._client.get_export(cnpj_to_int(document.cnpj))
        return await self._export_repo.replace_for_document(document.id, rows)

    async def _record_error(self, document_id: UUID, message: str) -> None:
        try:
            await self._doc_repo.mark_error(document_id, message)
        except Exception as exc:
            Log.error(f"Failed to record error on document {document_id}: {exc}")
