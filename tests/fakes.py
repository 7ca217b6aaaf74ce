"""In-memory stand-ins for the repositories and the Itera client."""

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID

from itera_worker.database.models import DocumentRecord, ExportRowRecord, NewDocument
from itera_worker.itera.base import BaseIteraClient
from itera_worker.itera.models import ExportRow, StatusInfo, UploadResult
from itera_worker.processor.exceptions import NotFoundError


class InMemoryDocumentRepository:
    def __init__(self) -> None:
        self.documents: dict[UUID, DocumentRecord] = {}

    async def get_by_id(self, document_id: UUID) -> DocumentRecord | None:
        return self.documents.get(document_id)

    async def get_by_ids(self, document_ids: Sequence[UUID]) -> list[DocumentRecord]:
        return [self.documents[i] for i in dict.fromkeys(document_ids) if i in self.documents]

    async def get_all(self) -> list[DocumentRecord]:
        return list(self.documents.values())

    async def get_pending(self) -> list[DocumentRecord]:
        return [
            d for d in self.documents.values()
            if not d.is_processed and d.error_message is None
        ]

    async def get_by_cnpj(self, cnpj: str) -> list[DocumentRecord]:
        return [d for d in self.documents.values() if d.cnpj == cnpj]

    async def add(self, document: NewDocument) -> DocumentRecord:
        return (await self.add_many([document]))[0]

    async def add_many(self, documents: Sequence[NewDocument]) -> list[DocumentRecord]:
        records = []
        for doc in documents:
            record = DocumentRecord(
                id=uuid.uuid4(),
                file_name=doc.file_name,
                content=doc.content,
                content_type=doc.content_type,
                cnpj=doc.cnpj,
                source=doc.source,
                description=doc.description,
                created_at=datetime.now(timezone.utc),
            )
            self.documents[record.id] = record
            records.append(record)
        return records

    async def update_itera_status(
        self, document_id: UUID, itera_document_id: UUID | None, status: str
    ) -> None:
        doc = self._require(document_id)
        doc.itera_document_id = itera_document_id
        doc.itera_status = status

    async def reset_for_upload(
        self, document_id: UUID, itera_document_id: UUID | None, status: str
    ) -> None:
        doc = self._require(document_id)
        doc.itera_document_id = itera_document_id
        doc.itera_status = status
        doc.is_processed = False
        doc.error_message = None

    async def mark_processed(self, document_id: UUID) -> None:
        self._require(document_id).is_processed = True

    async def mark_error(self, document_id: UUID, message: str) -> None:
        self._require(document_id).error_message = message

    def _require(self, document_id: UUID) -> DocumentRecord:
        if document_id not in self.documents:
            raise NotFoundError(f"Document {document_id} not found")
        return self.documents[document_id]


class InMemoryExportRowRepository:
    def __init__(self) -> None:
        self.records: list[ExportRowRecord] = []

    async def get_by_document_id(self, document_id: UUID) -> list[ExportRowRecord]:
        return [r for r in self.records if r.document_id == document_id]

    async def delete_by_document_id(self, document_id: UUID) -> int:
        before = len(self.records)
        self.records = [r for r in self.records if r.document_id != document_id]
        return before - len(self.records)

    async def add_many(self, document_id: UUID, rows: Sequence[ExportRow]) -> None:
        self.records.extend(
            ExportRowRecord(id=uuid.uuid4(), document_id=document_id, row=row) for row in rows
        )

    async def replace_for_document(self, document_id: UUID, rows: Sequence[ExportRow]) -> int:
        await self.delete_by_document_id(document_id)
        await self.add_many(document_id, rows)
        return len(rows)


class FakeIteraClient(BaseIteraClient):
    """Scripted Itera client; statuses are served per remote id in order."""

    def __init__(self) -> None:
        self.upload_results: dict[str, UploadResult | Exception] = {}
        self.statuses: dict[UUID, list[str | Exception]] = {}
        self.export_rows: list[ExportRow] | Exception = []
        self.mapping = "{}"
        self.uploaded: list[str] = []
        self.exported_cnpjs: list[int] = []

    async def request_token(self) -> str:
        return "token"

    async def upload_document(
        self,
        content: bytes,
        file_name: str,
        content_type: str,
        cnpj: str,
        source: str = "",
        description: str = "",
    ) -> UploadResult:
        self.uploaded.append(file_name)
        outcome = self.upload_results.get(file_name, UploadResult(uid=str(uuid.uuid4())))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def get_status(self, remote_id: UUID) -> StatusInfo:
        queue = self.statuses[remote_id]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return StatusInfo(status=outcome)

    async def get_export(self, cnpj: int) -> list[ExportRow]:
        self.exported_cnpjs.append(cnpj)
        if isinstance(self.export_rows, Exception):
            raise self.export_rows
        return list(self.export_rows)

    async def get_mapping(self, remote_id: UUID) -> str:
        return self.mapping
