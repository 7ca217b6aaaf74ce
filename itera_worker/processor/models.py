from dataclasses import dataclass, field
from uuid import UUID

from itera_worker.itera.models import ExportRow


@dataclass
class DocumentProcessingStatus:
    """Snapshot of one document's progress through Itera processing."""

    document_id: UUID
    file_name: str = ""
    itera_document_id: UUID | None = None
    status: str = ""
    is_success: bool = False
    is_processing: bool = False
    error_message: str | None = None
    exported_results_count: int = 0


@dataclass
class BatchResult:
    """Aggregate outcome of processing a batch of documents."""

    total_documents: int = 0
    success_count: int = 0
    error_count: int = 0
    processing_count: int = 0
    document_statuses: list[DocumentProcessingStatus] = field(default_factory=list)
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.error_count == 0 and self.processing_count == 0


@dataclass
class ExportResult:
    """Export rows stored locally for a document."""

    document_id: UUID
    cnpj: str = ""
    is_success: bool = False
    records_count: int = 0
    data: list[ExportRow] = field(default_factory=list)
    error_message: str | None = None
