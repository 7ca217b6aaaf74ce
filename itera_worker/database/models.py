from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from itera_worker.itera.models import ExportRow


@dataclass(frozen=True)
class NewDocument:
    """A document to be stored before processing."""

    file_name: str
    content: bytes
    cnpj: str
    content_type: str = "application/pdf"
    source: str = ""
    description: str = ""


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    id: UUID
    file_name: str
    content: bytes
    content_type: str
    cnpj: str
    source: str = ""
    description: str = ""
    itera_document_id: UUID | None = None
    itera_status: str | None = None
    is_processed: bool = False
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ExportRowRecord:
    """Represents a row from the document_export_results table."""

    id: UUID
    document_id: UUID
    row: ExportRow
    created_at: datetime | None = None
