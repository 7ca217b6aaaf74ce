from dataclasses import dataclass, field, fields
from typing import Any
from uuid import UUID


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ExportRow:
    """One data point extracted by Itera (e.g. a balance sheet line item)."""

    codigo: str | None = None
    tempo: str | None = None
    conf: str | None = None
    data: str | None = None
    data_ano: str | None = None
    termo_total: str | None = None
    valor: str | None = None
    page: str | None = None
    id: str | None = None
    subsection: str | None = None
    tipo: str | None = None
    section: str | None = None
    moeda: str | None = None
    escala: str | None = None
    empresa: str | None = None
    cnpj: str | None = None
    consolidado: str | None = None
    tipo_balanco: str | None = None
    y: str | None = None
    x: str | None = None
    unique_id: str | None = None
    parent: str | None = None
    is_total: str | None = None
    over_threshold_h: str | None = None
    over_threshold_v: str | None = None
    bbox_left: str | None = None
    bbox_top: str | None = None
    bbox_height: str | None = None
    bbox_width: str | None = None
    data_init: str | None = None
    formula: str | None = None

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExportRow":
        """Build a row from an export JSON object, ignoring unknown keys."""
        return cls(**{name: _as_text(data.get(name)) for name in cls.field_names()})

    def to_dict(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in self.field_names()}


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a document upload."""

    uid: str = ""
    status: str = ""
    message: str = ""
    file_name: str = ""
    cnpj: str = ""

    @property
    def remote_id(self) -> UUID | None:
        """The Itera document id, or None when the upload response carried none."""
        if not self.uid:
            return None
        try:
            return UUID(self.uid)
        except ValueError:
            return None


@dataclass(frozen=True)
class StatusInfo:
    """Processing status of a document on Itera, with a subset of its metadata."""

    status: str
    uid: str = ""
    cnpj: str = ""
    file_name: str = ""
    company: str = ""
    doc_type: str = ""
    processing_attempts: int = 0
    concluded_date: str = ""
    rejection_date: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusInfo":
        attempts = data.get("processingAttempts")
        return cls(
            status=_as_text(data.get("status")) or "",
            uid=_as_text(data.get("uid")) or "",
            cnpj=_as_text(data.get("cnpj")) or "",
            file_name=_as_text(data.get("fileName")) or "",
            company=_as_text(data.get("company")) or "",
            doc_type=_as_text(data.get("docType")) or "",
            processing_attempts=attempts if isinstance(attempts, int) else 0,
            concluded_date=_as_text(data.get("concludedDate")) or "",
            rejection_date=_as_text(data.get("rejectionDate")) or "",
            raw=data,
        )
