import uuid
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from psycopg.rows import dict_row

from itera_worker.database.connection import get_connection
from itera_worker.database.models import DocumentRecord, NewDocument
from itera_worker.processor.exceptions import NotFoundError

_COLUMNS = """
    id, file_name, content, content_type, cnpj, source, description,
    itera_document_id, itera_status, is_processed, error_message,
    created_at, updated_at
"""


def _to_record(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=row["id"],
        file_name=row["file_name"],
        content=bytes(row["content"]),
        content_type=row["content_type"],
        cnpj=row["cnpj"],
        source=row["source"],
        description=row["description"],
        itera_document_id=row["itera_document_id"],
        itera_status=row["itera_status"],
        is_processed=row["is_processed"],
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class DocumentRepository:
    """Database operations for the documents table."""

    async def get_by_id(self, document_id: UUID) -> DocumentRecord | None:
        """Find a document by ID. Returns None if it does not exist."""
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = await cur.fetchone()

        return _to_record(row) if row is not None else None

    async def get_by_ids(self, document_ids: Sequence[UUID]) -> list[DocumentRecord]:
        """Find documents by ID, keeping the order of the input. Unknown ids are skipped."""
        if not document_ids:
            return []
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE id = ANY(%s)",
                    (list(document_ids),),
                )
                rows = await cur.fetchall()

        by_id = {row["id"]: _to_record(row) for row in rows}
        return [by_id[doc_id] for doc_id in dict.fromkeys(document_ids) if doc_id in by_id]

    async def get_all(self) -> list[DocumentRecord]:
        return await self._select_many(f"SELECT {_COLUMNS} FROM documents ORDER BY created_at")

    async def get_pending(self) -> list[DocumentRecord]:
        """Documents neither processed nor failed."""
        return await self._select_many(
            f"""
            SELECT {_COLUMNS} FROM documents
            WHERE is_processed = FALSE AND error_message IS NULL
            ORDER BY created_at
            """
        )

    async def get_by_cnpj(self, cnpj: str) -> list[DocumentRecord]:
        return await self._select_many(
            f"SELECT {_COLUMNS} FROM documents WHERE cnpj = %s ORDER BY created_at",
            (cnpj,),
        )

    async def add(self, document: NewDocument) -> DocumentRecord:
        records = await self.add_many([document])
        return records[0]

    async def add_many(self, documents: Sequence[NewDocument]) -> list[DocumentRecord]:
        """Insert documents in one transaction and return the stored records."""
        records: list[DocumentRecord] = []
        async with get_connection() as conn:
            async with conn.transaction():
                async with conn.cursor(row_factory=dict_row) as cur:
                    for document in documents:
                        await cur.execute(
                            f"""
                            INSERT INTO documents
                            (id, file_name, content, content_type, cnpj, source, description)
                            VALUES (%s, %s, %s, %s, %s, %s, %s)
                            RETURNING {_COLUMNS}
                            """,
                            (
                                uuid.uuid4(),
                                document.file_name,
                                document.content,
                                document.content_type,
                                document.cnpj,
                                document.source,
                                document.description,
                            ),
                        )
                        row = await cur.fetchone()
                        if row is None:
                            raise RuntimeError(
                                f"Insert of document {document.file_name} returned no row"
                            )
                        records.append(_to_record(row))
        return records

    async def update_itera_status(
        self,
        document_id: UUID,
        itera_document_id: UUID | None,
        status: str,
    ) -> None:
        """Persist the Itera document id and the latest Itera status.

        Raises:
            NotFoundError: if no document with this ID exists.
        """
        await self._update(
            """
            UPDATE documents
            SET itera_document_id = %s, itera_status = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (itera_document_id, status, document_id),
            document_id,
        )

    async def reset_for_upload(
        self,
        document_id: UUID,
        itera_document_id: UUID | None,
        status: str,
    ) -> None:
        """Store a new upload outcome, starting a fresh processing attempt.

        Clears the processed flag and any error left by an earlier attempt.

        Raises:
            NotFoundError: if no document with this ID exists.
        """
        await self._update(
            """
            UPDATE documents
            SET itera_document_id = %s, itera_status = %s,
                is_processed = FALSE, error_message = NULL, updated_at = NOW()
            WHERE id = %s
            """,
            (itera_document_id, status, document_id),
            document_id,
        )

    async def mark_processed(self, document_id: UUID) -> None:
        """Mark a document as successfully processed.

        Raises:
            NotFoundError: if no document with this ID exists.
        """
        await self._update(
            """
            UPDATE documents
            SET is_processed = TRUE, updated_at = NOW()
            WHERE id = %s
            """,
            (document_id,),
            document_id,
        )

    async def mark_error(self, document_id: UUID, message: str) -> None:
        """Record a processing failure on a document.

        Raises:
            NotFoundError: if no document with this ID exists.
        """
        await self._update(
            """
            UPDATE documents
            SET error_message = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (message, document_id),
            document_id,
        )

    async def _select_many(
        self, query: str, params: tuple[Any, ...] = ()
    ) -> list[DocumentRecord]:
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
        return [_to_record(row) for row in rows]

    async def _update(self, query: str, params: tuple[Any, ...], document_id: UUID) -> None:
        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                if cur.rowcount == 0:
                    raise NotFoundError(f"Document {document_id} not found")
            await conn.commit()
