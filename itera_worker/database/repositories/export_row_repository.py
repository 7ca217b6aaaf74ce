import uuid
from collections.abc import Sequence
from typing import Any
from uuid import UUID

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from itera_worker.database.connection import get_connection
from itera_worker.database.models import ExportRowRecord
from itera_worker.itera.models import ExportRow

# ExportRow.id is Itera's item id; the table's own primary key is `id`
_ROW_COLUMNS: dict[str, str] = {
    name: ("item_id" if name == "id" else name) for name in ExportRow.field_names()
}

_SELECT = sql.SQL(
    "SELECT id, document_id, {columns}, created_at FROM document_export_results"
).format(columns=sql.SQL(", ").join(sql.Identifier(c) for c in _ROW_COLUMNS.values()))

_INSERT = sql.SQL(
    "INSERT INTO document_export_results (id, document_id, {columns}) VALUES ({values})"
).format(
    columns=sql.SQL(", ").join(sql.Identifier(c) for c in _ROW_COLUMNS.values()),
    values=sql.SQL(", ").join(sql.Placeholder() * (len(_ROW_COLUMNS) + 2)),
)


def _to_record(row: dict[str, Any]) -> ExportRowRecord:
    return ExportRowRecord(
        id=row["id"],
        document_id=row["document_id"],
        row=ExportRow(**{field: row[column] for field, column in _ROW_COLUMNS.items()}),
        created_at=row["created_at"],
    )


def _insert_params(document_id: UUID, row: ExportRow) -> tuple[Any, ...]:
    values = row.to_dict()
    return (uuid.uuid4(), document_id, *(values[field] for field in _ROW_COLUMNS))


class ExportRowRepository:
    """Database operations for the document_export_results table."""

    async def get_by_document_id(self, document_id: UUID) -> list[ExportRowRecord]:
        return await self._select(
            sql.SQL("{select} WHERE document_id = %s ORDER BY created_at, seq").format(
                select=_SELECT
            ),
            (document_id,),
        )

    async def get_by_cnpj(self, cnpj: str) -> list[ExportRowRecord]:
        return await self._select(
            sql.SQL("{select} WHERE cnpj = %s ORDER BY created_at, seq").format(
                select=_SELECT
            ),
            (cnpj,),
        )

    async def delete_by_document_id(self, document_id: UUID) -> int:
        """Delete all rows of a document and return how many were removed."""
        async with get_connection() as conn:
            deleted = await self._delete(conn, document_id)
            await conn.commit()
        return deleted

    async def add_many(self, document_id: UUID, rows: Sequence[ExportRow]) -> None:
        async with get_connection() as conn:
            await self._insert(conn, document_id, rows)
            await conn.commit()

    async def replace_for_document(self, document_id: UUID, rows: Sequence[ExportRow]) -> int:
        """Replace every stored row of a document in a single transaction.

        Readers see either the previous rows or the new ones, never a mix.
        Returns the number of rows stored.
        """
        async with get_connection() as conn:
            async with conn.transaction():
                await self._delete(conn, document_id)
                await self._insert(conn, document_id, rows)
        return len(rows)

    async def _select(self, query: sql.Composed, params: tuple[Any, ...]) -> list[ExportRowRecord]:
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
        return [_to_record(row) for row in rows]

    @staticmethod
    async def _delete(conn: psycopg.AsyncConnection[Any], document_id: UUID) -> int:
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM document_export_results WHERE document_id = %s",
                (document_id,),
            )
            return cur.rowcount

    @staticmethod
    async def _insert(
        conn: psycopg.AsyncConnection[Any],
        document_id: UUID,
        rows: Sequence[ExportRow],
    ) -> None:
        if not rows:
            return
        async with conn.cursor() as cur:
            await cur.executemany(_INSERT, [_insert_params(document_id, row) for row in rows])
