from typing import Any

from itera_worker.itera.models import ExportRow


def flatten_export_payload(payload: Any) -> list[ExportRow]:
    """Collect export rows from every array value of the top-level JSON object.

    The property names of the container are irrelevant; order within each
    array is preserved. Anything other than a JSON object yields no rows,
    as do non-object items inside the arrays.
    """
    if not isinstance(payload, dict):
        return []

    rows: list[ExportRow] = []
    for value in payload.values():
        if not isinstance(value, list):
            continue
        rows.extend(ExportRow.from_dict(item) for item in value if isinstance(item, dict))
    return rows
