from itera_worker.itera.base import BaseIteraClient
from itera_worker.itera.client import IteraApiClient, IteraEndpoints
from itera_worker.itera.models import ExportRow, StatusInfo, UploadResult

__all__ = [
    "BaseIteraClient",
    "ExportRow",
    "IteraApiClient",
    "IteraEndpoints",
    "StatusInfo",
    "UploadResult",
]
