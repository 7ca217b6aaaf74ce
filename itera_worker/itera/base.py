from abc import ABC, abstractmethod
from uuid import UUID

from itera_worker.itera.models import ExportRow, StatusInfo, UploadResult


class BaseIteraClient(ABC):
    """Contract for the Itera document extraction API."""

    @abstractmethod
    async def request_token(self) -> str:
        """Authenticate with the configured credentials and return a bearer token.

        Raises:
            AuthError: on a non-2xx response or an unreadable body.
        """

    @abstractmethod
    async def upload_document(
        self,
        content: bytes,
        file_name: str,
        content_type: str,
        cnpj: str,
        source: str = "",
        description: str = "",
    ) -> UploadResult:
        """Submit a document for extraction.

        Raises:
            UploadError: on a non-2xx response or transport failure.
        """

    @abstractmethod
    async def get_status(self, remote_id: UUID) -> StatusInfo:
        """Fetch the processing status of an uploaded document.

        Raises:
            RemoteError: on a non-2xx response or an unreadable body.
        """

    @abstractmethod
    async def get_export(self, cnpj: int) -> list[ExportRow]:
        """Fetch all export rows for a CNPJ.

        Raises:
            RemoteError: on a non-2xx response or an unreadable body.
        """

    @abstractmethod
    async def get_mapping(self, remote_id: UUID) -> str:
        """Fetch the De-Para term mapping of a document, verbatim.

        Raises:
            RemoteError: on a non-2xx response.
        """
