import json
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx

from itera_worker.auth.exceptions import AuthError
from itera_worker.auth.token_cache import TokenCache
from itera_worker.config.settings import Settings
from itera_worker.itera.base import BaseIteraClient
from itera_worker.itera.exceptions import IteraError, RemoteError, UploadError
from itera_worker.itera.export import flatten_export_payload
from itera_worker.itera.models import ExportRow, StatusInfo, UploadResult
from itera_worker.logging.logger import Log


@dataclass(frozen=True)
class IteraEndpoints:
    """Itera endpoint URLs. Templated ones take one positional placeholder."""

    auth: str
    upload: str
    status: str
    export: str
    mapping: str


class IteraApiClient(BaseIteraClient):
    """Itera API adapter built on a long-lived httpx.AsyncClient.

    Authorized calls take their bearer token from a TokenCache whose
    requester is this client's own request_token.
    """

    def __init__(
        self,
        *,
        username: str,
        password: str,
        endpoints: IteraEndpoints,
        timeout_seconds: float,
        token_cache_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._username = username
        self._password = password
        self._endpoints = endpoints
        self._http = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)
        self.token_cache = TokenCache(self.request_token, token_cache_seconds)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "IteraApiClient":
        return cls(
            username=settings.itera_username,
            password=settings.itera_password,
            endpoints=IteraEndpoints(
                auth=settings.itera_auth_url,
                upload=settings.itera_upload_url,
                status=settings.itera_status_url,
                export=settings.itera_export_url,
                mapping=settings.itera_mapping_url,
            ),
            timeout_seconds=settings.itera_request_timeout_seconds,
            token_cache_seconds=settings.itera_token_cache_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "IteraApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request_token(self) -> str:
        payload = {"username": self._username, "password": self._password}
        try:
            response = await self._http.post(self._endpoints.auth, json=payload)
        except httpx.HTTPError as exc:
            raise AuthError(f"Itera auth network error: {exc}") from exc

        if not response.is_success:
            raise AuthError(f"Itera auth returned HTTP {response.status_code}")

        try:
            body = json.loads(response.text)
        except ValueError as exc:
            raise AuthError("Itera auth returned a non-JSON body") from exc

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError("Itera auth response has no access_token")
        return token

    async def upload_document(
        self,
        content: bytes,
        file_name: str,
        content_type: str,
        cnpj: str,
        source: str = "",
        description: str = "",
    ) -> UploadResult:
        if not content:
            raise ValueError("Document content is required and must not be empty")

        response = await self._send(
            "POST",
            self._endpoints.upload,
            UploadError,
            files={"file": (file_name, content, content_type)},
            data={"source": source, "description": description, "cnpj": cnpj},
        )

        body = response.text
        if not body.strip():
            return UploadResult(
                status="Success",
                message="Upload completed",
                file_name=file_name,
                cnpj=cnpj,
            )

        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            Log.warning(f"Itera upload of {file_name} returned a non-JSON body")
            return UploadResult(status="Success", message=body, file_name=file_name, cnpj=cnpj)

        return UploadResult(
            uid=str(payload.get("uid") or ""),
            status=str(payload.get("status") or ""),
            message=str(payload.get("message") or ""),
            file_name=str(payload.get("fileName") or file_name),
            cnpj=str(payload.get("cnpj") or cnpj),
        )

    async def get_status(self, remote_id: UUID) -> StatusInfo:
        response = await self._send(
            "GET", self._endpoints.status.format(remote_id), RemoteError
        )
        payload = self._parse_json(response, "status")
        if not isinstance(payload, dict):
            raise RemoteError(f"Itera status for {remote_id} is not a JSON object")
        return StatusInfo.from_dict(payload)

    async def get_export(self, cnpj: int) -> list[ExportRow]:
        response = await self._send(
            "GET", self._endpoints.export.format(cnpj), RemoteError
        )
        return flatten_export_payload(self._parse_json(response, "export"))

    async def get_mapping(self, remote_id: UUID) -> str:
        response = await self._send(
            "GET", self._endpoints.mapping.format(remote_id), RemoteError
        )
        return response.text

    async def _send(
        self,
        method: str,
        url: str,
        error_cls: type[IteraError],
        **kwargs: Any,
    ) -> httpx.Response:
        """Send an authorized request; non-2xx and transport failures raise error_cls."""
        token = await self.token_cache.get_access_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise error_cls(f"Itera network error on {method} {url}: {exc}") from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.token_cache.invalidate(token)
        if not response.is_success:
            raise error_cls(f"Itera {method} {url} returned HTTP {response.status_code}")
        return response

    @staticmethod
    def _parse_json(response: httpx.Response, operation: str) -> Any:
        try:
            return json.loads(response.text)
        except ValueError as exc:
            raise RemoteError(f"Itera {operation} returned a non-JSON body") from exc
