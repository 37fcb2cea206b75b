from __future__ import annotations

from typing import Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from .schemas import Submission

_submissions = TypeAdapter(list[Submission])


class StorageError(RuntimeError):
    pass


class FileServiceUnavailable(StorageError):
    pass


class SubmissionNotFound(StorageError):
    pass


class StorageResponseError(StorageError):
    pass


class StorageCollaborator(Protocol):
    async def list_submissions(self, assignment_id: str) -> list[Submission]: ...

    async def download_file(self, work_id: str) -> bytes: ...


class FileStorageClient:
    """HTTP-клиент File Storing Service."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get(self, path: str) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url)
            if resp.status_code == 404:
                raise SubmissionNotFound(f"Not found: {url}")
            resp.raise_for_status()
            return resp
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise FileServiceUnavailable(f"File service unavailable: {e}") from e
        except httpx.HTTPStatusError as e:
            raise StorageResponseError(f"File service error {e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise FileServiceUnavailable(f"File service request failed: {e}") from e

    async def list_submissions(self, assignment_id: str) -> list[Submission]:
        resp = await self._get(f"/filestorage/assignment/{assignment_id}")
        try:
            return _submissions.validate_json(resp.content)
        except ValidationError as e:
            raise StorageResponseError(f"Unexpected submissions payload: {e}") from e

    async def download_file(self, work_id: str) -> bytes:
        resp = await self._get(f"/filestorage/{work_id}/file")
        return resp.content
