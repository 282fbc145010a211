"""HTTP client for the folders/documents REST API."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import Settings, settings as default_settings
from .exceptions import RemoteError
from .schemas import (
    Document,
    EntityType,
    Folder,
    FolderContents,
    FolderCreate,
    FolderUpdate,
    ItemType,
)
from .upload_queue import UploadFile

logger = logging.getLogger(__name__)

# Only these are retried; a retried POST could create a second folder or document.
IDEMPOTENT_METHODS = frozenset({"GET", "PUT", "DELETE"})


class DocTreeClient:
    """Async client implementing ``RemoteStore`` over the REST API.

    Configuration comes from ``Settings`` (``DOCTREE_API_URL``,
    ``DOCTREE_API_TOKEN``, ``DOCTREE_API_TIMEOUT``, ``DOCTREE_MAX_RETRIES``,
    ``DOCTREE_RETRY_BASE_DELAY``). ``transport`` is passed straight to
    ``httpx.AsyncClient`` and exists so tests can plug in a mock transport.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        config = config or default_settings
        self.base_url = config.api_url.rstrip("/")
        self.token = config.api_token
        self.timeout = config.api_timeout
        self.max_retries = max(1, config.max_retries)
        self.retry_base_delay = config.retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "DocTreeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers: dict[str, str] = {}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        item_type: Optional[ItemType] = None,
        item_id: Optional[int] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute an HTTP request, retrying transient failures of idempotent calls.

        Connection errors, timeouts and 5xx responses are retried with
        exponential backoff (1s, 2s, 4s by default). 4xx responses and
        non-idempotent requests fail on the first attempt. Every failure
        surfaces as ``RemoteError`` tagged with *operation* and the item.
        """
        client = await self._get_client()
        attempts = self.max_retries if method in IDEMPOTENT_METHODS else 1
        context = {
            "operation": operation,
            "item_type": item_type.value if item_type else None,
            "item_id": item_id,
        }
        last_exc: Exception | None = None

        for attempt in range(attempts):
            try:
                resp = await client.request(method, path, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_exc = exc
                status = 0
            except httpx.HTTPError as exc:
                # Protocol-level failures are not worth retrying.
                last_exc = exc
                status = 0
                break
            else:
                if resp.status_code < 400:
                    return resp
                status = resp.status_code
                last_exc = httpx.HTTPStatusError(
                    _error_detail(resp),
                    request=resp.request,
                    response=resp,
                )
                if status < 500:
                    break

            if attempt < attempts - 1:
                delay = self.retry_base_delay * (2 ** attempt)
                logger.warning(
                    "Request %s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    method, path, attempt + 1, attempts, delay, last_exc,
                )
                await asyncio.sleep(delay)

        logger.error("%s failed: %s", operation, last_exc, extra=context)
        raise RemoteError(
            operation,
            str(last_exc),
            item_type=context["item_type"],
            item_id=item_id,
            status_code=status,
            original_error=last_exc,
        )

    # ----- folders ---------------------------------------------------------

    async def list_folders(self, entity_type: EntityType, entity_id: int) -> List[Folder]:
        """All folders of an entity. Maps to GET /folders/{entity_type}/{entity_id}."""
        entity = EntityType(entity_type).value
        resp = await self._request("list_folders", "GET", f"/folders/{entity}/{entity_id}")
        return [Folder.model_validate(f) for f in resp.json()]

    async def get_folder_contents(self, folder_id: int) -> FolderContents:
        """Folder + subfolders + documents. Maps to GET /folders/id/{folder_id}/contents."""
        resp = await self._request(
            "get_folder_contents", "GET", f"/folders/id/{folder_id}/contents",
            item_type=ItemType.FOLDER, item_id=folder_id,
        )
        return FolderContents.model_validate(resp.json())

    async def create_folder(self, data: FolderCreate) -> Folder:
        """Maps to POST /folders."""
        resp = await self._request(
            "create_folder", "POST", "/folders",
            item_type=ItemType.FOLDER, item_id=data.parent_folder_id,
            json=data.model_dump(mode="json"),
        )
        return Folder.model_validate(resp.json())

    async def update_folder(self, folder_id: int, data: FolderUpdate) -> Folder:
        """Maps to PUT /folders/{folder_id}."""
        resp = await self._request(
            "update_folder", "PUT", f"/folders/{folder_id}",
            item_type=ItemType.FOLDER, item_id=folder_id,
            json=data.model_dump(exclude_none=True),
        )
        return Folder.model_validate(resp.json())

    async def move_folder(self, folder_id: int, new_parent_id: Optional[int]) -> Folder:
        """Maps to PUT /folders/{folder_id}/move."""
        resp = await self._request(
            "move_folder", "PUT", f"/folders/{folder_id}/move",
            item_type=ItemType.FOLDER, item_id=folder_id,
            json={"new_parent_id": new_parent_id},
        )
        return Folder.model_validate(resp.json())

    async def delete_folder(self, folder_id: int, force: bool = False) -> None:
        """Maps to DELETE /folders/{folder_id}?force=..."""
        await self._request(
            "delete_folder", "DELETE", f"/folders/{folder_id}",
            item_type=ItemType.FOLDER, item_id=folder_id,
            params={"force": "true" if force else "false"},
        )

    # ----- documents -------------------------------------------------------

    async def upload_document(
        self,
        entity_type: EntityType,
        entity_id: int,
        file: UploadFile,
        tags: str = "",
        folder_id: Optional[int] = None,
    ) -> Document:
        """Multipart upload. Maps to POST /documents/upload."""
        form: Dict[str, str] = {
            "entity_type": EntityType(entity_type).value,
            "entity_id": str(entity_id),
            "tags": tags,
        }
        if folder_id is not None:
            form["folder_id"] = str(folder_id)
        resp = await self._request(
            "upload_document", "POST", "/documents/upload",
            item_type=ItemType.FOLDER, item_id=folder_id,
            data=form,
            files={"file": (file.name, file.read(), file.mime_type)},
        )
        return Document.model_validate(resp.json())

    async def list_documents(self, entity_type: EntityType, entity_id: int) -> List[Document]:
        """Maps to GET /documents/{entity_type}/{entity_id}."""
        entity = EntityType(entity_type).value
        resp = await self._request("list_documents", "GET", f"/documents/{entity}/{entity_id}")
        return [Document.model_validate(d) for d in resp.json().get("documents", [])]

    async def move_document(self, document_id: int, new_folder_id: Optional[int]) -> Document:
        """Maps to PUT /documents/{document_id}/move?folder_id=...

        A missing ``folder_id`` parameter makes the document unfiled.
        """
        params = {} if new_folder_id is None else {"folder_id": new_folder_id}
        resp = await self._request(
            "move_document", "PUT", f"/documents/{document_id}/move",
            item_type=ItemType.DOCUMENT, item_id=document_id,
            params=params,
        )
        body = resp.json()
        return Document.model_validate(body.get("document", body))

    async def delete_document(self, document_id: int) -> None:
        """Maps to DELETE /documents/{document_id}."""
        await self._request(
            "delete_document", "DELETE", f"/documents/{document_id}",
            item_type=ItemType.DOCUMENT, item_id=document_id,
        )

    async def download_document(self, document_id: int, file_url: str) -> bytes:
        """Fetch a document's file.

        ``file_url`` is usually a server-relative path such as
        ``/uploads/...``; it resolves against the API host, not the API
        prefix. Absolute URLs are used as given.
        """
        url = httpx.URL(self.base_url + "/").join(file_url)
        resp = await self._request(
            "download_document", "GET", str(url),
            item_type=ItemType.DOCUMENT, item_id=document_id,
        )
        return resp.content

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort human message from an error response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return f"HTTP {resp.status_code}: {detail}"
    return f"HTTP {resp.status_code}"
