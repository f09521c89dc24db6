"""Notion REST API client wrapper around httpx.

Only the handful of endpoints the sync needs are exposed. Error responses
are mapped onto :class:`TransientRemoteError` (worth retrying) and
:class:`FatalRemoteError` (everything else).
"""

from typing import Any, Protocol

import httpx

from openapi_notion.errors import FatalRemoteError, TransientRemoteError
from openapi_notion.notion.builder import Block

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT = 60.0
PAGE_SIZE = 100


class RemoteStore(Protocol):
    """The subset of the Notion API used by :class:`NotionAdapter`."""

    def list_block_children(self, block_id: str, start_cursor: str | None = None) -> dict[str, Any]: ...

    def append_block_children(self, block_id: str, children: list[Block]) -> dict[str, Any]: ...

    def delete_block(self, block_id: str) -> dict[str, Any]: ...

    def create_page(self, parent_id: str, title: str, icon: str | None = None) -> dict[str, Any]: ...

    def retrieve_page(self, page_id: str) -> dict[str, Any]: ...

    def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]: ...


def is_transient(status: int) -> bool:
    return status == 429 or status >= 500


class NotionClient:
    """Wrapper for Notion API calls via httpx."""

    def __init__(
        self,
        token: str,
        base_url: str = NOTION_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
        )

    def __enter__(self) -> "NotionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def list_block_children(self, block_id: str, start_cursor: str | None = None) -> dict[str, Any]:
        params = {"page_size": PAGE_SIZE}
        if start_cursor:
            params["start_cursor"] = start_cursor
        return self._request("GET", f"/blocks/{block_id}/children", params=params)

    def append_block_children(self, block_id: str, children: list[Block]) -> dict[str, Any]:
        return self._request("PATCH", f"/blocks/{block_id}/children", json={"children": children})

    def delete_block(self, block_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/blocks/{block_id}")

    def create_page(self, parent_id: str, title: str, icon: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "parent": {"page_id": parent_id},
            "properties": {"title": {"title": [{"type": "text", "text": {"content": title}}]}},
        }
        if icon:
            body["icon"] = {"type": "emoji", "emoji": icon}
        return self._request("POST", "/pages", json=body)

    def retrieve_page(self, page_id: str) -> dict[str, Any]:
        return self._request("GET", f"/pages/{page_id}")

    def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise TransientRemoteError(0, "transport_error", str(e)) from e

        if response.is_success:
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        code = payload.get("code", "")
        message = payload.get("message", response.reason_phrase)
        if is_transient(response.status_code):
            raise TransientRemoteError(response.status_code, code, message)
        raise FatalRemoteError(response.status_code, code, message)
