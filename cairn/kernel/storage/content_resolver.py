"""
Content resolver - fetches JSON documents from the IPFS network by address.

Documents are immutable once addressed, so a successful resolve is final for
that address. Failures are never retried here: callers decide, and the
reconciliation engine deliberately does not.
"""

from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cairn.config import Settings
from cairn.errors import ContentMalformed, ContentUnreachable
from cairn.logging_config import get_logger

logger = get_logger(__name__)

DocumentT = TypeVar("DocumentT", bound=BaseModel)

IPFS_SCHEME = "ipfs://"
HTTP_TIMEOUT = 15.0


def normalize_address(address: str) -> str:
    """Strip an ipfs:// scheme and surrounding whitespace from a content address."""
    cid = (address or "").strip()
    if cid.startswith(IPFS_SCHEME):
        cid = cid[len(IPFS_SCHEME):]
    return cid.strip("/")


class ContentResolver:
    """
    Resolve and publish JSON documents on the content network.

    Reads go through an HTTP gateway (`GET {gateway}/ipfs/{cid}`), uploads
    through the node's HTTP API (`POST {api}/api/v0/add`).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        gateway_url: str,
        api_url: Optional[str] = None,
        owns_client: bool = False,
    ):
        self.client = client
        self.gateway_url = gateway_url.rstrip("/")
        self.api_url = api_url.rstrip("/") if api_url else None
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentResolver":
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(HTTP_TIMEOUT),
            follow_redirects=True,
        )
        return cls(
            client,
            gateway_url=settings.ipfs_gateway_url,
            api_url=settings.ipfs_api_url,
            owns_client=True,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch(self, address: str) -> bytes:
        """Return the raw bytes stored under `address`."""
        cid = normalize_address(address)
        if not cid:
            raise ContentMalformed("Empty content address", address=address)

        try:
            response = await self.client.get(f"{self.gateway_url}/ipfs/{cid}")
        except httpx.HTTPError as exc:
            raise ContentUnreachable(f"Gateway request failed: {exc}", address=cid) from exc

        if response.status_code != 200:
            raise ContentUnreachable(
                f"Gateway returned HTTP {response.status_code}", address=cid
            )
        return response.content

    async def resolve(self, address: str, schema: Type[DocumentT]) -> DocumentT:
        """Fetch `address` and validate it as `schema`."""
        body = await self.fetch(address)
        try:
            return schema.model_validate_json(body)
        except ValidationError as exc:
            raise ContentMalformed(
                f"Document does not match {schema.__name__}: {exc.error_count()} error(s)",
                address=normalize_address(address),
            ) from exc

    async def publish(self, document: BaseModel, *, filename: str = "document.json") -> str:
        """Upload a document and return its content address."""
        if not self.api_url:
            raise ContentUnreachable("No storage API configured for uploads")

        payload = document.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        try:
            response = await self.client.post(
                f"{self.api_url}/api/v0/add",
                params={"cid-version": "1", "pin": "true"},
                files={"file": (filename, payload, "application/json")},
            )
            response.raise_for_status()
            cid = response.json()["Hash"]
        except httpx.HTTPError as exc:
            raise ContentUnreachable(f"Upload failed: {exc}") from exc
        except (KeyError, ValueError) as exc:
            raise ContentMalformed(f"Unexpected upload response: {exc}") from exc

        logger.info("Document published", extra={"cid": cid, "file_name": filename})
        return cid
