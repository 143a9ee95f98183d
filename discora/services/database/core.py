"""
Discora - Database Core
=======================

Base database class: Appwrite document store over REST.

All feature mixins are written against the five document primitives
defined here (list/get/create/update/delete).
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import aiohttp

from discora.core.config import Collections
from discora.core.logger import logger
from discora.utils.http import HTTPSessionManager


# Appwrite generates the id server-side when given this value
UNIQUE_ID = "unique()"

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)


class DatabaseError(Exception):
    """Raised when a database request fails (transport or non-2xx response)."""

    def __init__(self, message: str, status: Optional[int] = None, error_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.error_type = error_type


class DocumentNotFoundError(DatabaseError):
    """Raised when a referenced document does not exist."""
    pass


# =============================================================================
# Queries
# =============================================================================

@dataclass(frozen=True)
class Query:
    """One Appwrite query clause."""

    method: str
    attribute: Optional[str] = None
    values: Sequence[Any] = field(default_factory=tuple)

    @classmethod
    def equal(cls, attribute: str, value: Any) -> "Query":
        values = tuple(value) if isinstance(value, (list, tuple, set, frozenset)) else (value,)
        return cls("equal", attribute, values)

    @classmethod
    def less_than_equal(cls, attribute: str, value: Any) -> "Query":
        return cls("lessThanEqual", attribute, (value,))

    @classmethod
    def is_not_null(cls, attribute: str) -> "Query":
        return cls("isNotNull", attribute)

    @classmethod
    def order_desc(cls, attribute: str) -> "Query":
        return cls("orderDesc", attribute)

    @classmethod
    def limit(cls, count: int) -> "Query":
        return cls("limit", None, (count,))

    def to_json(self) -> str:
        payload: Dict[str, Any] = {"method": self.method}
        if self.attribute is not None:
            payload["attribute"] = self.attribute
        if self.values:
            payload["values"] = list(self.values)
        return json.dumps(payload, separators=(",", ":"))


# =============================================================================
# Serialized Fields
# =============================================================================

def encode_json(value: Any) -> str:
    """Serialize a structured field for storage."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def decode_json(raw: Any, default: Any) -> Any:
    """
    Deserialize a stored structured field.

    Never raises: missing, malformed, or wrongly-typed values yield
    ``default``.
    """
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str):
        return raw if isinstance(raw, type(default)) else default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return default
    if default is not None and not isinstance(value, type(default)):
        return default
    return value


# =============================================================================
# Core
# =============================================================================

class DatabaseCore:
    """Base database class with connection management."""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        database_id: str,
        collections: Optional[Collections] = None,
        http: Optional[HTTPSessionManager] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.database_id = database_id
        self.collections = collections or Collections()
        self._headers = {
            "X-Appwrite-Project": project_id,
            "X-Appwrite-Key": api_key,
            "Content-Type": "application/json",
        }
        self._http = http or HTTPSessionManager(timeout=REQUEST_TIMEOUT)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self._http.close()

    def _documents_path(self, collection: str, document_id: Optional[str] = None) -> str:
        path = f"{self.endpoint}/databases/{self.database_id}/collections/{collection}/documents"
        if document_id:
            path += f"/{document_id}"
        return path

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[List[tuple]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and decode the JSON response.

        Raises:
            DocumentNotFoundError: On HTTP 404.
            DatabaseError: On any other failure.
        """
        try:
            async with self._http.request(
                method, url, headers=self._headers, params=params, json=payload,
            ) as response:
                if response.status == 204:
                    return None
                try:
                    body = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    body = None

                if response.status >= 400:
                    message = "Unknown error"
                    error_type = None
                    if isinstance(body, dict):
                        message = body.get("message") or message
                        error_type = body.get("type")
                    error_cls = DocumentNotFoundError if response.status == 404 else DatabaseError
                    raise error_cls(message, status=response.status, error_type=error_type)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DatabaseError(f"{type(e).__name__}: {e}" if str(e) else type(e).__name__) from e

    # =========================================================================
    # Document Primitives
    # =========================================================================

    async def list_documents(
        self,
        collection: str,
        queries: Iterable[Query] = (),
    ) -> List[Dict[str, Any]]:
        """List documents matching every query clause."""
        params = [("queries[]", q.to_json()) for q in queries]
        body = await self._request("GET", self._documents_path(collection), params=params)
        return list((body or {}).get("documents", []))

    async def get_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        """Fetch one document by id."""
        return await self._request("GET", self._documents_path(collection, document_id))

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a document (server-generated id when none is given)."""
        return await self._request("POST", self._documents_path(collection), payload={
            "documentId": document_id or UNIQUE_ID,
            "data": data,
        })

    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Patch the given fields of a document."""
        return await self._request(
            "PATCH", self._documents_path(collection, document_id), payload={"data": data},
        )

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document."""
        await self._request("DELETE", self._documents_path(collection, document_id))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def find_one(self, collection: str, queries: Iterable[Query]) -> Optional[Dict[str, Any]]:
        """Return the first document matching the queries, or None."""
        docs = await self.list_documents(collection, [*queries, Query.limit(1)])
        return docs[0] if docs else None

    async def get_document_or_none(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document, returning None if it no longer exists."""
        try:
            return await self.get_document(collection, document_id)
        except DocumentNotFoundError:
            logger.tree("Document Missing", [
                ("Collection", collection),
                ("ID", document_id),
            ], emoji="⚠️")
            return None
