"""Tests for the Appwrite REST client, query encoding, and JSON fields."""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import aiohttp
import pytest

from discora.core.config import Collections
from discora.services.database import Database, DatabaseError, Query, decode_json, encode_json
from discora.services.database.core import DocumentNotFoundError


class FakeResponse:
    def __init__(self, status: int, body: Any = None) -> None:
        self.status = status
        self._body = body

    async def json(self, content_type=None):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeHTTP:
    """Stands in for HTTPSessionManager and records every request."""

    def __init__(self, responses: List[FakeResponse], error: Optional[Exception] = None) -> None:
        self.responses = list(responses)
        self.error = error
        self.calls: List[dict] = []

    @asynccontextmanager
    async def _respond(self):
        if self.error:
            raise self.error
        yield self.responses.pop(0)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self._respond()

    async def close(self):
        pass


def _db(*responses: FakeResponse, error: Optional[Exception] = None):
    http = FakeHTTP(list(responses), error)
    db = Database(
        endpoint="https://aw.invalid/v1/",
        project_id="proj",
        api_key="key",
        database_id="main",
        collections=Collections(),
        http=http,
    )
    return db, http


# =============================================================================
# Queries / JSON Fields
# =============================================================================

def test_query_to_json():
    assert json.loads(Query.equal("guildId", "1").to_json()) == {
        "method": "equal", "attribute": "guildId", "values": ["1"],
    }
    assert json.loads(Query.limit(5).to_json()) == {"method": "limit", "values": [5]}
    assert json.loads(Query.is_not_null("messageId").to_json()) == {
        "method": "isNotNull", "attribute": "messageId",
    }


def test_decode_json_never_raises():
    assert decode_json('{"a": 1}', {}) == {"a": 1}
    assert decode_json("{broken", {}) == {}
    assert decode_json("[1, 2]", {}) == {}
    assert decode_json(None, []) == []
    assert decode_json([1], []) == [1]


def test_encode_json_is_compact():
    assert encode_json({"a": [1, 2]}) == '{"a":[1,2]}'


# =============================================================================
# REST Client
# =============================================================================

@pytest.mark.asyncio
async def test_list_documents_sends_queries_and_headers():
    db, http = _db(FakeResponse(200, {"total": 1, "documents": [{"$id": "x"}]}))

    docs = await db.list_documents("servers", [Query.equal("guildId", "1"), Query.limit(1)])

    assert docs == [{"$id": "x"}]
    call = http.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://aw.invalid/v1/databases/main/collections/servers/documents"
    assert [name for name, _ in call["params"]] == ["queries[]", "queries[]"]
    assert call["headers"]["X-Appwrite-Project"] == "proj"
    assert call["headers"]["X-Appwrite-Key"] == "key"


@pytest.mark.asyncio
async def test_create_document_uses_unique_id():
    db, http = _db(FakeResponse(201, {"$id": "new"}))

    await db.create_document("servers", {"name": "x"})

    assert http.calls[0]["json"] == {"documentId": "unique()", "data": {"name": "x"}}


@pytest.mark.asyncio
async def test_update_document_patches_data():
    db, http = _db(FakeResponse(200, {"$id": "d1", "name": "y"}))

    await db.update_document("servers", "d1", {"name": "y"})

    assert http.calls[0]["method"] == "PATCH"
    assert http.calls[0]["url"].endswith("/servers/documents/d1")
    assert http.calls[0]["json"] == {"data": {"name": "y"}}


@pytest.mark.asyncio
async def test_delete_returns_none_on_204():
    db, _ = _db(FakeResponse(204))
    assert await db.delete_document("servers", "d1") is None


@pytest.mark.asyncio
async def test_404_raises_not_found_and_get_or_none_returns_none():
    db, _ = _db(
        FakeResponse(404, {"message": "Document not found", "type": "document_not_found"}),
        FakeResponse(404, {"message": "Document not found"}),
    )

    with pytest.raises(DocumentNotFoundError) as info:
        await db.get_document("servers", "missing")
    assert info.value.error_type == "document_not_found"

    assert await db.get_document_or_none("servers", "missing") is None


@pytest.mark.asyncio
async def test_server_error_raises_database_error():
    db, _ = _db(FakeResponse(500, {"message": "boom"}))

    with pytest.raises(DatabaseError) as info:
        await db.list_documents("servers")
    assert info.value.status == 500
    assert not isinstance(info.value, DocumentNotFoundError)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    db, _ = _db(error=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(DatabaseError):
        await db.list_documents("servers")


@pytest.mark.asyncio
async def test_audit_log_write_failure_is_swallowed():
    db, _ = _db(FakeResponse(500, {"message": "boom"}))
    await db.log_audit_event(1, "USER_JOINED", "someone", "joined")


@pytest.mark.asyncio
async def test_request_timeout_is_wrapped():
    db, _ = _db(error=asyncio.TimeoutError())

    with pytest.raises(DatabaseError) as info:
        await db.list_documents("servers")
    assert info.value.status is None


@pytest.mark.asyncio
async def test_audit_log_timeout_is_swallowed():
    db, _ = _db(error=asyncio.TimeoutError())
    await db.log_audit_event(1, "GIVEAWAY_ENDED", "Discora#0001", "ended")
    await db.log_command_usage(1, "!help", "someone", 100)
