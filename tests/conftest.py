"""Shared test fixtures for the docimport test suite."""

from __future__ import annotations

import hashlib
import json
from typing import Any

import httpx
import pytest

from docimport.config import ImportConfig
from docimport.models import Block, DetailKey, ObjectType, RelationFormat, Snapshot
from docimport.progress import Progress

# ---------------------------------------------------------------------------
# In-memory host collaborators
# ---------------------------------------------------------------------------


class InMemoryObjectStore:
    """ObjectStore that keeps everything in dicts.

    ``fail_objects`` holds snapshot file names whose creation raises;
    ``fail_extra_relations`` holds relation keys the store rejects.
    """

    def __init__(self) -> None:
        self.objects: dict[str, Snapshot] = {}
        self.sub_objects: dict[str, Snapshot] = {}
        self.relations: dict[tuple[str, RelationFormat], str] = {}
        self.options: dict[str, dict[str, str]] = {}
        self.details: dict[str, dict[str, Any]] = {}
        self.extra_relations: dict[str, list[str]] = {}
        self.replaced: list[tuple[str, str, Block]] = []
        self.fail_objects: set[str] = set()
        self.fail_extra_relations: set[str] = set()

    def create_object(self, snapshot: Snapshot) -> str:
        if snapshot.file_name in self.fail_objects:
            raise RuntimeError(f"cannot create {snapshot.file_name}")
        self.objects[snapshot.id] = snapshot
        return snapshot.id

    def create_sub_object(self, snapshot: Snapshot) -> str:
        self.sub_objects[snapshot.id] = snapshot
        details = snapshot.details
        if ObjectType.RELATION in snapshot.object_types:
            key = details[DetailKey.RELATION_KEY]
            fmt = RelationFormat(details[DetailKey.RELATION_FORMAT])
            self.relations[(details[DetailKey.NAME], fmt)] = key
            return key
        self.options.setdefault(details[DetailKey.RELATION_KEY], {})[details[DetailKey.NAME]] = snapshot.id
        return snapshot.id

    def find_relation(self, name: str, format: RelationFormat) -> str | None:
        return self.relations.get((name, format))

    def aggregated_options(self, relation_key: str) -> dict[str, str]:
        return dict(self.options.get(relation_key, {}))

    def set_details(self, object_id: str, details: dict[str, Any]) -> None:
        self.details.setdefault(object_id, {}).update(details)

    def add_extra_relations(self, object_id: str, relation_keys: list[str]) -> None:
        for key in relation_keys:
            if key in self.fail_extra_relations:
                raise RuntimeError(f"relation {key} rejected")
        self.extra_relations.setdefault(object_id, []).extend(relation_keys)

    def replace_block(self, object_id: str, block_id: str, block: Block) -> None:
        self.replaced.append((object_id, block_id, block))


class InMemoryFileStore:
    """FileStore hashing the source string; ``fail`` sources raise."""

    def __init__(self) -> None:
        self.hashes: set[str] = set()
        self.uploads: list[str] = []
        self.fail: set[str] = set()

    def get_by_hash(self, file_hash: str) -> bool:
        return file_hash in self.hashes

    def upload(self, source: str) -> str:
        if source in self.fail:
            raise OSError(f"cannot read {source}")
        self.uploads.append(source)
        file_hash = hashlib.sha256(source.encode()).hexdigest()[:32]
        self.hashes.add(file_hash)
        return file_hash


# ---------------------------------------------------------------------------
# Fake Notion API
# ---------------------------------------------------------------------------


def _json(status: int, body: dict) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})


class FakeNotion:
    """Routes Notion API requests to in-memory fixtures.

    Attributes
    ----------
    databases, pages:
        Objects returned by ``POST /search``.
    blocks:
        Parent ID -> raw child block objects.
    query_rows:
        Database ID -> rows returned by ``POST /databases/{id}/query``.
    properties:
        ``(page_id, property_id)`` -> response body of the property endpoint.
    search_errors:
        HTTP statuses returned by the next search calls, consumed in order.
    block_errors:
        Parent IDs whose children request fails with 500.
    users_status:
        Status of ``GET /users``.
    """

    def __init__(self) -> None:
        self.databases: list[dict] = []
        self.pages: list[dict] = []
        self.blocks: dict[str, list[dict]] = {}
        self.query_rows: dict[str, list[dict]] = {}
        self.properties: dict[tuple[str, str], dict] = {}
        self.search_errors: list[int] = []
        self.block_errors: set[str] = set()
        self.users_status = 200
        self.requests: list[tuple[str, str]] = []
        self.auth_headers: list[str] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1"):
            path = path[len("/v1"):]
        self.requests.append((request.method, path))
        self.auth_headers.append(request.headers.get("authorization", ""))
        parts = path.strip("/").split("/")

        if path == "/search":
            if self.search_errors:
                status = self.search_errors.pop(0)
                code = "unauthorized" if status == 401 else "service_unavailable"
                return _json(status, {"object": "error", "status": status, "code": code})
            return _json(200, _list(self.databases + self.pages))
        if path == "/users":
            if self.users_status != 200:
                code = "unauthorized" if self.users_status == 401 else "internal_server_error"
                return _json(self.users_status, {"object": "error", "code": code, "message": "no"})
            return _json(200, _list([{"object": "user", "id": "u1"}]))
        if parts[0] == "databases" and parts[-1] == "query":
            return _json(200, _list(self.query_rows.get(parts[1], [])))
        if parts[0] == "blocks" and parts[-1] == "children":
            if parts[1] in self.block_errors:
                return _json(500, {"object": "error", "code": "internal_server_error", "message": "boom"})
            return _json(200, _list(self.blocks.get(parts[1], [])))
        if parts[0] == "pages" and len(parts) == 4 and parts[2] == "properties":
            body = self.properties.get((parts[1], parts[3]))
            if body is None:
                return _json(404, {"object": "error", "code": "object_not_found", "message": "missing"})
            return _json(200, body)
        return _json(404, {"object": "error", "code": "object_not_found", "message": path})


def _list(results: list[dict]) -> dict:
    return {"object": "list", "results": results, "has_more": False, "next_cursor": None}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path) -> ImportConfig:
    """Fast deterministic configuration; temp files go under tmp_path."""
    return ImportConfig(
        token="test_token_1234",
        rate_limit_rps=10_000.0,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        search_retry_delay=0.0,
        max_workers=2,
        temp_dir=str(tmp_path),
    )


@pytest.fixture
def progress() -> Progress:
    return Progress()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def file_store() -> InMemoryFileStore:
    return InMemoryFileStore()


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()
