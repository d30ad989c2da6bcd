#!/usr/bin/env python3
"""
Test Runtime Routes

The runtime mounted into a FastHTML app: JSON API, admin pages, static
assets and uploads.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest
from fasthtml.common import fast_app
from starlette.testclient import TestClient

from starbknd import BkndRuntime


@pytest.fixture
def client(posts_config):
    config = posts_config(media={"enabled": True, "body_max_size": 16})
    runtime = BkndRuntime(config)
    app, rt = fast_app(htmx=False, pico=False)
    runtime.mount(app)

    @rt("/")
    def index():
        return "home"

    with TestClient(app) as client:
        yield client
    runtime.close()


def test_system_routes(client):
    print("Testing system routes...")

    assert client.get("/api/system/ping").json() == {"pong": True}

    schema = client.get("/api/system/schema").json()
    assert set(schema["posts"]) == {"content", "url", "created_at", "updated_at"}

    config = client.get("/api/system/config").json()
    assert config["media"]["enabled"] is True

    sync = client.post("/api/system/sync").json()
    assert sync == {"statements": [], "created": []}

    print("✓ System routes respond")


def test_entity_routes(client):
    """CRUD over HTTP, with runtime errors mapped to JSON."""
    print("Testing entity routes...")

    created = client.post("/api/data/entity/posts", json={"content": "over http"})
    assert created.status_code == 201
    post_id = created.json()["data"]["id"]

    listed = client.get("/api/data/entity/posts", params={"sort": "-id", "limit": 5})
    assert listed.status_code == 200
    assert listed.json()["data"][0]["content"] == "over http"
    assert listed.json()["meta"]["limit"] == 5

    count = client.get("/api/data/entity/posts/count", params={"where": '{"content": "over http"}'})
    assert count.json() == {"count": 1}

    patched = client.patch(f"/api/data/entity/posts/{post_id}", json={"url": "https://example.com"})
    assert patched.json()["data"]["url"] == "https://example.com"

    assert client.delete(f"/api/data/entity/posts/{post_id}").status_code == 200
    missing = client.get(f"/api/data/entity/posts/{post_id}")
    assert missing.status_code == 404
    assert "not found" in missing.json()["error"]

    print("✓ Entity routes work")


def test_entity_route_errors(client):
    print("Testing entity route errors...")

    assert client.get("/api/data/entity/comments").status_code == 404
    assert client.post("/api/data/entity/posts", json={"title": "x"}).status_code == 400
    assert client.get("/api/data/entity/posts", params={"limit": "many"}).status_code == 400
    assert client.get("/api/data/entity/posts", params={"where": "{"}).status_code == 400

    print("✓ Errors mapped to status codes")


def test_admin_pages(client):
    print("Testing admin pages...")

    client.post("/api/data/entity/posts", json={"content": "visible in admin"})

    overview = client.get("/admin")
    assert overview.status_code == 200
    assert 'id="entity-posts"' in overview.text
    assert "1 records" in overview.text
    assert 'href="/assets/admin.css"' in overview.text

    records = client.get("/admin/data/posts")
    assert records.status_code == 200
    assert 'id="posts-1"' in records.text
    assert "visible in admin" in records.text

    assert client.get("/assets/admin.css").status_code == 200
    assert "home" in client.get("/").text

    print("✓ Admin pages rendered")


def test_media_routes(client, workdir):
    print("Testing media routes...")

    uploaded = client.post("/api/media/upload/note.txt", content=b"hi there")
    assert uploaded.status_code == 201
    assert uploaded.json()["data"] == {"name": "note.txt", "size": 8}
    assert (workdir / "uploads" / "note.txt").read_bytes() == b"hi there"

    assert client.get("/uploads/note.txt").content == b"hi there"
    assert client.get("/api/media/file/note.txt").content == b"hi there"
    assert client.get("/api/media/files").json()["data"] == [{"name": "note.txt", "size": 8}]

    too_big = client.post("/api/media/upload/big.bin", content=b"x" * 17)
    assert too_big.status_code == 413

    assert client.delete("/api/media/file/note.txt").status_code == 200
    assert client.get("/api/media/file/note.txt").status_code == 404

    print("✓ Media routes work")


@pytest.mark.asyncio
async def test_runtime_builds_app_once(posts_config):
    """get_app caches the built app for the life of the runtime."""
    runtime = BkndRuntime(posts_config())
    first = await runtime.get_app()
    second = await runtime.get_app()
    assert first is second
    assert first.built
    runtime.close()
    assert runtime._app is None
    print("✓ Runtime app cached")


def test_failures_answer_json(posts_config):
    """Malformed queries and database failures keep the JSON error shape."""
    print("Testing JSON failures...")

    runtime = BkndRuntime(posts_config())
    app, rt = fast_app(htmx=False, pico=False)
    runtime.mount(app)

    with TestClient(app) as client:
        bad_operator = client.get("/api/data/entity/posts", params={"where": '{"id": {"$in": 1}}'})
        assert bad_operator.status_code == 400
        assert bad_operator.json() == {"error": 'Operator "$in" expects a list'}

        built = runtime._app
        with built.engine.begin() as conn:
            conn.exec_driver_sql('DROP TABLE "posts"')

        failed = client.get("/api/data/entity/posts")
        assert failed.status_code == 500
        assert failed.headers["content-type"].startswith("application/json")
        assert failed.json() == {"error": "Database error"}

    runtime.close()
    print("✓ Failures answered as JSON")


def test_oversized_upload_refused_from_header(client, workdir):
    """A declared Content-Length over the limit is refused before the body is read."""
    refused = client.post(
        "/api/media/upload/big.bin",
        content=b"x" * 32,
        headers={"Content-Length": "32"},
    )
    assert refused.status_code == 413
    assert not (workdir / "uploads" / "big.bin").exists()
    print("✓ Oversized upload refused")
