#!/usr/bin/env python3
"""
Test Data API

CRUD through the runtime app: validation, filtering, sorting, the permission
guard and seeding.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from starbknd import (
    DatabaseError,
    DataValidationError,
    PermissionDeniedError,
    RecordNotFoundError,
    UnknownEntityError,
    boolean,
    code,
    create_runtime_app,
    em,
    entity,
    sqlite,
    text,
)
from starbknd.config import Options


@pytest.fixture
async def app(posts_config):
    runtime_app = await create_runtime_app(posts_config())
    yield runtime_app
    runtime_app.close()


@pytest.mark.asyncio
async def test_create_and_read(app):
    """Created records come back with an id and timestamps."""
    print("Testing create and read...")

    api = app.get_api()
    created = await api.data.create_one("posts", {"content": "Hello"})
    assert created.data["id"] == 1
    assert created.data["content"] == "Hello"
    assert created.data["url"] is None
    assert created.data["created_at"] is not None
    assert created.data["updated_at"] is not None

    fetched = await api.data.read_one("posts", 1)
    assert fetched.data["content"] == "Hello"
    assert await api.data.count("posts") == 1
    assert await api.data.exists("posts", {"content": "Hello"})

    print("✓ Records created and read back")


@pytest.mark.asyncio
async def test_validation_errors(app):
    print("Testing validation...")

    api = app.get_api()
    with pytest.raises(DataValidationError):
        await api.data.create_one("posts", {"url": "https://example.com"})
    with pytest.raises(DataValidationError):
        await api.data.create_one("posts", {"content": "x", "likes": 3})
    with pytest.raises(UnknownEntityError):
        await api.data.create_one("comments", {"content": "x"})
    with pytest.raises(DataValidationError):
        await api.data.read_many("posts", where={"nope": 1})

    print("✓ Invalid payloads rejected")


@pytest.mark.asyncio
async def test_filter_sort_and_page(app):
    """where operators, "-field" sorting and limit/offset metadata."""
    print("Testing queries...")

    api = app.get_api()
    await api.data.create_many("posts", [
        {"content": "alpha"},
        {"content": "beta", "url": "https://example.com"},
        {"content": "gamma"},
    ])

    newest = await api.data.read_many("posts", sort="-id")
    assert [p["content"] for p in newest.data] == ["gamma", "beta", "alpha"]
    assert newest.meta["total"] == 3

    page = await api.data.read_many("posts", sort={"by": "id", "dir": "asc"}, limit=1, offset=1)
    assert [p["content"] for p in page.data] == ["beta"]
    assert page.meta == {"total": 3, "count": 1, "limit": 1, "offset": 1}

    with_url = await api.data.read_many("posts", where={"url": {"$isnull": False}})
    assert [p["content"] for p in with_url.data] == ["beta"]

    liked = await api.data.read_many("posts", where={"content": {"$like": "%a"}})
    assert {p["content"] for p in liked.data} == {"alpha", "beta", "gamma"}

    some = await api.data.read_many("posts", where={"id": {"$in": [1, 3]}}, select=["content"])
    assert some.data == [{"id": 1, "content": "alpha"}, {"id": 3, "content": "gamma"}]

    print("✓ Filters, sorting and paging work")


@pytest.mark.asyncio
async def test_update_and_delete(app):
    print("Testing update and delete...")

    api = app.get_api()
    await api.data.create_one("posts", {"content": "draft"})

    updated = await api.data.update_one("posts", 1, {"content": "final"})
    assert updated.data["content"] == "final"

    deleted = await api.data.delete_one("posts", 1)
    assert deleted.data["content"] == "final"
    assert await api.data.count("posts") == 0

    with pytest.raises(RecordNotFoundError):
        await api.data.delete_one("posts", 1)
    with pytest.raises(RecordNotFoundError):
        await api.data.update_one("posts", 42, {"content": "x"})

    print("✓ Update and delete work")


@pytest.mark.asyncio
async def test_guard_uses_default_role(workdir):
    """Anonymous callers get exactly the default role's permissions."""
    print("Testing guard...")

    config = code(
        connection=sqlite(":memory:"),
        config={
            "data": em({"todos": entity("todos", {"title": text().required()})}).to_json(),
            "auth": {
                "enabled": True,
                "guard": {"enabled": True},
                "roles": {"reader": {"permissions": ["data.entity.read"], "is_default": True}},
            },
        },
    )
    app = await create_runtime_app(config)
    api = app.get_api()

    assert await api.data.count("todos") == 0
    with pytest.raises(PermissionDeniedError):
        await api.data.create_one("todos", {"title": "nope"})
    assert (await api.verify_auth()) == {"user": None, "role": "reader"}

    app.close()
    print("✓ Guard enforces default role")


@pytest.mark.asyncio
async def test_seed_runs_once(workdir):
    """Seeding only happens for tables created by the current sync."""
    print("Testing seed...")

    calls = []

    async def seed(ctx):
        calls.append(True)
        await ctx.em.mutator("todos").insert_many([{"title": "one"}, {"title": "two", "done": True}])

    def make():
        return code(
            connection=sqlite(f"file:{workdir / 'todo.db'}"),
            config={"data": em({"todos": entity("todos", {
                "title": text().required(),
                "done": boolean().default(False),
            })}).to_json()},
            options=Options(seed=seed),
        )

    first = await create_runtime_app(make())
    todos = await first.get_api().data.read_many("todos")
    assert [(t["title"], t["done"]) for t in todos.data] == [("one", False), ("two", True)]
    first.close()

    second = await create_runtime_app(make())
    assert await second.get_api().data.count("todos") == 2
    assert len(calls) == 1
    second.close()

    print("✓ Seed runs only on creation")


@pytest.mark.asyncio
async def test_bad_index_is_logged_not_fatal(posts_config, caplog):
    """A broken index definition leaves the entities usable."""
    print("Testing schema error recovery...")

    app = await create_runtime_app(posts_config(options=Options()))
    assert "posts" in app.schema.tables
    assert not app.schema.table("posts").indexes
    assert "continuing without indices" in caplog.text

    created = await app.get_api().data.create_one("posts", {"content": "still works"})
    assert created.data["id"] == 1
    app.close()

    print("✓ App builds without the broken index")


@pytest.mark.asyncio
async def test_malformed_operators_and_database_failures(app):
    """Bad operator values are validation errors; database failures become DatabaseError."""
    print("Testing query failures...")

    api = app.get_api()
    with pytest.raises(DataValidationError):
        await api.data.read_many("posts", where={"id": {"$in": 1}})
    with pytest.raises(DataValidationError):
        await api.data.count("posts", where={"id": {"$nin": "12"}})

    with app.engine.begin() as conn:
        conn.exec_driver_sql('DROP TABLE "posts"')
    with pytest.raises(DatabaseError) as exc:
        await api.data.read_many("posts")
    assert exc.value.status_code == 500

    print("✓ Query failures mapped to runtime errors")
