"""
Microblog backend config

Posts with timestamps, an index on `created_at`, a guard that lets the
default role do everything the pages need and a handful of seed posts.
"""

import os

from starbknd import code, em, entity, secure_random_string, sqlite, text, timestamps
from starbknd.config import AdminOptions, Options, SyncSchemaOptions

SEED_POSTS = [
    {"content": "Just shipped a new feature! The feeling of deploying something you built from scratch never gets old."},
    {
        "content": "Hot take: type hints are just documentation that happens to be checked.",
        "url": "https://twitter.com/example/status/123",
    },
    {"content": "Today I learned that SQLite can handle way more than most people think. Millions of rows? No problem."},
    {"content": 'Reading "Designing Data-Intensive Applications" for the third time. Still finding new insights.'},
    {"content": "Simplicity is the ultimate sophistication. Delete that abstraction you don't need yet."},
    {"content": "Coffee count today: ☕☕☕☕ (it's only 2pm)"},
    {
        "content": "The best code is no code. The second best is code someone else already wrote and tested.",
        "url": "https://github.com/bknd-io/bknd",
    },
    {
        "content": "Debugging tip: explain the problem to a rubber duck. If that fails, explain it to a coworker. If that fails, take a walk.",
    },
]

DEFAULT_PERMISSIONS = [
    "system.access.api",
    "data.database.sync",
    "data.entity.create",
    "data.entity.delete",
    "data.entity.update",
    "data.entity.read",
    "media.file.delete",
    "media.file.read",
    "media.file.list",
    "media.file.upload",
]


async def seed(ctx):
    await ctx.em.mutator("posts").insert_many(SEED_POSTS)


def make_config(db_url: str = "file:data.db", **overrides):
    settings = dict(
        connection=sqlite(db_url),
        config={
            "data": em(
                {
                    "posts": entity("posts", {
                        "content": text().required(),
                        "url": text(),
                    }),
                },
                lambda index, entities: index(entities["posts"]).on(["created_at"]),
            ).to_json(),
            "auth": {
                "enabled": True,
                "allow_register": True,
                "jwt": {
                    "issuer": "starbknd-microblog",
                    "secret": os.environ.get("AUTH_JWT_SECRET") or secure_random_string(64),
                },
                "guard": {"enabled": True},
                "roles": {
                    "admin": {"implicit_allow": True},
                    "default": {"permissions": DEFAULT_PERMISSIONS, "is_default": True},
                },
            },
            "media": {"enabled": True, "storage_path": "uploads"},
        },
        options=Options(
            plugins=[timestamps(entities=["posts"], set_updated_on_create=True)],
            seed=seed,
        ),
        types_file_path="bknd_types.py",
        sync_schema=SyncSchemaOptions(force=True, drop=True),
        admin_options=AdminOptions(admin_basepath="/admin", logo_return_path="/../"),
    )
    settings.update(overrides)
    return code(**settings)


config = make_config()
