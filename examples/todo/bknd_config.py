"""Todo backend config: a single `todos` entity with a couple of seed rows."""

from starbknd import boolean, code, em, entity, sqlite, text
from starbknd.config import Options, SyncSchemaOptions

SEED_TODOS = [
    {"title": "Learn bknd", "done": True},
    {"title": "Build something cool", "done": False},
]


async def seed(ctx):
    await ctx.em.mutator("todos").insert_many(SEED_TODOS)


def make_config(db_url: str = "file:todo.db", **overrides):
    settings = dict(
        connection=sqlite(db_url),
        config={
            "data": em({
                "todos": entity("todos", {
                    "title": text().required(),
                    "done": boolean().default(False),
                }),
            }).to_json(),
        },
        options=Options(seed=seed),
        sync_schema=SyncSchemaOptions(force=True),
    )
    settings.update(overrides)
    return code(**settings)


config = make_config()
