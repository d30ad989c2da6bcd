"""Shared fixtures: every test works in its own temporary directory."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from starbknd import code, em, entity, sqlite, text, timestamps
from starbknd.config import Options

DATASTAR_HEADERS = {"Datastar-Request": "true"}


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the test from a temporary directory so uploads and generated files stay there."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PROD", raising=False)
    return tmp_path


@pytest.fixture
def posts_config(workdir):
    """A posts schema with timestamps on a throwaway SQLite file."""
    def make(media=None, **overrides):
        settings = dict(
            connection=sqlite(f"file:{workdir / 'test.db'}"),
            config={
                "data": em(
                    {"posts": entity("posts", {"content": text().required(), "url": text()})},
                    lambda index, e: index(e["posts"]).on(["created_at"]),
                ).to_json(),
                "media": media or {"enabled": False},
            },
            options=Options(plugins=[timestamps(entities=["posts"])]),
        )
        settings.update(overrides)
        return code(**settings)
    return make


@pytest.fixture
def microblog_config(workdir):
    """The microblog config on a temporary database, optionally without seed posts."""
    from examples.microblog import bknd_config

    def make(seed: bool = False, **overrides):
        options = Options(
            plugins=[timestamps(entities=["posts"], set_updated_on_create=True)],
            seed=bknd_config.seed if seed else None,
        )
        settings = dict(options=options, types_file_path=None)
        settings.update(overrides)
        return bknd_config.make_config(db_url=f"file:{workdir / 'data.db'}", **settings)
    return make
