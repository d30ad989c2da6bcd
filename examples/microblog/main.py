"""
Microblog

Posts are read through the runtime API on the page and created or deleted
through datastar requests that answer with element patches.

Run with `python -m examples.microblog.main`.
"""

import logging

from datastar_py import ServerSentEventGenerator as SSE
from datastar_py.consts import ElementPatchMode
from datastar_py.starlette import DatastarResponse, read_signals
from fasthtml.common import *
from monsterui.all import *

from starbknd import BkndError, BkndRuntime
from starbknd.ui import Layout, app_headers
from starbknd.utils import is_url

from .bknd_config import config as default_config
from .components import EmptyPosts, PostForm, PostList, post_item

logger = logging.getLogger(__name__)


def create_app(config=None):
    bknd = BkndRuntime(config or default_config)
    app, rt = fast_app(htmx=False, pico=False, hdrs=app_headers())
    bknd.mount(app)
    app.state.bknd = bknd

    @rt("/")
    async def index(request: Request):
        api = await bknd.get_api(request)
        posts = await api.data.read_many("posts", sort="-created_at", limit=50)
        return Layout(
            H1("Microblog", cls="text-2xl font-bold"),
            PostForm(),
            PostList(posts.data),
            title="Microblog",
        )

    @rt("/create-post", methods=["post"])
    async def create_post(request: Request):
        signals = await read_signals(request) or {}
        content = str(signals.get("content") or "").strip()
        url = str(signals.get("url") or "").strip() or None
        if not content:
            return JSONResponse({"error": "Content is required"}, status_code=400)
        if url and not is_url(url):
            return JSONResponse({"error": "Invalid URL"}, status_code=400)

        api = await bknd.get_api(request)
        created = await api.data.create_one("posts", {"content": content, "url": url})
        total = await api.data.count("posts")

        async def patches():
            if total == 1:
                yield SSE.patch_elements(to_xml(PostList([created.data])))
            else:
                yield SSE.patch_elements(to_xml(post_item(created.data)), selector="#posts", mode=ElementPatchMode.PREPEND)
            yield SSE.patch_signals({"content": "", "url": ""})

        return DatastarResponse(patches())

    @rt("/delete-post/{id}", methods=["delete"])
    async def delete_post(request: Request, id: str):
        try:
            post_id = int(id)
        except ValueError:
            return JSONResponse({"error": "A numeric post id is required"}, status_code=400)

        try:
            api = await bknd.get_api(request)
            await api.data.delete_one("posts", post_id)
            remaining = await api.data.count("posts")
        except BkndError as e:
            logger.error(f"Failed to delete post {post_id}: {e}")
            return JSONResponse({"error": "Failed to delete post"}, status_code=500)

        async def patches():
            if remaining == 0:
                yield SSE.patch_elements(to_xml(EmptyPosts()))
            else:
                yield SSE.patch_elements(selector=f"#post-{post_id}", mode=ElementPatchMode.REMOVE)

        return DatastarResponse(patches())

    return app


app = create_app()

if __name__ == "__main__":
    serve(appname="examples.microblog.main", port=3000)
