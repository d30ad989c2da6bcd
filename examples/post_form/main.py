"""
Single field post form

One text field: plain text becomes the post content, a URL becomes the post
url. Shares the microblog schema and components.

Run with `python -m examples.post_form.main`.
"""

import json

from datastar_py import ServerSentEventGenerator as SSE
from datastar_py.consts import ElementPatchMode
from datastar_py.starlette import DatastarResponse, read_signals
from fasthtml.common import *
from monsterui.all import *

from starbknd import BkndRuntime
from starbknd.ui import Layout, app_headers
from starbknd.utils import is_url

from ..microblog.bknd_config import make_config
from ..microblog.components import PostList, post_item


def SubmitForm():
    return Form(
        {"data-signals": json.dumps({"post": ""}),
         "data-on:submit": "@post('/submit-post')"},
        DivFullySpaced(
            Input(placeholder="Say something or paste a link", data_bind="post", name="post"),
            Button("Send", type="submit", cls=ButtonT.primary),
            cls="gap-2",
        ),
    )


def create_app(config=None):
    bknd = BkndRuntime(config or make_config())
    app, rt = fast_app(htmx=False, pico=False, hdrs=app_headers())
    bknd.mount(app)
    app.state.bknd = bknd

    @rt("/")
    async def index(request: Request):
        api = await bknd.get_api(request)
        posts = await api.data.read_many("posts", sort="-created_at", limit=50)
        return Layout(
            H1("Post something", cls="text-2xl font-bold"),
            SubmitForm(),
            PostList(posts.data, show_delete_button=False),
            title="Post something",
        )

    @rt("/submit-post", methods=["post"])
    async def submit_post(request: Request):
        signals = await read_signals(request) or {}
        value = str(signals.get("post") or "").strip()
        if not value:
            return JSONResponse({"error": "Post is required"}, status_code=400)

        payload = {"content": value, "url": value} if is_url(value) else {"content": value}
        api = await bknd.get_api(request)
        created = await api.data.create_one("posts", payload)
        total = await api.data.count("posts")

        async def patches():
            if total == 1:
                yield SSE.patch_elements(to_xml(PostList([created.data], show_delete_button=False)))
            else:
                yield SSE.patch_elements(
                    to_xml(post_item(created.data, show_delete_button=False)),
                    selector="#posts",
                    mode=ElementPatchMode.PREPEND,
                )
            yield SSE.patch_signals({"post": ""})

        return DatastarResponse(patches())

    return app


app = create_app()

if __name__ == "__main__":
    serve(appname="examples.post_form.main", port=3000)
