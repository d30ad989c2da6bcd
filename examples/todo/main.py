"""
Todo list

Run with `python -m examples.todo.main`.
"""

import logging

from datastar_py import ServerSentEventGenerator as SSE
from datastar_py.consts import ElementPatchMode
from datastar_py.starlette import DatastarResponse, read_signals
from fasthtml.common import *
from monsterui.all import *

from starbknd import BkndRuntime, RecordNotFoundError
from starbknd.ui import Layout, app_headers

from .bknd_config import config as default_config
from .components import TodoForm, TodoItem, TodoList

logger = logging.getLogger(__name__)

CHECKED = {"true": True, "false": False}


def create_app(config=None):
    bknd = BkndRuntime(config or default_config)
    app, rt = fast_app(htmx=False, pico=False, hdrs=app_headers())
    bknd.mount(app)
    app.state.bknd = bknd

    @rt("/")
    async def index(request: Request):
        api = await bknd.get_api(request)
        todos = await api.data.read_many("todos", limit=None)
        return Layout(
            H1("Todos", cls="text-2xl font-bold"),
            TodoForm(),
            TodoList(todos.data),
            title="Todos",
        )

    @rt("/create-todo", methods=["post"])
    async def create_todo(request: Request):
        signals = await read_signals(request) or {}
        title = str(signals.get("title") or "").strip()
        if not title:
            return JSONResponse({"error": "Title is required"}, status_code=400)

        api = await bknd.get_api(request)
        created = await api.data.create_one("todos", {"title": title})
        total = await api.data.count("todos")

        async def patches():
            if total == 1:
                yield SSE.patch_elements(to_xml(TodoList([created.data])))
            else:
                yield SSE.patch_elements(to_xml(TodoItem(created.data)), selector="#todos", mode=ElementPatchMode.APPEND)
            yield SSE.patch_signals({"title": ""})

        return DatastarResponse(patches())

    @rt("/toggle-todo/{id}/{checked}", methods=["post"])
    async def toggle_todo(request: Request, id: str, checked: str):
        if checked not in CHECKED:
            return JSONResponse({"error": 'checked must be "true" or "false"'}, status_code=400)
        try:
            todo_id = int(id)
        except ValueError:
            return JSONResponse({"error": "A numeric todo id is required"}, status_code=400)

        api = await bknd.get_api(request)
        try:
            updated = await api.data.update_one("todos", todo_id, {"done": CHECKED[checked]})
        except RecordNotFoundError as e:
            return JSONResponse({"error": str(e)}, status_code=404)
        logger.info(f"Todo {todo_id} done={CHECKED[checked]}")

        async def patches():
            yield SSE.patch_elements(to_xml(TodoItem(updated.data)))

        return DatastarResponse(patches())

    return app


app = create_app()

if __name__ == "__main__":
    serve(appname="examples.todo.main", port=3000)
