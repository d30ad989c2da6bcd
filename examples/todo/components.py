import json

from fasthtml.common import *
from monsterui.all import *


def TodoItem(todo: dict):
    todo_id = todo["id"]
    return Li(
        Label(
            CheckboxX(
                {"data-on:change": f"@post('/toggle-todo/{todo_id}/' + el.checked)"},
                checked=bool(todo.get("done")),
                id=f"todo-{todo_id}-done",
            ),
            Span(todo["title"], cls="line-through text-muted-foreground" if todo.get("done") else ""),
            cls="flex items-center gap-3",
        ),
        id=f"todo-{todo_id}",
        cls="p-3 border rounded-lg",
    )


def TodoList(todos: list):
    if not todos:
        return Ul(Li("Nothing to do.", cls="text-sm text-muted-foreground p-3"), id="todos", cls="space-y-2")
    return Ul(*[TodoItem(t) for t in todos], id="todos", cls="space-y-2")


def TodoForm():
    return Form(
        {"data-signals": json.dumps({"title": ""}),
         "data-on:submit": "@post('/create-todo')"},
        DivFullySpaced(
            Input(placeholder="What needs doing?", data_bind="title", name="title"),
            Button("Add", type="submit", cls=ButtonT.primary),
            cls="gap-2",
        ),
    )
