import json

from fasthtml.common import *
from monsterui.all import *

from starbknd.ui import Trash
from starbknd.utils import format_date

EMPTY_MESSAGE = "No posts yet. Be the first to share something!"


def PostItem(post_id, content: str, created_at=None, url: str = None, show_delete_button: bool = False):
    delete = f"if(confirm('Are you sure you want to delete this post?')) {{ @delete('/delete-post/{post_id}') }}"
    return Li(
        Div(
            A(url, href=url, target="_blank", cls="text-xs text-muted-foreground") if url else None,
            Div(
                P(content, cls="text-sm leading-relaxed flex-1"),
                Button(
                    Trash(),
                    {"data-on:click": delete},
                    cls=ButtonT.icon + " text-muted-foreground",
                    type="button",
                    aria_label="Delete post",
                ) if show_delete_button else None,
                cls="flex items-start justify-between gap-2",
            ),
            Time(format_date(created_at), cls="text-xs text-muted-foreground") if created_at else None,
            cls="flex flex-col gap-2",
        ),
        id=f"post-{post_id}",
        cls="card p-4 border rounded-lg relative",
    )


def post_item(post: dict, show_delete_button: bool = True):
    return PostItem(
        post["id"],
        post["content"],
        created_at=post.get("created_at"),
        url=post.get("url"),
        show_delete_button=show_delete_button,
    )


def EmptyPosts():
    return Ul(
        Li(EMPTY_MESSAGE, id="posts-empty", cls="text-sm text-muted-foreground text-center p-6"),
        id="posts",
        cls="space-y-3",
    )


def PostList(posts: list, show_delete_button: bool = True):
    if not posts:
        return EmptyPosts()
    return Ul(*[post_item(p, show_delete_button) for p in posts], id="posts", cls="space-y-3")


def PostForm():
    return Form(
        {"data-signals": json.dumps({"content": "", "url": ""}),
         "data-on:submit": "@post('/create-post')"},
        TextArea(placeholder="What's happening?", rows=3, data_bind="content", name="content"),
        Input(placeholder="Link (optional)", data_bind="url", name="url"),
        DivRAligned(Button("Post", type="submit", cls=ButtonT.primary)),
        cls="space-y-3",
    )
