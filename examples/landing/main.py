"""
Landing page

A static page with no backend. Run with `python -m examples.landing.main`.
"""

from fasthtml.common import *
from monsterui.all import *

from starbknd.ui import Layout, app_headers


def create_app(config=None):
    app, rt = fast_app(htmx=False, pico=False, hdrs=app_headers())

    @rt("/")
    def index():
        return Layout(H1("Hello!", cls="text-3xl font-bold"))

    return app


app = create_app()

if __name__ == "__main__":
    serve(appname="examples.landing.main", port=3000)
