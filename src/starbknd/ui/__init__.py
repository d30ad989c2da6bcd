"""
Shared page pieces for the example apps.

Pages use FastHTML components styled by MonsterUI (FrankenUI) and datastar
for the interactive parts.
"""

from fasthtml.common import Main, Script, Title
from monsterui.all import Theme, UkIcon

DATASTAR_URL = "https://cdn.jsdelivr.net/gh/starfederation/datastar@1.0.0-RC.6/bundles/datastar.js"

datastar_script = Script(src=DATASTAR_URL, type="module")


def app_headers(theme=Theme.zinc):
    """Headers for `fast_app(hdrs=...)`."""
    return (theme.headers(), datastar_script)


def Layout(*children, title: str = "Home", head=(), cls: str = "container mx-auto max-w-2xl p-6 space-y-6"):
    """Page shell; FastHTML lifts the title and any extra head items into <head>."""
    return (Title(title), *head, Main(*children, cls=cls))


def Trash():
    return UkIcon("trash", height=16, width=16)


__all__ = ["DATASTAR_URL", "datastar_script", "app_headers", "Layout", "Trash"]
