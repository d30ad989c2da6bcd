"""
Admin pages

A read-only view of the schema and its records rendered with FastHTML
components.
"""

from typing import Any, Dict, List

from fasthtml.common import A, Body, H1, H2, Head, Html, Li, Link, Main, Meta, Nav, P, Span, Table, Tbody, Td, Th, Thead, Title, Tr, Ul, to_xml

from .config import AdminOptions
from .data import DataResponse


def _page(title: str, options: AdminOptions, *content) -> str:
    page = Html(
        Head(
            Meta(charset="utf-8"),
            Meta(name="viewport", content="width=device-width, initial-scale=1"),
            Title(f"{title} | Admin"),
            Link(rel="stylesheet", href="/assets/admin.css"),
        ),
        Body(
            Nav(
                A("← Back to app", href=options.logo_return_path, cls="admin-return"),
                A("Entities", href=options.admin_basepath),
                cls="admin-nav",
            ),
            Main(H1(title), *content, cls="admin-main"),
        ),
        lang="en",
    )
    return "<!doctype html>\n" + to_xml(page)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def render_overview(counts: Dict[str, int], options: AdminOptions) -> str:
    if not counts:
        return _page("Entities", options, P("No entities configured.", cls="admin-empty"))
    items = [
        Li(
            A(name, href=f"{options.admin_basepath}/data/{name}"),
            Span(f"{count} records", cls="admin-count"),
            id=f"entity-{name}",
        )
        for name, count in counts.items()
    ]
    return _page("Entities", options, Ul(*items, cls="admin-entities"))


def render_entity(entity: str, fields: List[str], result: DataResponse, options: AdminOptions) -> str:
    total = result.meta.get("total", len(result.data))
    if not result.data:
        body = P(f"No records in {entity} yet.", cls="admin-empty")
    else:
        body = Table(
            Thead(Tr(*[Th(f) for f in fields])),
            Tbody(*[Tr(*[Td(_cell(row.get(f))) for f in fields], id=f"{entity}-{row['id']}") for row in result.data]),
            cls="admin-table",
        )
    return _page(entity, options, H2(f"{total} records"), body)
