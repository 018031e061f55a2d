"""Table, sorting, search and pagination components for index pages."""

import logging
from typing import Any, Callable, List, Sequence, Tuple

from fasthtml.common import *
from monsterui.all import *

from constants import TABLE_CLS
from utils.formatting import format_number
from utils.pagination import ListParams

logger = logging.getLogger(__name__)


# =============================================================================
# Cell renderers
# =============================================================================
def number_cell(val: Any) -> Div:
    if val is None:
        return Div("—", cls="text-right font-medium text-gray-500")
    try:
        return Div(format_number(float(val)), cls="text-right font-medium")
    except (ValueError, TypeError):
        return Div(str(val), cls="text-right font-medium")


def link_cell(text: str, href: str) -> A:
    return A(text or "(unnamed)", href=href, cls="text-red-700 hover:underline font-semibold")


def badge_cell(text: str, tone: str = "gray") -> Span:
    return Span(
        text,
        cls=f"inline-block px-2 py-1 text-xs bg-{tone}-100 text-{tone}-700 rounded-full font-medium",
    )


# =============================================================================
# Sorting, search and pagination
# =============================================================================
def SortHeader(label: str, field: str, params: ListParams, base_path: str) -> A:
    """Column header that toggles sort order for its field."""
    active = params.sort_by == field
    next_order = "asc" if active and params.descending else "desc"
    arrow = ""
    if active:
        arrow = " ▼" if params.descending else " ▲"
    query = params.query_string(sortBy=field, sortOrder=next_order, page=1)
    return A(f"{label}{arrow}", href=f"{base_path}?{query}", cls="hover:underline")


def SearchForm(params: ListParams, base_path: str, placeholder: str = "Search by name") -> Form:
    return Form(
        Input(type="hidden", name="sortBy", value=params.sort_by),
        Input(type="hidden", name="sortOrder", value=params.sort_order),
        Input(type="hidden", name="perPage", value=str(params.per_page)),
        Input(type="search", name="search", value=params.search, placeholder=placeholder, cls="uk-input w-64"),
        Button("Search", type="submit", cls=ButtonT.secondary),
        method="get",
        action=base_path,
        cls="flex gap-2 items-center mb-4",
    )


def Pagination(params: ListParams, total: int, base_path: str) -> Div:
    pages = params.total_pages(total)
    if pages <= 1:
        return Div(P(f"{total} total", cls="text-sm text-gray-500"), cls="mt-4")

    def page_link(label, page, disabled=False):
        if disabled:
            return Span(label, cls="px-3 py-1 text-gray-400")
        return A(label, href=f"{base_path}?{params.query_string(page=page)}", cls="px-3 py-1 hover:underline")

    return Div(
        page_link("← Previous", params.page - 1, disabled=params.page <= 1),
        Span(f"Page {params.page} of {pages} ({total} total)", cls="text-sm text-gray-600"),
        page_link("Next →", params.page + 1, disabled=params.page >= pages),
        cls="flex items-center justify-between mt-4",
    )


# =============================================================================
# Data table
# =============================================================================
Column = Tuple[Any, Callable[[dict], Any]]


def DataTable(columns: Sequence[Column], rows: List[dict], empty_message: str = "Nothing here yet.") -> Div:
    """
    Render rows as a table.

    Args:
        columns: (header, render) pairs; header is a string or an FT
            component (e.g. a SortHeader), render maps a row to a cell.
        rows: Row dicts
        empty_message: Shown instead of the table when rows is empty
    """
    if not rows:
        return Div(P(empty_message, cls="text-gray-500"), cls="p-6 bg-gray-50 rounded-lg text-center")
    return Div(
        Table(
            Thead(Tr(*[Th(header) for header, _ in columns])),
            Tbody(*[Tr(*[Td(render(row)) for _, render in columns]) for row in rows]),
            cls=(TableT.hover, TableT.divider, TABLE_CLS),
        ),
        cls="overflow-x-auto",
    )
