"""
Invoice rendering.

One layout description (``build_invoice_document``) feeds two backends: the
server HTML/PDF pipeline and the browser renderer served as JSON.
"""

from .formatting import format_currency, format_date
from .html import render_invoice_html
from .layout import (
    InvoiceDocument,
    Rect,
    build_invoice_document,
    link_region,
    page_height_mm,
)

__all__ = [
    "InvoiceDocument",
    "Rect",
    "build_invoice_document",
    "format_currency",
    "format_date",
    "link_region",
    "page_height_mm",
    "render_invoice_html",
]
