"""
PDF Service - server-side invoice rendering.

Responsibilities:
- Build the invoice layout description
- Render it to HTML and rasterize to an A4 PDF with WeasyPrint
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from weasyprint import HTML

from billing.rendering import build_invoice_document, render_invoice_html

if TYPE_CHECKING:
    from billing.models import Invoice

logger = logging.getLogger(__name__)


class PDFService:
    """Handles PDF generation; output is rebuilt from the stored invoice on every call."""

    @staticmethod
    def render_html(invoice: "Invoice") -> str:
        return render_invoice_html(build_invoice_document(invoice))

    @staticmethod
    def generate_pdf_bytes(invoice: "Invoice") -> bytes:
        """
        Generate PDF bytes for an invoice.

        Args:
            invoice: The invoice to generate a PDF for

        Returns:
            PDF file content as bytes
        """
        html_string = PDFService.render_html(invoice)
        try:
            pdf_bytes = HTML(string=html_string).write_pdf()
        except Exception as e:
            logger.error(f"PDF generation failed for invoice {invoice.id}: {e}")
            raise
        logger.info(f"Generated PDF for invoice {invoice.id}")
        return pdf_bytes

    @staticmethod
    def get_invoice_filename(invoice: "Invoice") -> str:
        return f"Invoice-{invoice.invoice_number}.pdf"
