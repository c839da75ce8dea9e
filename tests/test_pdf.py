from unittest.mock import patch

import pytest

from billing.services import PDFService

from .factories import InvoiceFactory, LineItemFactory

FAKE_PDF = b"%PDF-1.7 fake"


@pytest.fixture
def invoice(user):
    invoice = InvoiceFactory(owner=user, invoice_number="INV-314")
    LineItemFactory(invoice=invoice, description="Quarterly retainer")
    return invoice


@pytest.mark.django_db
class TestInvoiceDownload:
    def test_download_streams_pdf_attachment(self, auth_client, invoice):
        with patch("billing.services.pdf_service.HTML") as mock_html:
            mock_html.return_value.write_pdf.return_value = FAKE_PDF
            response = auth_client.get(f"/api/invoices/{invoice.id}/download")

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert "attachment" in response["Content-Disposition"]
        assert "Invoice-INV-314.pdf" in response["Content-Disposition"]
        assert b"".join(response.streaming_content) == FAKE_PDF

        html = mock_html.call_args.kwargs["string"]
        assert "INV-314" in html
        assert "Quarterly retainer" in html
        assert "PAYMENT ADVICE" in html

    def test_renderer_failure_is_a_500_with_the_message(self, auth_client, invoice):
        with patch("billing.services.pdf_service.HTML") as mock_html:
            mock_html.return_value.write_pdf.side_effect = RuntimeError("Font cache unavailable")
            response = auth_client.get(f"/api/invoices/{invoice.id}/download")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == {"code": "INTERNAL_ERROR", "message": "Font cache unavailable"}
        assert "stack" not in body

    def test_download_requires_token(self, api_client, invoice):
        assert api_client.get(f"/api/invoices/{invoice.id}/download").status_code == 401

    def test_filename(self, invoice):
        assert PDFService.get_invoice_filename(invoice) == "Invoice-INV-314.pdf"


@pytest.mark.django_db
class TestInvoiceLayoutDocument:
    def test_document_endpoint(self, auth_client, invoice):
        response = auth_client.get(f"/api/invoices/{invoice.id}/document")

        assert response.status_code == 200
        body = response.json()
        assert body["invoiceNumber"] == "INV-314"
        assert body["items"][0]["description"] == "Quarterly retainer"
        assert body["geometry"]["layoutWidthPx"] == 896
        assert "client_reference_id=INV-314" in body["payment"]["linkUrl"]
