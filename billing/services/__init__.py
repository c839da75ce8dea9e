"""
InvoiceDesk Services Layer

- Models: data + constraints
- Services: business logic, transactions, side effects
- API views: request parsing, auth, response mapping
"""

from .auth_service import AuthService, ProfileService
from .client_service import ClientService
from .email_service import EmailService
from .invoice_service import InvoiceService
from .pdf_service import PDFService

__all__ = [
    "AuthService",
    "ProfileService",
    "ClientService",
    "EmailService",
    "InvoiceService",
    "PDFService",
]
