from __future__ import annotations

import secrets
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


COMPANY_PROFILE_FIELDS = {
    "name": "company_name",
    "address": "company_address",
    "phone": "company_phone",
    "email": "company_email",
    "website": "company_website",
    "bankName": "bank_name",
    "accountName": "account_name",
    "accountNumber": "account_number",
    "bsb": "bsb",
    "abn": "abn",
    "acn": "acn",
}


class UserProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")

    # Company profile (printed on invoices)
    company_name = models.CharField(max_length=255, blank=True)
    company_address = models.TextField(blank=True)
    company_phone = models.CharField(max_length=50, blank=True)
    company_email = models.CharField(max_length=254, blank=True)
    company_website = models.CharField(max_length=255, blank=True)

    # Banking
    bank_name = models.CharField(max_length=100, blank=True)
    account_name = models.CharField(max_length=255, blank=True)
    account_number = models.CharField(max_length=50, blank=True)
    bsb = models.CharField(max_length=20, blank=True)

    # Registration numbers
    abn = models.CharField(max_length=20, blank=True)
    acn = models.CharField(max_length=20, blank=True)

    reset_token = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    reset_token_expires = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.email}'s Profile"

    @property
    def company_profile(self) -> dict:
        return {key: getattr(self, attr) for key, attr in COMPANY_PROFILE_FIELDS.items()}

    def replace_company_profile(self, data: dict) -> None:
        """Overwrite every company field; keys missing from ``data`` become blank."""
        for key, attr in COMPANY_PROFILE_FIELDS.items():
            setattr(self, attr, data.get(key) or "")

    def issue_reset_token(self, hours: int = 1) -> str:
        self.reset_token = secrets.token_hex(20)
        self.reset_token_expires = timezone.now() + timedelta(hours=hours)
        self.save(update_fields=["reset_token", "reset_token_expires", "updated_at"])
        return self.reset_token

    def clear_reset_token(self):
        self.reset_token = None
        self.reset_token_expires = None
        self.save(update_fields=["reset_token", "reset_token_expires", "updated_at"])


class Client(models.Model):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="clients")
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    email = models.CharField(max_length=254, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    website = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    CONTACT_FIELDS = ("name", "address", "email", "phone", "website")

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["owner", "name"], name="unique_client_name_per_owner"),
        ]

    def __str__(self):
        return self.name

    def as_details(self) -> dict:
        return {field: getattr(self, field) for field in self.CONTACT_FIELDS}


class Invoice(models.Model):
    class Status(models.TextChoices):
        DRAFT = "Draft", "Draft"
        SENT = "Sent", "Sent"
        PAID = "Paid", "Paid"
        OVERDUE = "Overdue", "Overdue"

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="invoices")
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="invoices")
    invoice_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)

    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    reference = models.CharField(max_length=255, blank=True)

    # Point-in-time copies taken when the invoice is written
    company_details = models.JSONField(default=dict, blank=True)
    customer_details = models.JSONField(default=dict, blank=True)
    payment_instructions = models.JSONField(default=dict, blank=True)

    currency = models.CharField(max_length=3, default="AUD")
    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['owner', '-created_at'], name='invoice_owner_created_idx'),
            models.Index(fields=['owner', 'status'], name='invoice_owner_status_idx'),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.customer_details.get('name', '')}"


class LineItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=15, decimal_places=4, default=Decimal('1.0000'))
    unit_price = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    sort_order = models.IntegerField(default=0)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return self.description
