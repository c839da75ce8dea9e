import datetime
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model

from billing.models import Client, Invoice, LineItem, UserProfile

DEFAULT_PASSWORD = "Sup3r-Secret!"


class UserProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = UserProfile

    company_name = "Northwind Consulting Pty Ltd"
    company_address = "130 University Drive\nCallaghan NSW 2308"
    company_phone = "(04) 5066 2270"
    company_email = "accounts@northwind.example"
    company_website = "northwind.example"
    bank_name = "Commonwealth Bank"
    account_name = "Northwind Consulting"
    account_number = "12345678"
    bsb = "062-000"
    abn = "96 678 973 085"


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.SelfAttribute("email")
    password = factory.django.Password(DEFAULT_PASSWORD)
    profile = factory.RelatedFactory(UserProfileFactory, factory_related_name="user")


class ClientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Client

    owner = factory.SubFactory(UserFactory)
    name = factory.Sequence(lambda n: f"Customer {n}")
    address = "1 George St\nSydney NSW 2000"
    email = factory.LazyAttribute(lambda o: f"{o.name.lower().replace(' ', '.')}@example.com")
    phone = "02 9000 0000"
    website = ""


class InvoiceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Invoice

    owner = factory.SubFactory(UserFactory)
    client = factory.SubFactory(ClientFactory, owner=factory.SelfAttribute("..owner"))
    invoice_number = factory.Sequence(lambda n: f"INV-{n + 1:03d}")
    invoice_date = datetime.date(2026, 1, 5)
    due_date = datetime.date(2026, 2, 4)
    reference = "PO-7781"
    company_details = factory.LazyAttribute(lambda o: o.owner.profile.company_profile)
    customer_details = factory.LazyAttribute(lambda o: o.client.as_details())
    payment_instructions = factory.LazyAttribute(
        lambda o: {
            "bankName": o.owner.profile.bank_name,
            "accountName": o.owner.profile.account_name,
            "accountNumber": o.owner.profile.account_number,
            "bsb": o.owner.profile.bsb,
        }
    )
    subtotal = Decimal("100.00")
    total_amount = Decimal("100.00")


class LineItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = LineItem

    invoice = factory.SubFactory(InvoiceFactory)
    description = "Consulting"
    quantity = Decimal("2")
    unit_price = Decimal("50.00")
    total = Decimal("100.00")
    sort_order = 0
