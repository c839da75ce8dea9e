from decimal import Decimal

from rest_framework import serializers

from billing.models import COMPANY_PROFILE_FIELDS, Invoice
from billing.rendering.formatting import parse_date


def _text(**kwargs):
    kwargs.setdefault("required", False)
    kwargs.setdefault("allow_blank", True)
    kwargs.setdefault("allow_null", True)
    return serializers.CharField(**kwargs)


# Bounds of the money and quantity columns
MAX_DIGITS = 15
MONEY_PLACES = 2
QUANTITY_PLACES = 4
MAX_AMOUNT = Decimal(10) ** (MAX_DIGITS - MONEY_PLACES)


def _money(**kwargs):
    return serializers.DecimalField(max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES, **kwargs)


def _quantity(**kwargs):
    return serializers.DecimalField(max_digits=MAX_DIGITS, decimal_places=QUANTITY_PLACES, **kwargs)


class LenientDateField(serializers.DateField):
    """Accepts plain ISO dates as well as full timestamps sent by browsers."""

    def to_internal_value(self, value):
        try:
            return super().to_internal_value(value)
        except serializers.ValidationError:
            parsed = parse_date(value) if isinstance(value, str) else None
            if parsed is None:
                raise
            return parsed


# ------------------------------
# Auth
# ------------------------------
class CompanyProfileSerializer(serializers.Serializer):
    name = _text(max_length=255)
    address = _text()
    phone = _text(max_length=50)
    email = _text(max_length=254)
    website = _text(max_length=255)
    bankName = _text(max_length=100)
    accountName = _text(max_length=255)
    accountNumber = _text(max_length=50)
    bsb = _text(max_length=20)
    abn = _text(max_length=20)
    acn = _text(max_length=20)

    def to_representation(self, profile):
        return {key: getattr(profile, attr) for key, attr in COMPANY_PROFILE_FIELDS.items()}


class UserSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    companyProfile = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    def get_companyProfile(self, user) -> dict:
        profile = getattr(user, "profile", None)
        if profile is None:
            return {key: "" for key in COMPANY_PROFILE_FIELDS}
        return profile.company_profile


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    companyProfile = CompanyProfileSerializer(required=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class AuthResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    token = serializers.CharField()


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ProfileUpdateSerializer(serializers.Serializer):
    companyProfile = CompanyProfileSerializer()


class MessageSerializer(serializers.Serializer):
    message = serializers.CharField()


# ------------------------------
# Clients
# ------------------------------
class ClientSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(max_length=255)
    address = _text()
    email = _text(max_length=254)
    phone = _text(max_length=50)
    website = _text(max_length=255)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)


# ------------------------------
# Invoices
# ------------------------------
class CustomerDetailsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    address = _text()
    email = _text(max_length=254)
    phone = _text(max_length=50)
    website = _text(max_length=255)


class LineItemSerializer(serializers.Serializer):
    description = _text(max_length=500)
    quantity = _quantity(default=1)
    unitPrice = _money(source="unit_price", default=0)
    total = _money()


class InvoiceSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    invoiceNumber = serializers.CharField(source="invoice_number", max_length=50)
    invoiceDate = LenientDateField(source="invoice_date", required=False)
    dueDate = LenientDateField(source="due_date")
    reference = serializers.CharField(allow_blank=True, max_length=255, default="")
    companyDetails = serializers.JSONField(source="company_details", default=dict)
    customerDetails = CustomerDetailsSerializer(source="customer_details")
    items = LineItemSerializer(many=True, allow_empty=False)
    paymentInstructions = serializers.JSONField(source="payment_instructions", default=dict)
    currency = serializers.CharField(max_length=3, default="AUD")
    status = serializers.ChoiceField(choices=Invoice.Status.choices, required=False)
    subtotal = _money(read_only=True)
    totalAmount = _money(source="total_amount", read_only=True)
    client = ClientSerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    def validate_companyDetails(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object.")
        return value

    def validate_paymentInstructions(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object.")
        return value

    def validate(self, attrs):
        subtotal = sum((item["total"] for item in attrs.get("items", [])), Decimal("0"))
        if abs(subtotal) >= MAX_AMOUNT:
            raise serializers.ValidationError({"items": "Invoice total exceeds the largest supported amount."})
        return attrs


class DeleteAllResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    deleted = serializers.IntegerField()


class NextNumberSerializer(serializers.Serializer):
    invoiceNumber = serializers.CharField()
