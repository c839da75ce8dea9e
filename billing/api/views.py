from io import BytesIO
from typing import Optional

from django.http import FileResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.rendering import build_invoice_document
from billing.services import AuthService, ClientService, InvoiceService, PDFService, ProfileService

from .serializers import (
    AuthResponseSerializer,
    ClientSerializer,
    DeleteAllResponseSerializer,
    ForgotPasswordSerializer,
    InvoiceSerializer,
    LoginSerializer,
    MessageSerializer,
    NextNumberSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    UserSerializer,
)

INVOICE_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Invoice ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)

CLIENT_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Client ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)


def _auth_payload(user, token: str) -> dict:
    return {"user": UserSerializer(user).data, "token": token}


# ------------------------------
# Auth
# ------------------------------
class PublicAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]


class RegisterView(PublicAPIView):
    @extend_schema(
        summary="Register",
        request=RegisterSerializer,
        responses={201: AuthResponseSerializer},
    )
    def post(self, request: Request) -> Response:
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user, token = AuthService.register(data["email"], data["password"], data.get("companyProfile"))
        return Response(_auth_payload(user, token), status=status.HTTP_201_CREATED)


class LoginView(PublicAPIView):
    @extend_schema(
        summary="Log in",
        request=LoginSerializer,
        responses={200: AuthResponseSerializer},
    )
    def post(self, request: Request) -> Response:
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, token = AuthService.login(serializer.validated_data["email"], serializer.validated_data["password"])
        return Response(_auth_payload(user, token))


class ForgotPasswordView(PublicAPIView):
    @extend_schema(
        summary="Request password reset",
        description="Emails a single-use reset link valid for one hour.",
        request=ForgotPasswordSerializer,
        responses={200: MessageSerializer},
    )
    def post(self, request: Request) -> Response:
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        AuthService.request_password_reset(
            serializer.validated_data["email"],
            origin=request.headers.get("Origin"),
        )
        return Response({"message": "Password reset link sent to your email."})


class ResetPasswordView(PublicAPIView):
    @extend_schema(
        summary="Complete password reset",
        request=ResetPasswordSerializer,
        responses={200: MessageSerializer},
    )
    def post(self, request: Request) -> Response:
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        AuthService.complete_password_reset(
            serializer.validated_data["token"],
            serializer.validated_data["password"],
        )
        return Response({"message": "Password has been reset"})


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get profile", responses={200: UserSerializer})
    def get(self, request: Request) -> Response:
        ProfileService.get_profile(request.user)
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Replace company profile",
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
    )
    def put(self, request: Request) -> Response:
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ProfileService.update_company_profile(request.user, serializer.validated_data["companyProfile"])
        request.user.refresh_from_db()
        return Response(UserSerializer(request.user).data)


# ------------------------------
# Client ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(summary="List clients", description="Clients of the authenticated user, by name."),
    create=extend_schema(summary="Create client"),
    update=extend_schema(summary="Update client", parameters=[CLIENT_ID_PARAM]),
)
class ClientViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = ClientSerializer
    lookup_value_regex = r"\d+"

    def list(self, request: Request) -> Response:
        clients = ClientService.list_clients(request.user)
        return Response(ClientSerializer(clients, many=True).data)

    def create(self, request: Request) -> Response:
        serializer = ClientSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = ClientService.create_client(request.user, serializer.validated_data)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: Optional[int] = None) -> Response:
        serializer = ClientSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        client = ClientService.update_client(request.user, int(pk), serializer.validated_data)
        return Response(ClientSerializer(client).data)


# ------------------------------
# Invoice ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(
        summary="List invoices",
        description="Invoices of the authenticated user, newest first.",
        parameters=[
            OpenApiParameter(
                name="search",
                description="Case-insensitive match on invoice number or customer name",
                required=False,
                type=str,
            ),
        ],
    ),
    retrieve=extend_schema(summary="Get invoice", parameters=[INVOICE_ID_PARAM]),
    create=extend_schema(summary="Create invoice", description="Creates the invoice and upserts its client."),
    update=extend_schema(
        summary="Replace invoice",
        description="Full replace including line items; an omitted status keeps the stored one.",
        parameters=[INVOICE_ID_PARAM],
    ),
    destroy=extend_schema(summary="Delete invoice", parameters=[INVOICE_ID_PARAM], responses={200: MessageSerializer}),
)
class InvoiceViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = InvoiceSerializer
    lookup_value_regex = r"\d+"

    def list(self, request: Request) -> Response:
        invoices = InvoiceService.list_invoices(request.user, request.query_params.get("search"))
        return Response(InvoiceSerializer(invoices, many=True).data)

    def create(self, request: Request) -> Response:
        serializer = InvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = InvoiceService.create_invoice(request.user, serializer.validated_data)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: Optional[int] = None) -> Response:
        invoice = InvoiceService.get_invoice(request.user, int(pk))
        return Response(InvoiceSerializer(invoice).data)

    def update(self, request: Request, pk: Optional[int] = None) -> Response:
        serializer = InvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = InvoiceService.update_invoice(request.user, int(pk), serializer.validated_data)
        return Response(InvoiceSerializer(invoice).data)

    def destroy(self, request: Request, pk: Optional[int] = None) -> Response:
        InvoiceService.delete_invoice(request.user, int(pk))
        return Response({"message": "Invoice deleted successfully"})

    @extend_schema(summary="Delete all invoices", responses={200: DeleteAllResponseSerializer})
    @action(detail=False, methods=["delete"], url_path="delete/all")
    def delete_all(self, request: Request) -> Response:
        deleted = InvoiceService.delete_all_invoices(request.user)
        return Response({"message": "All invoices deleted successfully", "deleted": deleted})

    @extend_schema(summary="Suggest the next invoice number", responses={200: NextNumberSerializer})
    @action(detail=False, methods=["get"], url_path="next-number")
    def next_number(self, request: Request) -> Response:
        return Response({"invoiceNumber": InvoiceService.next_invoice_number(request.user)})

    @extend_schema(
        summary="Download PDF",
        description="A4 PDF with the payment advice slip, rendered from the stored invoice.",
        responses={(200, "application/pdf"): OpenApiTypes.BINARY},
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["get"], url_path="download")
    def download(self, request: Request, pk: Optional[int] = None) -> FileResponse:
        invoice = InvoiceService.get_invoice(request.user, int(pk))
        pdf_bytes = PDFService.generate_pdf_bytes(invoice)
        return FileResponse(
            BytesIO(pdf_bytes),
            as_attachment=True,
            filename=PDFService.get_invoice_filename(invoice),
            content_type="application/pdf",
        )

    @extend_schema(
        summary="Invoice layout document",
        description="Structured layout consumed by the browser renderer.",
        responses={200: OpenApiTypes.OBJECT},
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["get"], url_path="document")
    def document(self, request: Request, pk: Optional[int] = None) -> Response:
        invoice = InvoiceService.get_invoice(request.user, int(pk))
        return Response(build_invoice_document(invoice).to_dict())
