"""API URL routing for InvoiceDesk."""
from django.urls import path
from rest_framework.routers import SimpleRouter

from .views import (
    ClientViewSet,
    ForgotPasswordView,
    InvoiceViewSet,
    LoginView,
    ProfileView,
    RegisterView,
    ResetPasswordView,
)

router = SimpleRouter(trailing_slash=False)
router.register(r"clients", ClientViewSet, basename="api-clients")
router.register(r"invoices", InvoiceViewSet, basename="api-invoices")

urlpatterns = [
    path("auth/register", RegisterView.as_view(), name="auth-register"),
    path("auth/login", LoginView.as_view(), name="auth-login"),
    path("auth/forgot-password", ForgotPasswordView.as_view(), name="auth-forgot-password"),
    path("auth/reset-password", ResetPasswordView.as_view(), name="auth-reset-password"),
    path("auth/profile", ProfileView.as_view(), name="auth-profile"),
] + router.urls
