from django.urls import include, path, re_path
from drf_spectacular.views import SpectacularAPIView

from billing import views

handler404 = "billing.views.path_not_found"
handler500 = "billing.views.server_error"

urlpatterns = [
    path("", views.index, name="index"),
    path("api/schema", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/", include("billing.api.urls")),
    # Must stay last; unmatched paths get the JSON 404 even with DEBUG on
    re_path(r"^.*$", views.path_not_found, name="path-not-found"),
]
