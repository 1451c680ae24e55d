"""
URL configuration for core project.

The admin hosts the order, customer and import log screens; the app adds
the upload and bulk status endpoints.
"""
from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("ardenOrders.urls")),
    path("", RedirectView.as_view(pattern_name="admin:ardenOrders_order_changelist", permanent=False)),
]
