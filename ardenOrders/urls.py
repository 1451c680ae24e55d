from django.urls import path

from ardenOrders.views.orders import bulk_status_view, dashboard_view, upload_orders_view

urlpatterns = [
    path("orders/import/", upload_orders_view, name="orders_import"),
    path("orders/bulk-status/", bulk_status_view, name="orders_bulk_status"),
    path("orders/dashboard/", dashboard_view, name="orders_dashboard"),
]
