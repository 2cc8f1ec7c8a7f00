# gateway/urls.py

from django.urls import path

from gateway.views.charge import MidtransChargeView
from gateway.views.notification import MidtransNotificationView

app_name = "gateway"

urlpatterns = [
    path("midtrans/notification/", MidtransNotificationView.as_view(), name="midtrans-notification"),
    path("midtrans/charge/", MidtransChargeView.as_view(), name="midtrans-charge"),
]
