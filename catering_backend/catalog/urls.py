# catalog/urls.py

from django.urls import path

from catalog.views import CustomerListView, MenuListView

app_name = "catalog"

urlpatterns = [
    path("menus/", MenuListView.as_view(), name="menu-list"),
    path("customers/", CustomerListView.as_view(), name="customer-list"),
]
