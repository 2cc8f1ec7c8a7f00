# catalog/views.py

"""
CATALOG READ ENDPOINTS

Purpose:
- Menu grid for the PoS terminal (active items only, searchable)
- Customer picker

Both are read-only; menus and customers are maintained through the admin.
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics
from rest_framework.permissions import IsAuthenticated

from catalog.models import Customer, MenuItem
from catalog.serializers import CustomerSerializer, MenuItemSerializer
from permissions.roles import CAP_POS_VIEW, HasCapability


class MenuListView(generics.ListAPIView):
    """
    GET /api/catalog/menus/?search=<text>&unit=<unit>
    """

    serializer_class = MenuItemSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_VIEW

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["unit"]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price"]
    ordering = ["name"]

    def get_queryset(self):
        return MenuItem.objects.filter(is_active=True)


class CustomerListView(generics.ListAPIView):
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_VIEW

    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["type"]
    search_fields = ["name", "phone", "email", "company_name"]

    def get_queryset(self):
        return Customer.objects.filter(is_active=True).order_by("name")
