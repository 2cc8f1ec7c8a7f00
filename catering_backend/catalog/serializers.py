# catalog/serializers.py

from rest_framework import serializers

from catalog.models import Customer, MenuItem


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = [
            "id",
            "name",
            "description",
            "sku",
            "unit",
            "price",
            "min_order",
            "is_active",
        ]
        read_only_fields = fields


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "type",
            "company_name",
            "is_active",
        ]
        read_only_fields = fields
