# catalog/admin.py

from django.contrib import admin

from catalog.models import Customer, MenuItem


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "unit", "price", "is_active", "updated_at")
    list_filter = ("unit", "is_active")
    search_fields = ("name", "description", "sku")
    ordering = ("name",)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "phone", "email", "is_active")
    list_filter = ("type", "is_active")
    search_fields = ("name", "phone", "email", "company_name")
    ordering = ("name",)
