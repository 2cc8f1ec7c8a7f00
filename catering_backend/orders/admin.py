# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("menu", "quantity", "unit_price", "total")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer",
        "order_date",
        "status",
        "payment_type",
        "total",
        "paid_amount",
        "cashier",
    )
    list_filter = ("status", "payment_type")
    search_fields = ("order_number", "customer__name")
    readonly_fields = ("order_number", "subtotal", "tax", "total", "paid_amount", "register_session")
    inlines = [OrderItemInline]
