from django.contrib import admin

from .models import Order, OrderItem, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'price', 'image_url')
    search_fields = ('id', 'name')
    ordering = ('id',)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ('product_id', 'product_name', 'quantity', 'unit_price', 'subtotal')
    readonly_fields = fields

    def subtotal(self, obj):
        return obj.subtotal
    subtotal.short_description = "Subtotal"

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Read-only view of the ledger; status changes go through OrderService."""

    list_display = ('id', 'customer_email', 'status', 'total_amount',
                   'payment_session_id', 'created_at', 'item_count')
    list_filter = ('status', 'created_at', 'updated_at')
    search_fields = ('id', 'customer_email', 'payment_session_id')
    readonly_fields = ('id', 'customer_email', 'status', 'total_amount',
                       'payment_session_id', 'created_at', 'updated_at', 'item_count')

    inlines = [OrderItemInline]

    fieldsets = (
        ('Order Information', {
            'fields': ('id', 'customer_email', 'status', 'total_amount')
        }),
        ('Payment', {
            'fields': ('payment_session_id',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    def item_count(self, obj):
        return obj.items.count()
    item_count.short_description = "Items"

    def has_add_permission(self, request):
        return False
