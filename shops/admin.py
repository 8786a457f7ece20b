"""
Merchant admin with the orders sent to each shop inline (read-only).
"""
from django.contrib import admin

from orders.models import PrintOrder

from .models import Merchant


class PrintOrderInline(admin.TabularInline):
    model = PrintOrder
    extra = 0
    fields = ["file_name", "copies", "status", "created_at"]
    readonly_fields = ["file_name", "copies", "status", "created_at"]
    show_change_link = True
    can_delete = False
    verbose_name_plural = "Orders"


@admin.register(Merchant)
class MerchantAdmin(admin.ModelAdmin):
    list_display = ["shop_name", "user", "location", "is_active", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["shop_name", "location", "user__email"]
    readonly_fields = ["created_at"]
    inlines = [PrintOrderInline]

    def get_readonly_fields(self, request, obj=None):
        # Owner is fixed once the shop exists.
        if obj is not None:
            return [*self.readonly_fields, "user"]
        return self.readonly_fields
