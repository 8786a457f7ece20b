from django.contrib import admin

from .models import PrintOrder


@admin.register(PrintOrder)
class PrintOrderAdmin(admin.ModelAdmin):
    list_display = ["file_name", "user", "merchant", "copies", "status", "created_at", "updated_at"]
    list_filter = ["status", "merchant"]
    search_fields = ["file_name", "user__email", "merchant__shop_name"]
    readonly_fields = ["created_at", "updated_at"]
    list_select_related = ["user", "merchant"]
    date_hierarchy = "created_at"
