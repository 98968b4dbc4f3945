from django.contrib import admin

from .models import Device, ScanLog


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = ['device_id', 'stars', 'last_active_date', 'created_at', 'updated_at']
    search_fields = ['device_id']
    ordering = ['-updated_at']
    # Balances move only through init/scan/claim so the ledger stays consistent
    readonly_fields = ['device_id', 'stars', 'last_active_date', 'created_at', 'updated_at']


@admin.register(ScanLog)
class ScanLogAdmin(admin.ModelAdmin):
    list_display = ['device_id', 'target_id', 'score', 'created_at']
    search_fields = ['device_id', 'target_id']
    date_hierarchy = 'created_at'
    readonly_fields = ['device_id', 'target_id', 'score', 'created_at']

    def has_add_permission(self, request):
        return False
