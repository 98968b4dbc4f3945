from django.contrib import admin

from .models import LedgerEntry, ReferralEvent


class ReadOnlyAdmin(admin.ModelAdmin):
    """Audit tables are append-only; rows are written by the ledger code."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ReferralEvent)
class ReferralEventAdmin(ReadOnlyAdmin):
    list_display = ['referrer', 'referee', 'code', 'reward', 'created_at']
    search_fields = ['referrer', 'referee', 'code']
    date_hierarchy = 'created_at'


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    list_display = ['identity', 'entry_type', 'amount', 'granted_after', 'claimed_after', 'device_id', 'created_at']
    list_filter = ['entry_type', 'created_at']
    search_fields = ['identity__phone', 'identity__username', 'device_id', 'reference']
    raw_id_fields = ['identity']
