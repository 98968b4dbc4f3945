from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Identity


@admin.register(Identity)
class IdentityAdmin(admin.ModelAdmin):
    list_display = ('username', 'phone', 'verified_display', 'is_banned', 'referral_code', 'referral_count', 'granted_total', 'claimed_total', 'pending_display', 'created_at')
    list_filter = ('verified', 'is_banned', 'created_at')
    search_fields = ('username', 'phone', 'referral_code', 'referred_by')
    # Ledger values only move through the rewards ledger and the claim transaction
    readonly_fields = ('password', 'referral_count', 'granted_total', 'claimed_total', 'last_claim_device_id', 'last_claimed_at', 'created_at', 'updated_at')
    actions = ('ban_selected', 'unban_selected')

    fieldsets = (
        ('Basic Information', {
            'fields': ('phone', 'username', 'password', 'verified', 'is_banned')
        }),
        ('Referrals', {
            'fields': ('referral_code', 'referred_by', 'referral_count')
        }),
        ('Stars', {
            'fields': ('granted_total', 'claimed_total', 'last_claim_device_id', 'last_claimed_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def verified_display(self, obj):
        color = 'green' if obj.verified else 'gray'
        label = 'Verified' if obj.verified else 'Unverified'
        return format_html('<span style="color: {};">{}</span>', color, label)
    verified_display.short_description = "Status"

    def pending_display(self, obj):
        return obj.pending
    pending_display.short_description = "Pending"

    def ban_selected(self, request, queryset):
        count = queryset.update(is_banned=True)
        self.message_user(request, f"Banned {count} account(s)", messages.SUCCESS)
    ban_selected.short_description = "Ban selected accounts"

    def unban_selected(self, request, queryset):
        count = queryset.update(is_banned=False)
        self.message_user(request, f"Unbanned {count} account(s)", messages.SUCCESS)
    unban_selected.short_description = "Unban selected accounts"
