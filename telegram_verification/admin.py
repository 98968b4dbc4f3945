from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import OtpChallenge, TelegramBinding


@admin.register(TelegramBinding)
class TelegramBindingAdmin(admin.ModelAdmin):
    list_display = ['channel_user_id', 'phone', 'created_at', 'updated_at']
    search_fields = ['channel_user_id', 'phone']
    ordering = ['-updated_at']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(OtpChallenge)
class OtpChallengeAdmin(admin.ModelAdmin):
    list_display = ['phone', 'channel_user_id', 'status_badge', 'attempts', 'expires_at', 'updated_at']
    search_fields = ['phone', 'channel_user_id']
    ordering = ['-updated_at']
    readonly_fields = ['phone', 'channel_user_id', 'code_hash', 'expires_at', 'attempts', 'created_at', 'updated_at']

    def status_badge(self, obj: OtpChallenge):
        if obj.expires_at and obj.expires_at <= timezone.now():
            color, label = '#EF4444', 'EXPIRED'
        else:
            color, label = '#F59E0B', 'PENDING'
        return format_html(
            '<span style="background-color:{};color:#fff;padding:3px 8px;border-radius:10px;font-size:11px;font-weight:600;">{}</span>',
            color,
            label
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False
