from django.apps import AppConfig


class TelegramVerificationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'telegram_verification'
    verbose_name = 'Telegram Verification'
