"""
Register the bot webhook with Telegram, including the shared secret token.

Usage:
    python manage.py set_telegram_webhook https://stars.example.com/telegram/webhook/
"""
from django.core.management.base import BaseCommand, CommandError

from telegram_verification.telegram_bot import TelegramBotError, set_webhook


class Command(BaseCommand):
    help = 'Register the Telegram webhook URL with TELEGRAM_WEBHOOK_SECRET as its secret token'

    def add_arguments(self, parser):
        parser.add_argument('url', help='Public HTTPS URL of /telegram/webhook/')

    def handle(self, *args, **options):
        try:
            set_webhook(options['url'])
        except TelegramBotError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"Webhook set to {options['url']}"))
