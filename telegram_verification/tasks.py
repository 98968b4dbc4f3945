"""
Celery tasks for OTP delivery and housekeeping
"""
from celery import shared_task
from django.db import connection
from functools import wraps
import logging

from .telegram_bot import TelegramBotError, send_message

logger = logging.getLogger(__name__)

OTP_MESSAGE = (
    "🔐 *Stars OTP*\n\n"
    "Your code: *{code}*\n"
    "Valid for: *{minutes} minutes*\n\n"
    "If this wasn't you, ignore this message."
)


def ensure_db_connection_closed(func):
    """Decorator to ensure database connections are properly closed after task execution"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        finally:
            connection.close()
    return wrapper


@shared_task(name='telegram_verification.deliver_otp_message')
def deliver_otp_message(channel_user_id, code, ttl_seconds):
    """Send the plaintext code to the bound Telegram user. Failures are logged only."""
    text = OTP_MESSAGE.format(code=code, minutes=max(int(ttl_seconds) // 60, 1))
    try:
        send_message(channel_user_id, text)
    except TelegramBotError as e:
        logger.error("OTP delivery to channel user %s failed: %s", channel_user_id, e)
        return False
    return True


@shared_task(name='telegram_verification.cleanup_expired_otp_challenges')
@ensure_db_connection_closed
def cleanup_expired_otp_challenges():
    """
    Delete OTP challenges whose expiry has passed.

    Scheduled every 10 minutes via CELERY_BEAT_SCHEDULE in settings.
    """
    from .otp import cleanup_expired_challenges

    deleted = cleanup_expired_challenges()
    if deleted:
        logger.info("Removed %s expired OTP challenges", deleted)
    return deleted
