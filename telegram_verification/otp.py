"""
OTP challenge state machine.

A challenge is keyed by phone and stores only an HMAC of the code. It is
consumed exactly once: a successful verify deletes it, as does the first
verify after the attempt budget is spent. Wrong guesses increment the
attempt counter even though the call fails.
"""
import hashlib
import hmac
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from config import errors
from users.phone_utils import mask_phone, require_phone
from . import telegram_bot
from .binding import find_binding
from .models import OtpChallenge

logger = logging.getLogger(__name__)

EXHAUSTED = 'exhausted'
WRONG = 'wrong'
ACCEPTED = 'accepted'


def _hmac_code(phone: str, code: str) -> str:
    key = (getattr(settings, 'OTP_HASH_KEY', None) or settings.SECRET_KEY).encode()
    return hmac.new(key, f"{phone}:{code}".encode(), hashlib.sha256).hexdigest()


def _gen_code(n: int = 6) -> str:
    return f"{secrets.randbelow(10**n):0{n}d}"


def request_otp(raw_phone) -> dict:
    phone = require_phone(raw_phone)

    binding = find_binding(phone)
    if not binding:
        raise errors.NotFoundError(
            'Phone not found in Telegram verification. Join the group and share your contact with the bot.',
            code='NOT_BOUND',
        )
    if not telegram_bot.is_group_member(binding.channel_user_id):
        raise errors.AuthError('You must join the Telegram group first', code='NOT_MEMBER')

    ttl = getattr(settings, 'OTP_TTL_SECONDS', 180)
    code = _gen_code(getattr(settings, 'OTP_CODE_LENGTH', 6))
    OtpChallenge.objects.update_or_create(
        phone=phone,
        defaults={
            'channel_user_id': binding.channel_user_id,
            'code_hash': _hmac_code(phone, code),
            'expires_at': timezone.now() + timedelta(seconds=ttl),
            'attempts': 0,
        },
    )
    logger.info("OTP issued for %s (ttl=%ss)", mask_phone(phone), ttl)

    # Fire-and-forget: a delivery problem must not fail the request
    from .tasks import deliver_otp_message
    try:
        deliver_otp_message.delay(binding.channel_user_id, code, ttl)
    except Exception:
        logger.exception("Could not enqueue OTP delivery for %s", mask_phone(phone))

    return {'expires_in_seconds': ttl}


def verify_otp(phone: str, code) -> None:
    """Consume the challenge for ``phone`` or raise StateError.

    The outcome is decided and persisted inside the transaction; the error
    is raised after commit so the attempt counter survives a failure.
    """
    code = str(code or '').strip()
    max_attempts = getattr(settings, 'OTP_MAX_ATTEMPTS', 3)

    with transaction.atomic():
        challenge = OtpChallenge.objects.select_for_update().filter(phone=phone).first()
        if not challenge or challenge.expires_at <= timezone.now():
            outcome = None
        elif challenge.attempts >= max_attempts:
            challenge.delete()
            outcome = EXHAUSTED
        elif not hmac.compare_digest(challenge.code_hash, _hmac_code(phone, code)):
            OtpChallenge.objects.filter(pk=challenge.pk).update(attempts=F('attempts') + 1)
            outcome = WRONG
        else:
            challenge.delete()
            outcome = ACCEPTED

    if outcome is None:
        raise errors.StateError('OTP expired or invalid. Request a new code.', code='OTP_EXPIRED_OR_MISSING')
    if outcome == EXHAUSTED:
        logger.warning("OTP attempts exhausted for %s", mask_phone(phone))
        raise errors.StateError('Too many attempts. Request a new code.', code='OTP_TOO_MANY_ATTEMPTS')
    if outcome == WRONG:
        raise errors.StateError('Wrong OTP code', code='OTP_WRONG_CODE')
    logger.info("OTP accepted for %s", mask_phone(phone))


def cleanup_expired_challenges() -> int:
    deleted, _ = OtpChallenge.objects.filter(expires_at__lte=timezone.now()).delete()
    return deleted
