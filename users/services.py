"""
Account flows: registration, login, password reset and profile.

Registration and reset are gated by a Telegram-delivered OTP; login hands
out a stateless session token that the rewards API accepts as a bearer.
"""
import logging

from django.db import IntegrityError
from django.utils import timezone

from config import errors
from config.db import atomic_unit
from rewards.ledger import generate_referral_code, issue_welcome_bonus, redeem_referral
from telegram_verification.otp import verify_otp
from .jwt import mint_session_token, phone_from_token
from .models import Identity
from .phone_utils import mask_phone, require_phone
from .validators import require_password, require_username

logger = logging.getLogger(__name__)

REGISTER_ATTEMPTS = 3


def _require_otp(otp):
    otp = str(otp or '').strip()
    if not otp:
        raise errors.ValidationError('Verification code is required', code='INVALID_INPUT')
    return otp


def _ensure_referral_code(identity):
    if identity.referral_code:
        return identity.referral_code
    code = generate_referral_code()
    updated = Identity.objects.filter(pk=identity.pk, referral_code__isnull=True).update(
        referral_code=code, updated_at=timezone.now()
    )
    if updated:
        identity.referral_code = code
    else:
        identity.refresh_from_db(fields=['referral_code'])
    return identity.referral_code


def _username_taken(username, phone):
    return Identity.objects.filter(username__iexact=username).exclude(phone=phone).exists()


def _phone_verified(phone):
    return Identity.objects.filter(phone=phone, verified=True).exists()


def _complete_registration(phone, username, password, ref_code):
    with atomic_unit('register'):
        identity = Identity.objects.select_for_update().filter(phone=phone).first()
        if identity is None:
            identity = Identity(phone=phone)
        elif identity.verified:
            raise errors.ConflictError('Account already registered. Please login.', code='ALREADY_VERIFIED')

        identity.username = username
        identity.set_password(password)
        identity.verified = True
        if not identity.referral_code:
            identity.referral_code = generate_referral_code()
        if identity.pk is None:
            identity.save()
        else:
            identity.save(update_fields=['username', 'password', 'verified', 'referral_code', 'updated_at'])

        if ref_code:
            referrer_phone = redeem_referral(phone, ref_code)
            if referrer_phone:
                Identity.objects.filter(pk=identity.pk).update(referred_by=referrer_phone)

        issue_welcome_bonus(identity)
    return identity


def register(phone, username, password, otp, ref_code=None):
    """
    Create (or complete) the identity for ``phone``.

    Order matters: input validation and the conflict checks run before the
    OTP is consumed, so a taken username does not burn the code. A
    uniqueness violation after that is classified again: a lost username or
    phone race is reported as such, and a referral code collision is
    retried with a fresh code, since the OTP is already spent.
    """
    phone = require_phone(phone)
    username = require_username(username)
    require_password(password)
    otp = _require_otp(otp)

    if _username_taken(username, phone):
        raise errors.ConflictError('Username already taken', code='USERNAME_TAKEN')
    if _phone_verified(phone):
        raise errors.ConflictError('Account already registered. Please login.', code='ALREADY_VERIFIED')

    verify_otp(phone, otp)

    for attempt in range(1, REGISTER_ATTEMPTS + 1):
        try:
            identity = _complete_registration(phone, username, password, ref_code)
            break
        except IntegrityError:
            if _username_taken(username, phone):
                logger.info("Registration for %s lost the username race", mask_phone(phone))
                raise errors.ConflictError('Username already taken', code='USERNAME_TAKEN')
            if _phone_verified(phone):
                logger.info("Registration for %s lost the phone race", mask_phone(phone))
                raise errors.ConflictError('Account already registered. Please login.', code='ALREADY_VERIFIED')
            logger.warning("Referral code collision registering %s (attempt %s)", mask_phone(phone), attempt)
    else:
        raise errors.TransactionAbort('Registration could not be completed, please retry')

    logger.info("Registered %s as %s", mask_phone(phone), username)
    return {
        'phone': phone,
        'username': username,
        'referral_code': identity.referral_code,
    }


def login(username, password):
    username = str(username or '').strip()
    if not username or not password:
        raise errors.ValidationError('Username and password are required', code='INVALID_INPUT')

    identity = Identity.objects.filter(username__iexact=username).first()
    if identity is None:
        raise errors.NotFoundError('User not found', code='USER_NOT_FOUND')
    if not identity.verified:
        raise errors.AuthError('Account not verified', code='NOT_VERIFIED')
    if identity.is_banned:
        raise errors.AuthError('Account suspended', code='ACCOUNT_BANNED')
    if not identity.check_password(password):
        logger.info("Wrong password for %s", identity.username)
        raise errors.AuthError('Wrong password', code='WRONG_PASSWORD')

    _ensure_referral_code(identity)
    token = mint_session_token({'phone': identity.phone, 'username': identity.username})
    return {
        'token': token,
        'phone': identity.phone,
        'username': identity.username,
        'referral_code': identity.referral_code,
        'granted_total': identity.granted_total,
        'bonus_granted': identity.bonus_granted,
    }


def reset_password(phone, new_password, otp):
    phone = require_phone(phone)
    require_password(new_password)
    otp = _require_otp(otp)

    identity = Identity.objects.filter(phone=phone).first()
    if identity is None:
        raise errors.NotFoundError('User not found', code='USER_NOT_FOUND')

    verify_otp(phone, otp)

    identity.set_password(new_password)
    identity.save(update_fields=['password', 'updated_at'])
    logger.info("Password reset for %s", mask_phone(phone))
    return {'username': identity.username}


def identity_for_token(token):
    """Resolve a session token (raw or bearer header) to its Identity."""
    phone = phone_from_token(token)
    identity = Identity.objects.filter(phone=phone).first()
    if identity is None:
        raise errors.NotFoundError('User not found', code='USER_NOT_FOUND')
    return identity


def get_profile(token):
    identity = identity_for_token(token)
    return {
        'username': identity.username,
        'phone': identity.phone,
        'referral_code': identity.referral_code,
        'referral_count': identity.referral_count,
        'pending': identity.pending,
        'claimed_total': identity.claimed_total,
    }
