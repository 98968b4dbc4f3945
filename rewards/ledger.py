"""
Star credit ledger.

Each identity carries two monotone-ish counters: ``granted_total`` (fed by
the welcome bonus, referral rewards and operator adjustments) and the
``claimed_total`` watermark (advanced only by the claim transaction).
Every mutation here is a single database-side UPDATE (``F()`` expression or
absolute value) plus an audit row, inside one atomic unit, so concurrent
mutators never lose each other's increments.
"""
from __future__ import annotations

import logging
import secrets
from typing import Optional

from django.conf import settings
from django.db.models import F, Q
from django.utils import timezone

from config import errors
from config.db import atomic_unit
from users.models import Identity
from users.phone_utils import mask_phone, normalize_phone
from .models import LedgerEntry, ReferralEvent

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_MAX_TRIES = 20


def generate_referral_code() -> str:
    """Return a referral code not held by any identity yet."""
    for _ in range(REFERRAL_CODE_MAX_TRIES):
        code = ''.join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
        if not Identity.objects.filter(referral_code=code).exists():
            return code
    raise errors.ConflictError('Could not allocate a referral code', code='REFERRAL_CODE_EXHAUSTED')


def normalize_referral_code(code) -> Optional[str]:
    """Upper-cased code, or None when it cannot be a referral code."""
    code = str(code or '').strip().upper()
    if len(code) != REFERRAL_CODE_LENGTH or not set(code) <= set(REFERRAL_CODE_ALPHABET):
        return None
    return code


def _record(identity_pk, entry_type, amount, device_id='', reference='') -> LedgerEntry:
    granted, claimed = Identity.objects.filter(pk=identity_pk).values_list('granted_total', 'claimed_total').get()
    return LedgerEntry.objects.create(
        identity_id=identity_pk,
        entry_type=entry_type,
        amount=amount,
        granted_after=granted,
        claimed_after=claimed,
        device_id=device_id,
        reference=reference,
    )


def pending(identity: Identity) -> int:
    """granted_total - claimed_total. Not clamped; may be negative after a deduction."""
    return identity.granted_total - identity.claimed_total


def issue_welcome_bonus(identity: Identity) -> int:
    """Set granted_total to the welcome bonus. The one absolute write; the watermark is untouched."""
    bonus = getattr(settings, 'STARS_WELCOME_BONUS', 30)
    with atomic_unit('issue_welcome_bonus'):
        Identity.objects.filter(pk=identity.pk).update(granted_total=bonus, updated_at=timezone.now())
        _record(identity.pk, LedgerEntry.WELCOME, bonus, reference='registration')
    identity.refresh_from_db(fields=['granted_total', 'claimed_total'])
    logger.info("Welcome bonus of %s issued to %s", bonus, mask_phone(identity.phone))
    return identity.granted_total


def redeem_referral(referee_phone: str, code) -> Optional[str]:
    """
    Reward the owner of ``code`` for bringing in ``referee_phone``.

    Returns the referrer's phone, or None when the code is malformed,
    unknown, belongs to the referee, or the referee was already counted.
    Never raises for a bad code: registration must still succeed.
    """
    code = normalize_referral_code(code)
    if not code:
        return None

    referrer = Identity.objects.filter(referral_code=code).exclude(phone=referee_phone).first()
    if not referrer:
        logger.info("Referral code %s did not match another identity", code)
        return None
    if ReferralEvent.objects.filter(referee=referee_phone).exists():
        logger.warning("Referee %s was already credited to a referrer", mask_phone(referee_phone))
        return None

    reward = getattr(settings, 'STARS_REFERRAL_REWARD', 1)
    with atomic_unit('redeem_referral'):
        Identity.objects.filter(pk=referrer.pk).update(
            granted_total=F('granted_total') + reward,
            referral_count=F('referral_count') + 1,
            updated_at=timezone.now(),
        )
        ReferralEvent.objects.create(
            referrer=referrer.phone,
            referee=referee_phone,
            code=code,
            reward=reward,
        )
        _record(referrer.pk, LedgerEntry.REFERRAL, reward, reference=referee_phone)

    logger.info("Referral reward +%s to %s for %s", reward, mask_phone(referrer.phone), mask_phone(referee_phone))
    return referrer.phone


def find_identity(lookup) -> Identity:
    """Resolve an operator-supplied username (case-insensitive) or phone."""
    lookup = str(lookup or '').strip()
    if not lookup:
        raise errors.ValidationError('Username or phone is required', code='INVALID_INPUT')
    query = Q(username__iexact=lookup)
    phone = normalize_phone(lookup)
    if phone:
        query |= Q(phone=phone)
    identity = Identity.objects.filter(query).order_by('id').first()
    if not identity:
        raise errors.NotFoundError(f"User {lookup} not found", code='USER_NOT_FOUND')
    return identity


def admin_adjust(lookup, delta, reference='') -> dict:
    """
    Add ``delta`` (any signed integer) to granted_total. Zero is a no-op
    that writes nothing and reports the current totals.

    No floor: an over-deduction can leave pending negative, which the claim
    transaction treats as nothing to claim.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise errors.ValidationError('Adjustment must be an integer', code='INVALID_AMOUNT')
    identity = find_identity(lookup)
    if delta == 0:
        return {
            'username': identity.username,
            'phone': identity.phone,
            'granted_total': identity.granted_total,
            'claimed_total': identity.claimed_total,
            'pending': identity.pending,
        }

    with atomic_unit('admin_adjust'):
        Identity.objects.filter(pk=identity.pk).update(
            granted_total=F('granted_total') + delta,
            updated_at=timezone.now(),
        )
        entry = _record(identity.pk, LedgerEntry.ADJUSTMENT, delta, reference=reference)

    logger.info(
        "Operator adjustment %+d for %s (%s) -> granted_total=%s",
        delta, identity.username, reference or 'unknown operator', entry.granted_after,
    )
    return {
        'username': identity.username,
        'phone': identity.phone,
        'granted_total': entry.granted_after,
        'claimed_total': entry.claimed_after,
        'pending': entry.granted_after - entry.claimed_after,
    }
