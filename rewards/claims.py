"""
Moving pending identity stars onto a device.

The claim is one atomic unit: lock identity, lock device, read both
counters, then increment the device balance and advance the claimed
watermark with a guarded UPDATE that only matches if neither counter moved
since the read. A concurrent referral or operator adjustment therefore
either commits before the read (and is claimed now) or aborts this unit
(and is claimed next time), never lost.
"""
import logging

from django.db.models import F
from django.utils import timezone

from config import errors
from config.db import atomic_unit, compare_and_swap
from devices.models import Device
from users.jwt import phone_from_token
from users.models import Identity
from users.phone_utils import mask_phone
from .models import LedgerEntry

logger = logging.getLogger(__name__)


def _lock_identity(phone):
    return Identity.objects.select_for_update().filter(phone=phone).first()


def _lock_device(device_id):
    return Device.objects.select_for_update().filter(device_id=device_id).first()


def grant_device(token, device_id):
    """Claim everything pending for the token's identity onto ``device_id``."""
    phone = phone_from_token(token)
    device_id = str(device_id or '').strip()
    if not device_id:
        raise errors.ValidationError('missing deviceId', code='INVALID_INPUT')

    with atomic_unit('grant_device'):
        identity = _lock_identity(phone)
        if identity is None:
            raise errors.NotFoundError('User not found', code='USER_NOT_FOUND')
        device = _lock_device(device_id)
        if device is None:
            raise errors.NotFoundError('Device not initialized', code='DEVICE_NOT_INITIALIZED')

        granted = identity.granted_total
        claimed = identity.claimed_total
        amount = granted - claimed
        if amount <= 0:
            return {
                'stars': device.stars,
                'granted': False,
                'amount_granted': 0,
                'message': 'No new stars to claim',
            }

        now = timezone.now()
        compare_and_swap(
            Identity.objects.filter(pk=identity.pk),
            {'granted_total': granted, 'claimed_total': claimed},
            claimed_total=granted,
            last_claim_device_id=device_id,
            last_claimed_at=now,
            updated_at=now,
        )
        Device.objects.filter(pk=device.pk).update(stars=F('stars') + amount, updated_at=now)
        stars = Device.objects.filter(pk=device.pk).values_list('stars', flat=True).get()
        LedgerEntry.objects.create(
            identity_id=identity.pk,
            entry_type=LedgerEntry.CLAIM,
            amount=amount,
            granted_after=granted,
            claimed_after=granted,
            device_id=device_id,
        )

    logger.info("Claimed %s stars for %s onto device %s", amount, mask_phone(phone), device_id)
    return {
        'stars': stars,
        'granted': True,
        'amount_granted': amount,
        'message': f"Claimed {amount} stars",
    }


def check_pending(token):
    phone = phone_from_token(token)
    identity = Identity.objects.filter(phone=phone).first()
    if identity is None:
        raise errors.NotFoundError('User not found', code='USER_NOT_FOUND')
    return {
        'pending': identity.pending,
        'granted_total': identity.granted_total,
        'claimed_total': identity.claimed_total,
    }
