"""
Per-device daily star quota.

A device starts with one star. On the first Init or Scan of a new calendar
day (quota timezone) the balance is raised to the daily limit if it is
below it; a top-up never lowers a balance. Scan is the only operation that
decreases stars, one at a time.
"""
import logging
import random
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from config import errors
from config.db import atomic_unit, compare_and_swap
from .models import Device, ScanLog

logger = logging.getLogger(__name__)

SCORE_MIN = 10
SCORE_MAX = 93


def quota_today():
    """Today's date string in the quota timezone."""
    tz = ZoneInfo(getattr(settings, 'STARS_QUOTA_TIMEZONE', 'Asia/Kuala_Lumpur'))
    return timezone.localdate(timezone=tz).isoformat()


def daily_limit():
    return getattr(settings, 'STARS_DAILY_LIMIT', 5)


def _require_id(value, field):
    value = str(value or '').strip()
    if not value:
        raise errors.ValidationError(f"missing {field}", code='INVALID_INPUT')
    return value


def topped_up(stars, last_active_date, today):
    """Return (stars, last_active_date) after applying the new-day rule."""
    if last_active_date == today:
        return stars, last_active_date
    return max(stars, daily_limit()), today


def _lock_device(device_id):
    return Device.objects.select_for_update().filter(device_id=device_id).first()


def init_device(device_id):
    device_id = _require_id(device_id, 'deviceId')
    today = quota_today()
    try:
        with atomic_unit('init_device'):
            device = _lock_device(device_id)
            if device is None:
                stars = getattr(settings, 'STARS_NEW_DEVICE_STARS', 1)
                Device.objects.create(device_id=device_id, stars=stars, last_active_date=today)
                logger.info("Device %s initialized with %s stars", device_id, stars)
                return {'device_id': device_id, 'stars': stars, 'is_new': True}

            stars, active_date = topped_up(device.stars, device.last_active_date, today)
            if active_date != device.last_active_date:
                compare_and_swap(
                    Device.objects.filter(pk=device.pk),
                    {'stars': device.stars, 'last_active_date': device.last_active_date},
                    stars=stars,
                    last_active_date=active_date,
                    updated_at=timezone.now(),
                )
                if stars != device.stars:
                    logger.info("Device %s topped up %s -> %s", device_id, device.stars, stars)
            return {'device_id': device_id, 'stars': stars, 'is_new': False}
    except IntegrityError:
        # Lost the race to create the row; it exists now.
        logger.info("Device %s created concurrently", device_id)
        raise errors.TransactionAbort('Concurrent update detected, please retry', code='TRANSACTION_ABORTED')


def scan(device_id, target_id):
    device_id = _require_id(device_id, 'deviceId')
    target_id = _require_id(target_id, 'targetId')
    today = quota_today()

    with atomic_unit('scan'):
        device = _lock_device(device_id)
        if device is None:
            raise errors.NotFoundError('device not initialized', code='DEVICE_NOT_INITIALIZED')

        stars, active_date = topped_up(device.stars, device.last_active_date, today)
        if stars <= 0:
            raise errors.ResourceExhausted('no stars', code='NO_STARS')

        stars -= 1
        compare_and_swap(
            Device.objects.filter(pk=device.pk),
            {'stars': device.stars, 'last_active_date': device.last_active_date},
            stars=stars,
            last_active_date=active_date,
            updated_at=timezone.now(),
        )
        score = random.randint(SCORE_MIN, SCORE_MAX)
        ScanLog.objects.create(device_id=device_id, target_id=target_id, score=score)

    return {'score': score, 'stars': stars}
