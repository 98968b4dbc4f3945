"""
Shared phone normalization utilities.

Goals:
- Canonicalize free-form phone input to a stable "+<digits>" key.
- Local numbers written with a leading trunk "0" get the default
  country calling code (Malaysia, "60") in its place.
- Be idempotent: normalizing an already-canonical phone returns it unchanged.
"""

from __future__ import annotations

from typing import Optional

from django.conf import settings

from config import errors

MIN_DIGITS = 8
MAX_DIGITS = 15


def _default_prefix() -> str:
    return getattr(settings, 'PHONE_DEFAULT_COUNTRY_PREFIX', '60')


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Normalize to canonical "+<digits>" or return None when implausible.

    - Non-digits are ignored ("+60 12-345 6789" -> "60123456789").
    - A leading "0" is replaced by the default country prefix.
    - Fewer than 8 or more than 15 digits (E.164 upper bound) is rejected.
    """
    digits = ''.join(ch for ch in str(raw or '') if ch.isdigit())
    if not digits:
        return None
    if digits.startswith('0'):
        digits = _default_prefix() + digits[1:]
    if len(digits) < MIN_DIGITS or len(digits) > MAX_DIGITS:
        return None
    return f"+{digits}"


def require_phone(raw: Optional[str]) -> str:
    phone = normalize_phone(raw)
    if not phone:
        raise errors.ValidationError('Invalid phone. Use format +60123456789', code='INVALID_PHONE')
    return phone


def mask_phone(phone: Optional[str]) -> str:
    """Mask all but the last four digits, for logs."""
    if not phone:
        return ''
    return f"{'*' * max(len(phone) - 4, 0)}{phone[-4:]}"
