"""
Stateless session tokens proving phone ownership.

Tokens are HS256 JWTs. The payload always carries ``iat`` so that callers
(or the SESSION_TOKEN_MAX_AGE_SECONDS setting) can enforce a maximum age at
verification time. With the setting unset tokens never expire, matching the
lifetime the service has always had.
"""
import logging
import time
from typing import Any, Dict, Optional

import jwt
from django.conf import settings

from config import errors
from .phone_utils import normalize_phone

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'


def _secret() -> str:
    return getattr(settings, 'SESSION_TOKEN_SECRET', None) or settings.SECRET_KEY


def mint_session_token(claims: Dict[str, Any]) -> str:
    """Sign ``claims`` (plus an ``iat`` timestamp) into a compact token."""
    payload = dict(claims)
    payload.setdefault('iat', int(time.time()))
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def verify_session_token(token: str, max_age: Optional[int] = None) -> Dict[str, Any]:
    """Return the claims of a valid token or raise AuthError.

    Signature comparison is constant-time inside PyJWT. ``max_age`` falls
    back to the SESSION_TOKEN_MAX_AGE_SECONDS setting.
    """
    if not token:
        raise errors.AuthError('Missing session token', code='UNAUTHORIZED')
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[ALGORITHM],
            options={'require': ['iat']},
        )
    except jwt.InvalidTokenError as e:
        logger.info("Rejected session token: %s", e)
        raise errors.AuthError('Invalid session token', code='UNAUTHORIZED')

    if max_age is None:
        max_age = getattr(settings, 'SESSION_TOKEN_MAX_AGE_SECONDS', None)
    if max_age is not None and int(time.time()) - int(payload['iat']) > max_age:
        raise errors.AuthError('Session token expired', code='TOKEN_EXPIRED')
    return payload


def extract_bearer_token(header_value: Optional[str]) -> str:
    value = str(header_value or '').strip()
    if value.startswith('Bearer '):
        return value[len('Bearer '):].strip()
    return value


def phone_from_token(token: str) -> str:
    """Verify ``token`` (raw or "Bearer ..." header) and return its phone claim."""
    payload = verify_session_token(extract_bearer_token(token))
    phone = normalize_phone(payload.get('phone'))
    if not phone:
        raise errors.AuthError('Invalid token payload: missing phone', code='UNAUTHORIZED')
    return phone
