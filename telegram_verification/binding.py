import logging
from typing import Optional

from config import errors
from users.phone_utils import mask_phone, require_phone
from . import telegram_bot
from .models import TelegramBinding

logger = logging.getLogger(__name__)


def bind_channel(channel_user_id, raw_phone) -> TelegramBinding:
    """Record that ``channel_user_id`` owns ``raw_phone``.

    Called once Telegram has proven ownership (the user shared their own
    contact). Only members of the gating group may bind.
    """
    channel_user_id = str(channel_user_id)
    phone = require_phone(raw_phone)
    if not telegram_bot.is_group_member(channel_user_id):
        raise errors.AuthError('You must join the Telegram group first', code='NOT_MEMBER')

    binding, created = TelegramBinding.objects.update_or_create(
        channel_user_id=channel_user_id,
        defaults={'phone': phone},
    )
    logger.info(
        "Telegram binding %s for channel user %s phone %s",
        'created' if created else 'updated', channel_user_id, mask_phone(phone),
    )
    return binding


def find_binding(phone) -> Optional[TelegramBinding]:
    return TelegramBinding.objects.filter(phone=phone).order_by('-updated_at', '-id').first()
