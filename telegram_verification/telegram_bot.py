"""Thin Telegram Bot API client: membership lookups and outgoing messages."""
import os
from typing import Optional

import requests
from django.conf import settings

MEMBER = 'member'
ADMIN = 'admin'
NONE = 'none'

_MEMBER_STATUSES = {'member', 'restricted'}
_ADMIN_STATUSES = {'administrator', 'creator'}


class TelegramBotError(Exception):
    pass


def _bot_token() -> str:
    token = getattr(settings, 'TELEGRAM_BOT_TOKEN', None) or os.getenv('TELEGRAM_BOT_TOKEN')
    if not token:
        raise TelegramBotError('Missing TELEGRAM_BOT_TOKEN configuration')
    return token


def _call(method: str, payload: dict) -> dict:
    url = f"https://api.telegram.org/bot{_bot_token()}/{method}"
    timeout = getattr(settings, 'TELEGRAM_API_TIMEOUT', 10)
    resp = requests.post(url, json=payload, timeout=timeout)
    try:
        data = resp.json()
    except ValueError:
        raise TelegramBotError(f"Telegram {method} error {resp.status_code}: {resp.text}")
    if not data.get('ok'):
        raise TelegramBotError(f"Telegram {method} error {resp.status_code}: {data.get('description')}")
    return data.get('result') or {}


def get_membership(channel_user_id, chat_id: Optional[str] = None) -> str:
    """
    Return MEMBER, ADMIN or NONE for the user in the gating group.
    Any transport or API failure counts as NONE.
    """
    chat_id = chat_id or getattr(settings, 'TELEGRAM_GATING_GROUP_ID', '')
    if not chat_id:
        return NONE
    try:
        result = _call('getChatMember', {'chat_id': chat_id, 'user_id': channel_user_id})
    except (TelegramBotError, requests.RequestException):
        return NONE
    status = result.get('status')
    if status in _ADMIN_STATUSES:
        return ADMIN
    if status in _MEMBER_STATUSES:
        return MEMBER
    return NONE


def is_group_member(channel_user_id) -> bool:
    return get_membership(channel_user_id) in (MEMBER, ADMIN)


def send_message(chat_id, text: str, parse_mode: Optional[str] = 'Markdown') -> dict:
    payload = {'chat_id': chat_id, 'text': text}
    if parse_mode:
        payload['parse_mode'] = parse_mode
    try:
        return _call('sendMessage', payload)
    except requests.RequestException as e:
        raise TelegramBotError(f"Telegram sendMessage failed: {e}")


def set_webhook(url: str, secret_token: Optional[str] = None) -> None:
    """Point the bot at ``url``. Telegram echoes ``secret_token`` in the X-Telegram-Bot-Api-Secret-Token header."""
    secret_token = secret_token or getattr(settings, 'TELEGRAM_WEBHOOK_SECRET', '')
    if not secret_token:
        raise TelegramBotError('Missing TELEGRAM_WEBHOOK_SECRET configuration')
    payload = {'url': url, 'secret_token': secret_token, 'allowed_updates': ['message']}
    try:
        _call('setWebhook', payload)
    except requests.RequestException as e:
        raise TelegramBotError(f"Telegram setWebhook failed: {e}")
