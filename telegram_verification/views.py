import hmac
import json
import logging

from django.conf import settings
from django.http import HttpResponse, HttpResponseBadRequest, HttpResponseForbidden
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from config import errors
from .binding import bind_channel
from .telegram_bot import TelegramBotError, send_message

logger = logging.getLogger(__name__)

SECRET_HEADER = 'HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN'

CONTACT_SAVED = (
    "✅ Contact saved!\n\n"
    "Go back to the website and tap *REQUEST OTP* to receive your code."
)


def _reply(chat_id, text):
    try:
        send_message(chat_id, text)
    except TelegramBotError as e:
        logger.error("Telegram reply to chat %s failed: %s", chat_id, e)


def _has_valid_secret(request):
    """Telegram echoes the secret_token given to setWebhook in every update. Unset secret rejects everything."""
    expected = getattr(settings, 'TELEGRAM_WEBHOOK_SECRET', '')
    if not expected:
        return False
    return hmac.compare_digest(request.META.get(SECRET_HEADER, '').encode(), expected.encode())


@csrf_exempt
@require_POST
def telegram_webhook(request):
    """
    Receives Bot API updates. Only contact shares are acted upon: a user
    sharing their *own* contact proves ownership of that phone number.
    Every other update is acknowledged and ignored.
    """
    if not _has_valid_secret(request):
        logger.warning("Rejected webhook call without a valid secret token")
        return HttpResponseForbidden('invalid secret token')

    try:
        update = json.loads(request.body.decode('utf-8') or '{}')
    except ValueError:
        return HttpResponseBadRequest('invalid json')

    message = update.get('message') or {}
    contact = message.get('contact')
    sender = message.get('from') or {}
    chat_id = (message.get('chat') or {}).get('id')
    if not contact or not sender.get('id'):
        return HttpResponse(status=200)

    if str(contact.get('user_id')) != str(sender['id']):
        logger.warning("Ignoring foreign contact shared by channel user %s", sender['id'])
        _reply(chat_id, "❌ Please share your own contact using the button.")
        return HttpResponse(status=200)

    try:
        bind_channel(sender['id'], contact.get('phone_number'))
    except errors.AuthError:
        link = getattr(settings, 'TELEGRAM_GROUP_LINK', '')
        _reply(chat_id, f"❌ You have not joined the group yet. Please join first:\n{link}")
    except errors.ValidationError:
        _reply(chat_id, "❌ That phone number is not valid.")
    else:
        _reply(chat_id, CONTACT_SAVED)
    return HttpResponse(status=200)
