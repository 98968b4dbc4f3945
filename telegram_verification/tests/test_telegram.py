import json
from io import StringIO
from unittest.mock import MagicMock, patch

import requests
from django.core.management import CommandError, call_command
from django.test import SimpleTestCase, TestCase, override_settings

from config import errors
from telegram_verification import tasks, telegram_bot
from telegram_verification.binding import bind_channel, find_binding
from telegram_verification.models import TelegramBinding

PHONE = '+60123456789'


def bot_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@override_settings(TELEGRAM_BOT_TOKEN='test-token', TELEGRAM_GATING_GROUP_ID='-100123')
class MembershipTests(SimpleTestCase):
    @patch('telegram_verification.telegram_bot.requests.post')
    def test_status_mapping(self, mock_post):
        cases = {
            'member': telegram_bot.MEMBER,
            'restricted': telegram_bot.MEMBER,
            'administrator': telegram_bot.ADMIN,
            'creator': telegram_bot.ADMIN,
            'left': telegram_bot.NONE,
            'kicked': telegram_bot.NONE,
        }
        for status, expected in cases.items():
            with self.subTest(status=status):
                mock_post.return_value = bot_response({'ok': True, 'result': {'status': status}})
                self.assertEqual(telegram_bot.get_membership('42'), expected)

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://api.telegram.org/bottest-token/getChatMember')
        self.assertEqual(kwargs['json'], {'chat_id': '-100123', 'user_id': '42'})

    @patch('telegram_verification.telegram_bot.requests.post')
    def test_api_and_transport_errors_mean_not_member(self, mock_post):
        mock_post.return_value = bot_response({'ok': False, 'description': 'user not found'}, status_code=400)
        self.assertEqual(telegram_bot.get_membership('42'), telegram_bot.NONE)

        mock_post.side_effect = requests.ConnectionError('offline')
        self.assertFalse(telegram_bot.is_group_member('42'))

    @override_settings(TELEGRAM_GATING_GROUP_ID='')
    @patch('telegram_verification.telegram_bot.requests.post')
    def test_missing_group_means_not_member(self, mock_post):
        self.assertEqual(telegram_bot.get_membership('42'), telegram_bot.NONE)
        mock_post.assert_not_called()

    @patch('telegram_verification.telegram_bot.requests.post')
    def test_send_message_wraps_transport_errors(self, mock_post):
        mock_post.side_effect = requests.Timeout('slow')
        with self.assertRaises(telegram_bot.TelegramBotError):
            telegram_bot.send_message(42, 'hi')


class BindingTests(TestCase):
    @patch('telegram_verification.telegram_bot.is_group_member', return_value=True)
    def test_bind_creates_then_updates_binding(self, mock_member):
        binding = bind_channel(5001, '0123456789')
        self.assertEqual(binding.channel_user_id, '5001')
        self.assertEqual(binding.phone, PHONE)

        bind_channel('5001', '+60199999999')
        self.assertEqual(TelegramBinding.objects.count(), 1)
        self.assertEqual(TelegramBinding.objects.get().phone, '+60199999999')
        self.assertIsNone(find_binding(PHONE))

    @patch('telegram_verification.telegram_bot.is_group_member', return_value=False)
    def test_non_member_cannot_bind(self, mock_member):
        with self.assertRaises(errors.AuthError) as ctx:
            bind_channel('5001', PHONE)
        self.assertEqual(ctx.exception.code, 'NOT_MEMBER')
        self.assertFalse(TelegramBinding.objects.exists())

    @patch('telegram_verification.telegram_bot.is_group_member')
    def test_invalid_phone_fails_before_membership_lookup(self, mock_member):
        with self.assertRaises(errors.ValidationError):
            bind_channel('5001', '12')
        mock_member.assert_not_called()

    @patch('telegram_verification.telegram_bot.is_group_member', return_value=True)
    def test_find_binding_returns_latest_for_phone(self, mock_member):
        bind_channel('5001', PHONE)
        bind_channel('5002', PHONE)
        self.assertEqual(find_binding(PHONE).channel_user_id, '5002')


@override_settings(TELEGRAM_WEBHOOK_SECRET='hook-secret')
@patch('telegram_verification.views.send_message')
@patch('telegram_verification.telegram_bot.is_group_member', return_value=True)
class WebhookTests(TestCase):
    def post_update(self, update, secret='hook-secret'):
        extra = {'HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN': secret} if secret is not None else {}
        return self.client.post('/telegram/webhook/', data=json.dumps(update), content_type='application/json', **extra)

    def contact_update(self, sender_id, contact_user_id, phone='60123456789'):
        return {
            'update_id': 1,
            'message': {
                'message_id': 10,
                'from': {'id': sender_id},
                'chat': {'id': sender_id},
                'contact': {'phone_number': phone, 'user_id': contact_user_id},
            },
        }

    def test_own_contact_is_bound(self, mock_member, mock_send):
        response = self.post_update(self.contact_update(5001, 5001))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(find_binding(PHONE).channel_user_id, '5001')
        mock_send.assert_called_once()
        self.assertIn('Contact saved', mock_send.call_args[0][1])

    def test_foreign_contact_is_ignored(self, mock_member, mock_send):
        response = self.post_update(self.contact_update(5001, 7777))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(TelegramBinding.objects.exists())
        self.assertIn('own contact', mock_send.call_args[0][1])

    def test_non_member_gets_group_link(self, mock_member, mock_send):
        mock_member.return_value = False
        with self.settings(TELEGRAM_GROUP_LINK='https://t.me/+stars'):
            response = self.post_update(self.contact_update(5001, 5001))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(TelegramBinding.objects.exists())
        self.assertIn('https://t.me/+stars', mock_send.call_args[0][1])

    def test_other_updates_are_acknowledged(self, mock_member, mock_send):
        response = self.post_update({'update_id': 2, 'message': {'from': {'id': 5001}, 'text': '/start'}})

        self.assertEqual(response.status_code, 200)
        mock_send.assert_not_called()

    def test_reply_failure_still_acknowledges(self, mock_member, mock_send):
        mock_send.side_effect = telegram_bot.TelegramBotError('blocked by user')
        response = self.post_update(self.contact_update(5001, 5001))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(TelegramBinding.objects.exists())

    def test_invalid_json_and_wrong_method(self, mock_member, mock_send):
        response = self.client.post('/telegram/webhook/', data='{oops', content_type='application/json',
                                    HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN='hook-secret')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get('/telegram/webhook/').status_code, 405)

    def test_update_without_secret_token_is_forbidden(self, mock_member, mock_send):
        response = self.post_update(self.contact_update(666, 666), secret=None)

        self.assertEqual(response.status_code, 403)
        self.assertIsNone(find_binding(PHONE))
        mock_member.assert_not_called()
        mock_send.assert_not_called()

    def test_update_with_wrong_secret_token_is_forbidden(self, mock_member, mock_send):
        response = self.post_update(self.contact_update(666, 666), secret='guessed-secret')

        self.assertEqual(response.status_code, 403)
        self.assertFalse(TelegramBinding.objects.exists())

    def test_unconfigured_secret_rejects_every_update(self, mock_member, mock_send):
        with self.settings(TELEGRAM_WEBHOOK_SECRET=''):
            response = self.post_update(self.contact_update(5001, 5001), secret='')

        self.assertEqual(response.status_code, 403)
        self.assertFalse(TelegramBinding.objects.exists())


@override_settings(TELEGRAM_BOT_TOKEN='test-token', TELEGRAM_WEBHOOK_SECRET='hook-secret')
class SetWebhookTests(SimpleTestCase):
    @patch('telegram_verification.telegram_bot.requests.post')
    def test_secret_token_is_registered(self, mock_post):
        mock_post.return_value = bot_response({'ok': True, 'result': True})

        out = StringIO()
        call_command('set_telegram_webhook', 'https://stars.example.com/telegram/webhook/', stdout=out)

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://api.telegram.org/bottest-token/setWebhook')
        self.assertEqual(kwargs['json']['url'], 'https://stars.example.com/telegram/webhook/')
        self.assertEqual(kwargs['json']['secret_token'], 'hook-secret')
        self.assertIn('Webhook set', out.getvalue())

    @override_settings(TELEGRAM_WEBHOOK_SECRET='')
    @patch('telegram_verification.telegram_bot.requests.post')
    def test_missing_secret_refuses_registration(self, mock_post):
        with self.assertRaises(CommandError):
            call_command('set_telegram_webhook', 'https://stars.example.com/telegram/webhook/', stdout=StringIO())
        mock_post.assert_not_called()


class DeliveryTaskTests(SimpleTestCase):
    @patch('telegram_verification.tasks.send_message')
    def test_delivery_sends_code(self, mock_send):
        self.assertTrue(tasks.deliver_otp_message('5001', '123456', 180))

        chat_id, text = mock_send.call_args[0]
        self.assertEqual(chat_id, '5001')
        self.assertIn('123456', text)
        self.assertIn('3 minutes', text)

    @patch('telegram_verification.tasks.send_message', side_effect=telegram_bot.TelegramBotError('down'))
    def test_delivery_failure_is_logged_not_raised(self, mock_send):
        with self.assertLogs('telegram_verification.tasks', level='ERROR'):
            self.assertFalse(tasks.deliver_otp_message('5001', '123456', 180))
