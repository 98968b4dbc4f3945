from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from config import errors
from telegram_verification import otp
from telegram_verification.models import OtpChallenge, TelegramBinding

PHONE = '+60123456789'


class RequestOtpTests(TestCase):
    def setUp(self):
        TelegramBinding.objects.create(channel_user_id='5001', phone=PHONE)
        self.member_patch = patch('telegram_verification.telegram_bot.is_group_member', return_value=True)
        self.mock_member = self.member_patch.start()
        self.delay_patch = patch('telegram_verification.tasks.deliver_otp_message.delay')
        self.mock_delay = self.delay_patch.start()

    def tearDown(self):
        self.delay_patch.stop()
        self.member_patch.stop()

    def test_request_stores_hash_and_enqueues_delivery(self):
        with patch('telegram_verification.otp._gen_code', return_value='123456'):
            result = otp.request_otp('0123456789')

        self.assertEqual(result, {'expires_in_seconds': 180})
        challenge = OtpChallenge.objects.get(phone=PHONE)
        self.assertEqual(challenge.channel_user_id, '5001')
        self.assertEqual(challenge.attempts, 0)
        self.assertEqual(challenge.code_hash, otp._hmac_code(PHONE, '123456'))
        self.assertGreater(challenge.expires_at, timezone.now() + timedelta(seconds=170))
        self.mock_delay.assert_called_once_with('5001', '123456', 180)

    def test_unbound_phone_is_rejected(self):
        with self.assertRaises(errors.NotFoundError) as ctx:
            otp.request_otp('+60199999999')
        self.assertEqual(ctx.exception.code, 'NOT_BOUND')
        self.mock_delay.assert_not_called()

    def test_member_who_left_the_group_is_rejected(self):
        self.mock_member.return_value = False
        with self.assertRaises(errors.AuthError) as ctx:
            otp.request_otp(PHONE)
        self.assertEqual(ctx.exception.code, 'NOT_MEMBER')
        self.assertFalse(OtpChallenge.objects.exists())

    def test_invalid_phone_is_rejected(self):
        with self.assertRaises(errors.ValidationError):
            otp.request_otp('hello')

    def test_enqueue_failure_does_not_fail_request(self):
        self.mock_delay.side_effect = ConnectionError('broker down')
        result = otp.request_otp(PHONE)
        self.assertEqual(result['expires_in_seconds'], 180)
        self.assertTrue(OtpChallenge.objects.filter(phone=PHONE).exists())

    def test_new_request_replaces_previous_code(self):
        with patch('telegram_verification.otp._gen_code', return_value='111111'):
            otp.request_otp(PHONE)
        with patch('telegram_verification.otp._gen_code', return_value='222222'):
            otp.request_otp(PHONE)

        self.assertEqual(OtpChallenge.objects.filter(phone=PHONE).count(), 1)
        with self.assertRaises(errors.StateError):
            otp.verify_otp(PHONE, '111111')
        otp.verify_otp(PHONE, '222222')


class VerifyOtpTests(TestCase):
    def setUp(self):
        OtpChallenge.objects.create(
            phone=PHONE,
            channel_user_id='5001',
            code_hash=otp._hmac_code(PHONE, '123456'),
            expires_at=timezone.now() + timedelta(minutes=3),
        )

    def test_correct_code_succeeds_once(self):
        otp.verify_otp(PHONE, '123456')
        self.assertFalse(OtpChallenge.objects.filter(phone=PHONE).exists())

        with self.assertRaises(errors.StateError) as ctx:
            otp.verify_otp(PHONE, '123456')
        self.assertEqual(ctx.exception.code, 'OTP_EXPIRED_OR_MISSING')

    def test_wrong_code_increments_attempts(self):
        with self.assertRaises(errors.StateError) as ctx:
            otp.verify_otp(PHONE, '000000')
        self.assertEqual(ctx.exception.code, 'OTP_WRONG_CODE')
        self.assertEqual(OtpChallenge.objects.get(phone=PHONE).attempts, 1)

        otp.verify_otp(PHONE, ' 123456 ')

    def test_attempt_budget_is_enforced(self):
        for _ in range(3):
            with self.assertRaises(errors.StateError):
                otp.verify_otp(PHONE, '000000')
        self.assertEqual(OtpChallenge.objects.get(phone=PHONE).attempts, 3)

        with self.assertRaises(errors.StateError) as ctx:
            otp.verify_otp(PHONE, '123456')
        self.assertEqual(ctx.exception.code, 'OTP_TOO_MANY_ATTEMPTS')
        self.assertFalse(OtpChallenge.objects.filter(phone=PHONE).exists())

        with self.assertRaises(errors.StateError) as ctx:
            otp.verify_otp(PHONE, '123456')
        self.assertEqual(ctx.exception.code, 'OTP_EXPIRED_OR_MISSING')

    def test_expired_code_is_rejected(self):
        OtpChallenge.objects.filter(phone=PHONE).update(expires_at=timezone.now() - timedelta(seconds=1))
        with self.assertRaises(errors.StateError) as ctx:
            otp.verify_otp(PHONE, '123456')
        self.assertEqual(ctx.exception.code, 'OTP_EXPIRED_OR_MISSING')

    def test_code_is_bound_to_phone(self):
        with self.assertRaises(errors.StateError):
            otp.verify_otp('+60199999999', '123456')

    def test_cleanup_removes_only_expired(self):
        OtpChallenge.objects.create(
            phone='+60199999999',
            channel_user_id='5002',
            code_hash=otp._hmac_code('+60199999999', '654321'),
            expires_at=timezone.now() - timedelta(minutes=1),
        )

        self.assertEqual(otp.cleanup_expired_challenges(), 1)
        self.assertEqual(list(OtpChallenge.objects.values_list('phone', flat=True)), [PHONE])
