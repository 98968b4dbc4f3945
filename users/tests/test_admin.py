from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from users.models import Identity


class IdentityAdminTests(TestCase):
    def setUp(self):
        operator = get_user_model().objects.create_superuser('operator', 'operator@example.com', 'password')
        self.client.force_login(operator)
        self.identity = Identity.objects.create(phone='+60123456789', username='alice', verified=True, granted_total=30)

    def test_changelist_shows_pending(self):
        response = self.client.get(reverse('admin:users_identity_changelist'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'alice')

    def test_ban_and_unban_actions(self):
        url = reverse('admin:users_identity_changelist')

        response = self.client.post(url, {'action': 'ban_selected', '_selected_action': [self.identity.pk]})
        self.assertEqual(response.status_code, 302)
        self.identity.refresh_from_db()
        self.assertTrue(self.identity.is_banned)

        self.client.post(url, {'action': 'unban_selected', '_selected_action': [self.identity.pk]})
        self.identity.refresh_from_db()
        self.assertFalse(self.identity.is_banned)

    def test_ledger_fields_are_read_only(self):
        response = self.client.post(
            reverse('admin:users_identity_change', args=[self.identity.pk]),
            {'phone': self.identity.phone, 'username': 'alice', 'verified': 'on', 'granted_total': 9999},
        )
        self.assertEqual(response.status_code, 302)
        self.identity.refresh_from_db()
        self.assertEqual(self.identity.granted_total, 30)
