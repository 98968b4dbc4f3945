import json

from django.test import TestCase

from devices.models import Device
from users.jwt import mint_session_token
from users.models import Identity

PHONE = '+60123456789'


class RewardsSchemaTests(TestCase):
    def setUp(self):
        Identity.objects.create(phone=PHONE, username='alice', verified=True, granted_total=30)
        Device.objects.create(device_id='device-1', stars=2, last_active_date='2024-03-01')
        self.token = mint_session_token({'phone': PHONE})

    def graphql(self, query, authorization=None):
        extra = {'HTTP_AUTHORIZATION': authorization} if authorization else {}
        response = self.client.post(
            '/graphql/',
            data=json.dumps({'query': query}),
            content_type='application/json',
            **extra,
        )
        self.assertEqual(response.status_code, 200)
        return response.json()['data']

    def test_grant_device_with_bearer(self):
        query = 'mutation { grantDevice(deviceId: "device-1") { success stars granted amountGranted message } }'

        data = self.graphql(query, f'Bearer {self.token}')['grantDevice']
        self.assertTrue(data['success'])
        self.assertEqual((data['stars'], data['granted'], data['amountGranted']), (32, True, 30))

        data = self.graphql(query, f'Bearer {self.token}')['grantDevice']
        self.assertTrue(data['success'])
        self.assertEqual((data['stars'], data['granted'], data['amountGranted']), (32, False, 0))

    def test_grant_device_without_token(self):
        data = self.graphql('mutation { grantDevice(deviceId: "device-1") { success errorCode granted } }')['grantDevice']
        self.assertEqual(data, {'success': False, 'errorCode': 'UNAUTHORIZED', 'granted': False})

    def test_check_pending(self):
        query = 'query { checkPending { success pending grantedTotal claimedTotal } }'
        self.assertEqual(
            self.graphql(query, f'Bearer {self.token}')['checkPending'],
            {'success': True, 'pending': 30, 'grantedTotal': 30, 'claimedTotal': 0},
        )

    def test_check_pending_reports_typed_errors(self):
        query = 'query { checkPending { success errorCode retryable pending } }'

        data = self.graphql(query)['checkPending']
        self.assertEqual(data, {'success': False, 'errorCode': 'UNAUTHORIZED', 'retryable': False, 'pending': None})

        data = self.graphql(query, 'Bearer not-a-token')['checkPending']
        self.assertEqual((data['success'], data['errorCode']), (False, 'UNAUTHORIZED'))

        stranger = mint_session_token({'phone': '+60111111111'})
        data = self.graphql(query, f'Bearer {stranger}')['checkPending']
        self.assertEqual((data['success'], data['errorCode'], data['pending']), (False, 'USER_NOT_FOUND', None))
